"""
Low-Level Image Transforms

This module contains the atomic transformation functions used by
TensorBuilder.

Functions:
    load_image: Decode an image file as an RGB numpy array
    resize_stretch: Resize to an exact size, ignoring aspect ratio
    normalize: Apply per-channel mean/std normalization

Constants:
    IMAGENET_MEAN: ImageNet dataset channel means [R, G, B]
    IMAGENET_STD: ImageNet dataset channel standard deviations [R, G, B]
"""

from pathlib import Path

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError


# =============================================================================
# Constants
# =============================================================================

# ImageNet normalization constants
# Reference: https://pytorch.org/vision/stable/models.html
IMAGENET_MEAN: np.ndarray = np.array([0.485, 0.456, 0.406], dtype=np.float32)
IMAGENET_STD: np.ndarray = np.array([0.229, 0.224, 0.225], dtype=np.float32)


# =============================================================================
# Image Loading
# =============================================================================

def load_image(image_path: Path | str) -> np.ndarray:
    """
    Load an image file as an RGB numpy array.

    OpenCV handles the common formats (JPEG, PNG, BMP). Formats it cannot
    decode, most notably GIF, go through Pillow instead; for animated
    files only the first frame is used.

    Args:
        image_path: Path to image file

    Returns:
        RGB uint8 array with shape [H, W, 3]

    Raises:
        ValueError: If image cannot be loaded (file not found or corrupted)

    Example:
        >>> image = load_image("path/to/image.jpg")
        >>> image.shape
        (1080, 1920, 3)
        >>> image.dtype
        dtype('uint8')
    """
    image_path = Path(image_path)

    try:
        data = np.fromfile(str(image_path), dtype=np.uint8)
    except OSError as e:
        raise ValueError(f"Failed to load image: {image_path}: {e}") from e

    # imdecode instead of imread so non-ASCII paths work on every platform
    bgr = cv2.imdecode(data, cv2.IMREAD_COLOR) if data.size else None
    if bgr is not None:
        return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)

    try:
        with Image.open(image_path) as pil_image:
            return np.asarray(pil_image.convert("RGB"), dtype=np.uint8)
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Failed to load image: {image_path}") from e


# =============================================================================
# Geometric Transforms
# =============================================================================

def resize_stretch(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Resize an image to exactly width x height.

    Scales each axis independently, so the aspect ratio is not preserved.

    Args:
        image: RGB uint8 array with shape [H, W, 3]
        width: Target width in pixels
        height: Target height in pixels

    Returns:
        Resized array with shape [height, width, 3]

    Example:
        >>> image = np.zeros((480, 640, 3), dtype=np.uint8)
        >>> resize_stretch(image, 224, 224).shape
        (224, 224, 3)
    """
    if image.shape[0] == height and image.shape[1] == width:
        return image

    return cv2.resize(image, (width, height), interpolation=cv2.INTER_LINEAR)


# =============================================================================
# Intensity Transforms
# =============================================================================

def normalize(
    image: np.ndarray,
    mean: np.ndarray = IMAGENET_MEAN,
    std: np.ndarray = IMAGENET_STD,
) -> np.ndarray:
    """
    Apply per-channel mean/std normalization to an RGB image.

    Formula: normalized = (pixel / 255.0 - mean[c]) / std[c]

    All arithmetic is float32, so results are bit-identical across runs.

    Args:
        image: RGB uint8 array with shape [H, W, 3]
        mean: Per-channel means [R, G, B] (default: ImageNet)
        std: Per-channel standard deviations [R, G, B] (default: ImageNet)

    Returns:
        Normalized float32 array with shape [H, W, 3]

    Example:
        >>> image = np.random.randint(0, 256, (224, 224, 3), dtype=np.uint8)
        >>> normalized = normalize(image)
        >>> normalized.dtype
        dtype('float32')
        >>> -3.0 < normalized.min() < normalized.max() < 3.0
        True
    """
    mean = np.asarray(mean, dtype=np.float32)
    std = np.asarray(std, dtype=np.float32)

    scaled = image.astype(np.float32) / np.float32(255.0)

    return (scaled - mean) / std
