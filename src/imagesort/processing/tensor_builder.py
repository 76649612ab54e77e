"""
Classifier Input Tensor Pipeline

This module provides the TensorBuilder class for turning decoded images
into model input tensors, and resolve_input_geometry for reading the
target size and layout off a model's declared input shape.

Pipeline:
    1. Resize image to W x H (stretch, bilinear interpolation)
    2. Convert to float32 and scale to [0, 1]
    3. Apply per-channel mean/std normalization
    4. Transpose HWC -> CHW (channel-first models only)
    5. Add batch dimension -> [1, 3, H, W] or [1, H, W, 3]
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence, Tuple

import numpy as np

from imagesort.processing.transforms import (
    IMAGENET_MEAN,
    IMAGENET_STD,
    normalize,
    resize_stretch,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_INPUT_SIZE: int = 224
"""Fallback input dimension (square) when the model shape is unreadable."""


class TensorLayout(str, Enum):
    """Memory layout of the model input tensor."""

    NCHW = "NCHW"
    NHWC = "NHWC"


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class InputGeometry:
    """
    Target size and layout for model input.

    Attributes:
        width: Target width in pixels
        height: Target height in pixels
        layout: Channel-first (NCHW) or channel-last (NHWC)
        is_fallback: True if the default size was used because the
            declared shape could not be read
    """

    width: int
    height: int
    layout: TensorLayout = TensorLayout.NCHW
    is_fallback: bool = False


# =============================================================================
# Geometry Discovery
# =============================================================================

def _static_dim(dim: Any) -> int | None:
    """Return dim as a positive int, or None for symbolic/unknown dims."""
    if isinstance(dim, (int, np.integer)) and not isinstance(dim, bool) and dim > 0:
        return int(dim)
    return None


def _batch_ok(dim: Any) -> bool:
    # Dynamic batch axes ("batch_size", None, -1) are fed a batch of one
    static = _static_dim(dim)
    return static is None or static == 1


def resolve_input_geometry(
    shape: Sequence[Any],
    default_width: int = DEFAULT_INPUT_SIZE,
    default_height: int = DEFAULT_INPUT_SIZE,
) -> InputGeometry:
    """
    Determine target width, height and layout from a declared input shape.

    Rules:
        - [1, 3, H, W]: channel-first
        - [1, H, W, 3]: channel-last (logs a compatibility warning)
        - anything else: default size, channel-first, logs a warning

    Args:
        shape: Declared model input shape; dims may be ints, symbolic
            names or None
        default_width: Width to use when the shape cannot be read
        default_height: Height to use when the shape cannot be read

    Returns:
        InputGeometry with resolved width, height and layout

    Example:
        >>> resolve_input_geometry((1, 3, 299, 299))
        InputGeometry(width=299, height=299, layout=<TensorLayout.NCHW: 'NCHW'>, is_fallback=False)
    """
    shape = tuple(shape)

    layout: TensorLayout | None = None
    height_dim = width_dim = None

    if len(shape) == 4 and _batch_ok(shape[0]):
        if _static_dim(shape[1]) == 3:
            layout = TensorLayout.NCHW
            height_dim, width_dim = shape[2], shape[3]
        elif _static_dim(shape[3]) == 3:
            layout = TensorLayout.NHWC
            height_dim, width_dim = shape[1], shape[2]
            logger.warning(
                f"Model input {list(shape)} looks channel-last (NHWC); "
                "building NHWC tensors. Check the model if results look wrong."
            )

    if layout is None:
        logger.warning(
            f"Could not determine target dimensions from model input shape "
            f"{list(shape)}. Assuming {default_width}x{default_height}."
        )
        return InputGeometry(
            width=default_width,
            height=default_height,
            layout=TensorLayout.NCHW,
            is_fallback=True,
        )

    height = _static_dim(height_dim)
    width = _static_dim(width_dim)

    if height is None or width is None:
        logger.warning(
            f"Model input shape {list(shape)} has dynamic spatial dimensions. "
            f"Assuming {default_width}x{default_height}."
        )
        return InputGeometry(
            width=default_width,
            height=default_height,
            layout=layout,
            is_fallback=True,
        )

    return InputGeometry(width=width, height=height, layout=layout)


# =============================================================================
# Tensor Builder
# =============================================================================

class TensorBuilder:
    """
    Builds normalized model input tensors from decoded RGB images.

    The resize is a plain stretch to the target size. Normalization
    constants are fixed at construction; the builder holds no other state,
    so one instance can be reused for every image in a run.

    Attributes:
        width: Target width
        height: Target height
        layout: Output tensor layout
        mean: Channel means for normalization
        std: Channel standard deviations for normalization

    Example:
        >>> builder = TensorBuilder(width=224, height=224)
        >>> image = np.random.randint(0, 256, (100, 150, 3), dtype=np.uint8)
        >>> result = builder(image)
        >>> result.tensor.shape
        (1, 3, 224, 224)
        >>> result.tensor.dtype
        dtype('float32')
    """

    def __init__(
        self,
        width: int = DEFAULT_INPUT_SIZE,
        height: int = DEFAULT_INPUT_SIZE,
        mean: Sequence[float] | np.ndarray = IMAGENET_MEAN,
        std: Sequence[float] | np.ndarray = IMAGENET_STD,
        layout: TensorLayout = TensorLayout.NCHW,
    ) -> None:
        """
        Initialize TensorBuilder.

        Args:
            width: Target width (default: 224)
            height: Target height (default: 224)
            mean: Channel means for normalization (default: ImageNet)
            std: Channel standard deviations for normalization (default: ImageNet)
            layout: Output layout (default: NCHW)

        Raises:
            ValueError: If dimensions are not positive or mean/std are not
                3-element vectors with non-zero std
        """
        if width < 1 or height < 1:
            raise ValueError(f"Invalid target size: {width}x{height}")

        mean = np.asarray(mean, dtype=np.float32)
        std = np.asarray(std, dtype=np.float32)
        if mean.shape != (3,) or std.shape != (3,):
            raise ValueError(
                f"mean and std must have 3 elements, got {mean.shape} and {std.shape}"
            )
        if np.any(std == 0):
            raise ValueError(f"std must be non-zero, got {std.tolist()}")

        self.width = width
        self.height = height
        self.layout = TensorLayout(layout)
        self.mean = mean
        self.std = std

    @classmethod
    def from_geometry(
        cls,
        geometry: InputGeometry,
        mean: Sequence[float] | np.ndarray = IMAGENET_MEAN,
        std: Sequence[float] | np.ndarray = IMAGENET_STD,
    ) -> "TensorBuilder":
        """Create a builder matching a resolved model input geometry."""
        return cls(
            width=geometry.width,
            height=geometry.height,
            mean=mean,
            std=std,
            layout=geometry.layout,
        )

    def __call__(self, image: np.ndarray) -> np.ndarray:
        """
        Build a model input tensor from an image.

        Args:
            image: RGB uint8 array with shape [H, W, 3]

        Returns:
            float32 tensor [1, 3, H, W] (NCHW) or [1, H, W, 3] (NHWC)

        Raises:
            ValueError: If image has invalid shape
        """
        return self.build(image)

    def build(self, image: np.ndarray) -> np.ndarray:
        """
        Build a model input tensor from an image.

        Pipeline:
            1. Resize to W x H (stretch)
            2. Scale to [0, 1] and apply mean/std normalization
            3. Transpose HWC -> CHW (NCHW layout only)
            4. Add batch dimension

        Args:
            image: RGB uint8 array with shape [H, W, 3]

        Returns:
            Contiguous float32 tensor [1, 3, H, W] or [1, H, W, 3]

        Raises:
            ValueError: If image has invalid shape
        """
        self._validate_input(image)

        # Step 1: Resize to target size
        resized = resize_stretch(image, self.width, self.height)

        # Step 2: Normalize
        normalized = normalize(resized, self.mean, self.std)

        # Step 3: Transpose HWC -> CHW
        if self.layout is TensorLayout.NCHW:
            normalized = normalized.transpose(2, 0, 1)

        # Step 4: Add batch dimension
        batched = np.expand_dims(normalized, axis=0)

        # Ensure contiguous memory layout for ONNX Runtime
        return np.ascontiguousarray(batched, dtype=np.float32)

    def _validate_input(self, image: np.ndarray) -> None:
        """
        Validate input image.

        Args:
            image: Image to validate

        Raises:
            ValueError: If image has invalid shape
        """
        if not isinstance(image, np.ndarray):
            raise ValueError(f"Expected numpy array, got {type(image)}")

        if image.ndim != 3:
            raise ValueError(f"Expected 3D array [H, W, C], got {image.ndim}D")

        if image.shape[2] != 3:
            raise ValueError(f"Expected 3 channels, got {image.shape[2]}")

        if image.shape[0] < 1 or image.shape[1] < 1:
            raise ValueError(f"Invalid image dimensions: {image.shape[:2]}")

    def get_input_shape(self) -> Tuple[int, int, int, int]:
        """
        Get the shape of tensors produced by this builder.

        Returns:
            (1, 3, height, width) for NCHW, (1, height, width, 3) for NHWC
        """
        if self.layout is TensorLayout.NHWC:
            return (1, self.height, self.width, 3)
        return (1, 3, self.height, self.width)
