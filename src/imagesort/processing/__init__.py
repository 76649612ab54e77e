"""
Processing Module - Image Decoding and Input Tensor Preparation

This module provides:
- transforms: image loading, stretch resize, mean/std normalization
- tensor_builder: model input geometry discovery and tensor construction
"""

from imagesort.processing.transforms import (
    IMAGENET_MEAN,
    IMAGENET_STD,
    load_image,
    normalize,
    resize_stretch,
)

from imagesort.processing.tensor_builder import (
    DEFAULT_INPUT_SIZE,
    InputGeometry,
    TensorBuilder,
    TensorLayout,
    resolve_input_geometry,
)

__all__ = [
    # Low-level transforms
    "IMAGENET_MEAN",
    "IMAGENET_STD",
    "load_image",
    "normalize",
    "resize_stretch",
    # Tensor building
    "DEFAULT_INPUT_SIZE",
    "InputGeometry",
    "TensorBuilder",
    "TensorLayout",
    "resolve_input_geometry",
]
