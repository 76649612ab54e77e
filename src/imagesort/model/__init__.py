"""
Model Module - ONNX Runtime Inference Engine

This module provides:
- engine: load an ONNX model and run single-tensor inference
"""

from imagesort.model.engine import (
    DEFAULT_INTER_OP_THREADS,
    DEFAULT_INTRA_OP_THREADS,
    InferenceEngine,
    ModelDescriptor,
    OnnxEngine,
    SessionConfig,
)

__all__ = [
    "DEFAULT_INTER_OP_THREADS",
    "DEFAULT_INTRA_OP_THREADS",
    "InferenceEngine",
    "ModelDescriptor",
    "OnnxEngine",
    "SessionConfig",
]
