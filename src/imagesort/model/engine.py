"""ONNX Runtime Inference Engine.

This module wraps an ONNX Runtime inference session behind the small
interface the classifier needs:

    list_inputs() -> names
    list_outputs() -> names
    get_input_shape(name) -> ordered dims
    run(input_name, tensor) -> {output_name: scores}

Anything satisfying the InferenceEngine protocol can stand in for the
ONNX session, which is how the tests drive the classifier without a model.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import numpy as np

from imagesort.errors import InferenceFailure, ResourceNotFound

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_INTRA_OP_THREADS: int = 2
"""ONNX Runtime intra-op parallelism (within single operator)."""

DEFAULT_INTER_OP_THREADS: int = 1
"""ONNX Runtime inter-op parallelism (across operators)."""

# Map of ONNX type strings to numpy dtypes
ONNX_TO_NUMPY: dict[str, Any] = {
    "tensor(float)": np.float32,
    "tensor(float16)": np.float16,
    "tensor(double)": np.float64,
    "tensor(int64)": np.int64,
    "tensor(int32)": np.int32,
}


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class ModelDescriptor:
    """Information about a loaded model.

    Attributes:
        path: Path to ONNX file
        input_name: Name of input tensor
        input_shape: Declared input shape (symbolic dims kept as-is)
        input_dtype: Expected input dtype
        output_name: Name of output tensor
        output_shape: Declared output shape
    """

    path: Path
    input_name: str
    input_shape: tuple[Any, ...]
    input_dtype: Any
    output_name: str
    output_shape: tuple[Any, ...]

    @property
    def num_classes(self) -> int | None:
        """Static size of the last output dimension, if known."""
        if not self.output_shape:
            return None
        last = self.output_shape[-1]
        return int(last) if isinstance(last, int) and last > 0 else None


@dataclass
class SessionConfig:
    """Configuration for ONNX Runtime inference session.

    Attributes:
        intra_op_threads: Number of threads for intra-op parallelism
        inter_op_threads: Number of threads for inter-op parallelism
        providers: Execution providers (default: CPUExecutionProvider)
    """

    intra_op_threads: int = DEFAULT_INTRA_OP_THREADS
    inter_op_threads: int = DEFAULT_INTER_OP_THREADS
    providers: list[str] = field(default_factory=lambda: ["CPUExecutionProvider"])


# =============================================================================
# Engine Protocol
# =============================================================================


class InferenceEngine(Protocol):
    """Protocol for a loaded inference graph."""

    def list_inputs(self) -> list[str]:
        """Return input tensor names in declaration order."""
        ...

    def list_outputs(self) -> list[str]:
        """Return output tensor names in declaration order."""
        ...

    def get_input_shape(self, name: str) -> tuple[Any, ...]:
        """Return the declared shape of an input tensor."""
        ...

    def run(self, input_name: str, tensor: np.ndarray) -> dict[str, np.ndarray]:
        """Run inference on one tensor and return outputs by name."""
        ...


# =============================================================================
# ONNX Runtime Engine
# =============================================================================


class OnnxEngine:
    """InferenceEngine backed by an ONNX Runtime InferenceSession.

    The session is created once and reused for every image.

    Example:
        >>> engine = OnnxEngine(Path("models/squeezenet.onnx"))
        >>> engine.descriptor.input_shape
        (1, 3, 224, 224)
        >>> outputs = engine.run(engine.descriptor.input_name, tensor)

    Attributes:
        descriptor: ModelDescriptor for the first input/output
        config: Session configuration (thread settings, providers)
    """

    def __init__(
        self,
        model_path: Path | str,
        config: SessionConfig | None = None,
    ) -> None:
        """Load an ONNX model.

        Args:
            model_path: Path to .onnx file
            config: Session configuration (default: 2 intra-op, 1 inter-op threads)

        Raises:
            ResourceNotFound: If model file not found
            InferenceFailure: If ONNX Runtime cannot load the model
        """
        import onnxruntime as ort

        model_path = Path(model_path)
        self.config = config or SessionConfig()

        if not model_path.is_file():
            raise ResourceNotFound(f"ONNX model file not found: {model_path}")

        logger.info(f"Loading model from {model_path}")

        sess_options = ort.SessionOptions()
        sess_options.intra_op_num_threads = self.config.intra_op_threads
        sess_options.inter_op_num_threads = self.config.inter_op_threads

        try:
            self._session = ort.InferenceSession(
                str(model_path),
                sess_options,
                providers=self.config.providers,
            )
        except Exception as e:
            raise InferenceFailure(f"Failed to load model {model_path}: {e}") from e

        input_meta = self._session.get_inputs()[0]
        output_meta = self._session.get_outputs()[0]

        self.descriptor = ModelDescriptor(
            path=model_path,
            input_name=input_meta.name,
            input_shape=tuple(input_meta.shape),
            input_dtype=ONNX_TO_NUMPY.get(input_meta.type, np.float32),
            output_name=output_meta.name,
            output_shape=tuple(output_meta.shape),
        )

        logger.info(f"  Input: {self.descriptor.input_name} {list(self.descriptor.input_shape)}")
        logger.info(f"  Output: {self.descriptor.output_name} {list(self.descriptor.output_shape)}")

    def list_inputs(self) -> list[str]:
        """Return input tensor names in declaration order."""
        return [meta.name for meta in self._session.get_inputs()]

    def list_outputs(self) -> list[str]:
        """Return output tensor names in declaration order."""
        return [meta.name for meta in self._session.get_outputs()]

    def get_input_shape(self, name: str) -> tuple[Any, ...]:
        """Return the declared shape of an input tensor.

        Raises:
            KeyError: If the model has no input with this name
        """
        for meta in self._session.get_inputs():
            if meta.name == name:
                return tuple(meta.shape)
        raise KeyError(f"Unknown model input: {name}")

    def run(self, input_name: str, tensor: np.ndarray) -> dict[str, np.ndarray]:
        """Run one inference call.

        Args:
            input_name: Input tensor name to bind
            tensor: Input tensor; cast to the declared dtype of the model
                input (e.g. float16) when they differ

        Returns:
            Mapping of output name to output array

        Raises:
            InferenceFailure: If ONNX Runtime rejects the input or fails
        """
        if input_name == self.descriptor.input_name and tensor.dtype != self.descriptor.input_dtype:
            tensor = tensor.astype(self.descriptor.input_dtype)

        output_names = self.list_outputs()
        try:
            outputs = self._session.run(output_names, {input_name: tensor})
        except Exception as e:
            raise InferenceFailure(str(e)) from e

        return dict(zip(output_names, outputs))
