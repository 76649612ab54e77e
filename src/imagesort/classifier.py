"""Single-image classifier.

Builds the input tensor for one image, runs one inference call and
reduces the score vector to a single label (top-1 argmax).
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import numpy as np

from imagesort.config import DEFAULT_UNKNOWN_LABEL, SortConfig
from imagesort.errors import InferenceFailure
from imagesort.labels import load_labels
from imagesort.model.engine import InferenceEngine, OnnxEngine, SessionConfig
from imagesort.processing import TensorBuilder, load_image, resolve_input_geometry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prediction:
    """Top-1 prediction for one image.

    Attributes:
        index: Index of the highest score
        label: Label for that index, or the unknown label if out of range
        score: Raw score at that index
    """

    index: int
    label: str
    score: float


def argmax_first(scores: np.ndarray | Sequence[float]) -> int:
    """Return the index of the maximum score.

    Ties go to the lowest index. NaN scores never win; if no score beats
    negative infinity the result is 0.

    Example:
        >>> argmax_first([0.2, 0.9, 0.9, 0.1])
        1
    """
    scores = np.asarray(scores, dtype=np.float64).ravel()
    if scores.size == 0:
        raise ValueError("Cannot take argmax of an empty score vector")

    # np.argmax returns the first occurrence of the maximum
    return int(np.argmax(np.where(np.isnan(scores), -np.inf, scores)))


def label_for_index(
    labels: Sequence[str],
    index: int,
    unknown_label: str = DEFAULT_UNKNOWN_LABEL,
) -> str:
    """Map a class index to its label.

    An index outside the label list means the labels file does not match
    the model's outputs. That is logged and ``unknown_label`` is returned
    instead of raising, so one bad mapping does not stop a whole run.
    """
    if 0 <= index < len(labels):
        return labels[index]

    logger.warning(
        f"Predicted index {index} is out of range for {len(labels)} labels; "
        f"returning '{unknown_label}'. Does the labels file match the model?"
    )
    return unknown_label


class Classifier:
    """Top-1 image classifier over an InferenceEngine.

    Example:
        >>> classifier = Classifier.from_paths("model.onnx", "labels.txt")
        >>> classifier.classify("photos/cat.jpg")
        'tabby'

    Attributes:
        engine: Inference engine holding the loaded model
        labels: Class labels indexed by output channel
        tensor_builder: Preprocessing pipeline matched to the model input
        input_name: Model input tensor name
        output_name: Model output tensor name
        unknown_label: Label returned for out-of-range indices
    """

    def __init__(
        self,
        engine: InferenceEngine,
        labels: Sequence[str],
        tensor_builder: TensorBuilder | None = None,
        unknown_label: str = DEFAULT_UNKNOWN_LABEL,
    ) -> None:
        """Initialize the classifier.

        Args:
            engine: Loaded inference engine; its first input and first
                output are used
            labels: Class labels indexed by output channel
            tensor_builder: Preprocessing pipeline (default: geometry
                resolved from the engine's input shape, ImageNet constants)
            unknown_label: Label for out-of-range indices
        """
        self.engine = engine
        self.labels = list(labels)
        self.unknown_label = unknown_label

        inputs = engine.list_inputs()
        outputs = engine.list_outputs()
        if not inputs or not outputs:
            raise InferenceFailure("Model must declare at least one input and one output")
        self.input_name = inputs[0]
        self.output_name = outputs[0]

        if tensor_builder is None:
            geometry = resolve_input_geometry(engine.get_input_shape(self.input_name))
            tensor_builder = TensorBuilder.from_geometry(geometry)
        self.tensor_builder = tensor_builder

    @classmethod
    def from_paths(
        cls,
        model_path: Path | str,
        labels_path: Path | str,
        config: SortConfig | None = None,
    ) -> "Classifier":
        """Load model and labels from disk and build a classifier.

        Args:
            model_path: Path to ONNX model
            labels_path: Path to labels file
            config: Run configuration (default: SortConfig())

        Returns:
            Ready-to-use Classifier

        Raises:
            ResourceNotFound: If the model or labels file is missing
            InferenceFailure: If the model cannot be loaded
        """
        config = config or SortConfig()

        session_config = SessionConfig(
            intra_op_threads=config.onnx_runtime.intra_op_num_threads,
            inter_op_threads=config.onnx_runtime.inter_op_num_threads,
            providers=list(config.onnx_runtime.providers),
        )
        engine = OnnxEngine(model_path, session_config)

        geometry = resolve_input_geometry(
            engine.descriptor.input_shape,
            default_width=config.preprocessing.default_width,
            default_height=config.preprocessing.default_height,
        )
        logger.info(
            f"Model expects input dimensions: {geometry.width}x{geometry.height} "
            f"({geometry.layout.value})"
        )

        tensor_builder = TensorBuilder.from_geometry(
            geometry,
            mean=config.normalization.mean,
            std=config.normalization.std,
        )

        labels = load_labels(labels_path)

        num_classes = engine.descriptor.num_classes
        if num_classes is not None and num_classes != len(labels):
            logger.warning(
                f"Model declares {num_classes} outputs but {len(labels)} labels "
                f"were loaded from {labels_path}"
            )

        return cls(
            engine,
            labels,
            tensor_builder=tensor_builder,
            unknown_label=config.organizer.unknown_label,
        )

    def classify_tensor(self, tensor: np.ndarray) -> Prediction:
        """Run inference on a prepared tensor and return the top-1 prediction.

        Raises:
            InferenceFailure: If the engine fails or returns no scores
        """
        outputs = self.engine.run(self.input_name, tensor)

        if self.output_name not in outputs:
            raise InferenceFailure(f"Model output '{self.output_name}' missing from results")

        scores = np.asarray(outputs[self.output_name]).ravel()
        if scores.size == 0:
            raise InferenceFailure("Model returned an empty score vector")

        index = argmax_first(scores)
        label = label_for_index(self.labels, index, self.unknown_label)

        return Prediction(index=index, label=label, score=float(scores[index]))

    def predict(self, image_path: Path | str) -> Prediction:
        """Decode an image file, preprocess it and classify it.

        Raises:
            ValueError: If the image cannot be decoded
            InferenceFailure: If inference fails
        """
        image = load_image(image_path)
        return self.classify_tensor(self.tensor_builder(image))

    def classify(self, image_path: Path | str) -> str:
        """Return the predicted label for an image file."""
        return self.predict(image_path).label
