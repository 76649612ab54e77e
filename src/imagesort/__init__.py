"""
imagesort - Sort Images into Folders by ONNX Classification

Each image in a folder is decoded, resized and normalized into a model
input tensor, classified with a pre-trained ONNX model (top-1), and moved
into a subfolder named after the predicted label.

Modules:
- processing: image decoding and input tensor preparation
- model: ONNX Runtime inference engine
- labels: label file loading
- classifier: single-image top-1 classification
- organizer: folder scanning and file moves
- config: environment settings and YAML run configuration
"""

__version__ = "0.1.0"

from imagesort.classifier import Classifier, Prediction, argmax_first, label_for_index
from imagesort.errors import ConfigError, ImageSortError, InferenceFailure, ResourceNotFound
from imagesort.labels import load_labels
from imagesort.organizer import FolderOrganizer, OrganizeReport
from imagesort.processing import TensorBuilder, resolve_input_geometry

__all__ = [
    "Classifier",
    "Prediction",
    "argmax_first",
    "label_for_index",
    "ConfigError",
    "ImageSortError",
    "InferenceFailure",
    "ResourceNotFound",
    "load_labels",
    "FolderOrganizer",
    "OrganizeReport",
    "TensorBuilder",
    "resolve_input_geometry",
    "__version__",
]
