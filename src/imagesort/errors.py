"""Exception hierarchy for imagesort.

Each exception also derives from the closest builtin so callers that only
know about ``FileNotFoundError``/``RuntimeError``/``ValueError`` still catch
them.
"""


class ImageSortError(Exception):
    """Base class for all imagesort errors."""


class ResourceNotFound(ImageSortError, FileNotFoundError):
    """A required input (image folder, model file, labels file, config) is missing."""


class InferenceFailure(ImageSortError, RuntimeError):
    """The inference engine failed or produced an unusable output."""


class ConfigError(ImageSortError, ValueError):
    """The run configuration file is malformed or has invalid values."""
