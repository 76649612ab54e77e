"""Label store: ordered category names for model output channels."""

import logging
from pathlib import Path

from imagesort.errors import ResourceNotFound

logger = logging.getLogger(__name__)


def load_labels(labels_file: Path | str) -> list[str]:
    """Load class labels from a text file, one label per line.

    Line ``i`` of the file (ignoring blank lines) names output channel ``i``
    of the model. Surrounding whitespace is stripped; duplicates are kept.

    Args:
        labels_file: Path to a UTF-8 labels file

    Returns:
        Labels in file order

    Raises:
        ResourceNotFound: If the labels file does not exist

    Example:
        >>> load_labels("labels.txt")
        ['cat', 'dog', 'bird']
    """
    labels_file = Path(labels_file)
    if not labels_file.is_file():
        raise ResourceNotFound(f"Labels file not found: {labels_file}")

    # utf-8-sig drops a leading BOM written by some editors
    text = labels_file.read_text(encoding="utf-8-sig")
    labels = [line.strip() for line in text.splitlines() if line.strip()]

    logger.info(f"Loaded {len(labels)} labels from {labels_file}")
    return labels
