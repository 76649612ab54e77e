"""Folder organizer.

Moves each image in the top level of a folder into a subfolder named after
its predicted label:

    photos/IMG_001.jpg  ->  photos/tabby/IMG_001.jpg

Subfolders are not scanned, so files that are already sorted are left alone
on later runs.
"""

import logging
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Protocol

from imagesort.config import DEFAULT_FALLBACK_FOLDER, DEFAULT_IMAGE_EXTENSIONS

logger = logging.getLogger(__name__)

# Characters rejected in file names on at least one supported platform
_INVALID_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


class LabelPredictor(Protocol):
    """Anything that maps an image path to a label."""

    def classify(self, image_path: Path) -> str:
        ...


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class MoveRecord:
    """One file moved (or planned, in a dry run)."""

    source: Path
    destination: Path
    label: str


@dataclass(frozen=True)
class FailedFile:
    """One file that could not be classified or moved."""

    source: Path
    error: str


@dataclass
class OrganizeReport:
    """Outcome of an organize run."""

    moved: List[MoveRecord] = field(default_factory=list)
    failed: List[FailedFile] = field(default_factory=list)
    dry_run: bool = False

    @property
    def total(self) -> int:
        return len(self.moved) + len(self.failed)

    def counts_by_label(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for record in self.moved:
            counts[record.label] = counts.get(record.label, 0) + 1
        return counts


# =============================================================================
# Helpers
# =============================================================================

def scan_images(
    folder: Path | str,
    extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS,
) -> List[Path]:
    """List image files directly inside folder (non-recursive), sorted by name.

    Extensions are matched case-insensitively.
    """
    wanted = {ext.lower() for ext in extensions}
    return sorted(
        path
        for path in Path(folder).iterdir()
        if path.is_file() and path.suffix.lower() in wanted
    )


def sanitize_label(label: str, fallback: str = DEFAULT_FALLBACK_FOLDER) -> str:
    """Turn a label into a safe directory name.

    Each invalid character becomes ``_``. Labels that end up blank, or as
    ``.``/``..``, map to ``fallback``.

    Example:
        >>> sanitize_label("a/b:c")
        'a_b_c'
        >>> sanitize_label("   ")
        'Unknown_Category'
    """
    sanitized = _INVALID_NAME_CHARS.sub("_", label)
    if not sanitized.strip() or sanitized in (".", ".."):
        return fallback
    return sanitized


def resolve_destination(directory: Path, filename: str) -> Path:
    """Return a path in directory for filename that does not exist yet.

    On collision a counter is appended before the extension:
    ``photo.jpg``, ``photo_1.jpg``, ``photo_2.jpg``, ...
    """
    destination = directory / filename
    if not destination.exists():
        return destination

    stem = Path(filename).stem
    suffix = Path(filename).suffix
    counter = 1
    while destination.exists():
        destination = directory / f"{stem}_{counter}{suffix}"
        counter += 1

    return destination


# =============================================================================
# Organizer
# =============================================================================

class FolderOrganizer:
    """Classifies images in a folder and moves them into label subfolders.

    Files are processed one at a time. A failure on one file is logged and
    recorded in the report; the remaining files are still processed.

    Attributes:
        classifier: Predictor mapping an image path to a label
        extensions: Recognized image extensions
        fallback_folder: Folder name for labels that sanitize to nothing
        dry_run: If True, only log and report planned moves
    """

    def __init__(
        self,
        classifier: LabelPredictor,
        extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS,
        fallback_folder: str = DEFAULT_FALLBACK_FOLDER,
        dry_run: bool = False,
    ) -> None:
        self.classifier = classifier
        self.extensions = [ext.lower() for ext in extensions]
        self.fallback_folder = fallback_folder
        self.dry_run = dry_run

    def organize(self, folder: Path | str) -> OrganizeReport:
        """Classify and move every image directly inside folder.

        Args:
            folder: Folder to organize

        Returns:
            OrganizeReport with moved and failed files
        """
        folder = Path(folder)
        report = OrganizeReport(dry_run=self.dry_run)

        image_files = scan_images(folder, self.extensions)
        if not image_files:
            logger.info(f"No image files found in {folder}")
            return report

        logger.info(f"Found {len(image_files)} images to process in {folder}")

        for image_file in image_files:
            try:
                record = self._process(folder, image_file)
            except Exception as e:
                logger.error(
                    f"Error processing {image_file.name}: {e}",
                    extra={"image": image_file.name, "reason": type(e).__name__},
                )
                report.failed.append(FailedFile(source=image_file, error=str(e)))
                continue
            report.moved.append(record)

        self._log_summary(report)
        return report

    def _process(self, folder: Path, image_file: Path) -> MoveRecord:
        label = self.classifier.classify(image_file)
        logger.info(
            f"{image_file.name}: predicted {label}",
            extra={"image": image_file.name, "label": label},
        )

        category_dir = folder / sanitize_label(label, self.fallback_folder)
        destination = resolve_destination(category_dir, image_file.name)
        if destination.name != image_file.name:
            logger.warning(
                f"{image_file.name} already exists in {category_dir.name}/; "
                f"renaming to {destination.name}"
            )

        if self.dry_run:
            logger.info(
                f"[dry run] would move {image_file.name} -> {destination}",
                extra={"image": image_file.name, "destination": destination},
            )
        else:
            category_dir.mkdir(parents=True, exist_ok=True)
            shutil.move(str(image_file), str(destination))
            logger.info(
                f"Moved {image_file.name} -> {destination}",
                extra={"image": image_file.name, "destination": destination},
            )

        return MoveRecord(source=image_file, destination=destination, label=label)

    def _log_summary(self, report: OrganizeReport) -> None:
        verb = "Would move" if report.dry_run else "Moved"
        logger.info(f"{verb} {len(report.moved)} images, {len(report.failed)} failed")
        for label, count in sorted(report.counts_by_label().items()):
            logger.info(f"  {label}: {count}")
