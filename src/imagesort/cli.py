"""Command-line entry point.

Usage:
    imagesort <image_folder_path> <onnx_model_path> <labels_file_path>
    imagesort photos/ squeezenet.onnx labels.txt --dry-run
    imagesort photos/ model.onnx labels.txt --config imagesort.yaml --log-format json
    imagesort --write-config imagesort.yaml

Exit codes:
    0  completed (individual file failures are logged, not fatal)
    1  error during setup (e.g. corrupt model, bad config, invalid IMAGESORT_* value)
    2  usage error
    3  image folder not found
    4  ONNX model file not found
    5  labels file not found
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from imagesort import __version__
from imagesort.classifier import Classifier
from imagesort.config import get_settings, load_config, save_config_template
from imagesort.errors import ImageSortError, ResourceNotFound
from imagesort.logger import setup_logging
from imagesort.organizer import FolderOrganizer

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_FOLDER_NOT_FOUND = 3
EXIT_MODEL_NOT_FOUND = 4
EXIT_LABELS_NOT_FOUND = 5

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class InputNotFound(ResourceNotFound):
    """A command-line input path is missing; carries the exit code to use."""

    def __init__(self, message: str, exit_code: int) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class WriteConfigAction(argparse.Action):
    """Write the default YAML configuration to the given path and exit."""

    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Any,
        option_string: Optional[str] = None,
    ) -> None:
        try:
            save_config_template(values)
        except OSError as e:
            parser.exit(EXIT_ERROR, f"Error: cannot write config template: {e}\n")
        parser.exit(EXIT_OK, f"Wrote default configuration to {values}\n")


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="imagesort",
        description="Classify images with an ONNX model and sort them into label folders",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  imagesort ~/Pictures/inbox squeezenet1.1-7.onnx synset.txt
  imagesort ./photos model.onnx labels.txt --dry-run

The labels file must have one category name per line, in the same order
as the model's output classes. ONNX classification models are available
from the ONNX Model Zoo.
        """,
    )

    parser.add_argument("image_folder", type=Path, help="Folder containing images to sort")
    parser.add_argument("model", type=Path, help="Path to the ONNX classification model")
    parser.add_argument("labels", type=Path, help="Path to the labels file")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML run configuration (default: $IMAGESORT_CONFIG_FILE)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Classify and report planned moves without moving anything",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default: $IMAGESORT_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Log output format (default: $IMAGESORT_LOG_FORMAT or text)",
    )
    parser.add_argument(
        "--write-config",
        action=WriteConfigAction,
        metavar="PATH",
        type=Path,
        help="Write the default YAML configuration to PATH and exit",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def validate_inputs(image_folder: Path, model: Path, labels: Path) -> None:
    """Check that every input path exists before anything is loaded or moved.

    Raises:
        InputNotFound: For the first missing input
    """
    if not image_folder.is_dir():
        raise InputNotFound(f"Image folder not found: {image_folder}", EXIT_FOLDER_NOT_FOUND)
    if not model.is_file():
        raise InputNotFound(f"ONNX model file not found: {model}", EXIT_MODEL_NOT_FOUND)
    if not labels.is_file():
        raise InputNotFound(f"Labels file not found: {labels}", EXIT_LABELS_NOT_FOUND)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else EXIT_USAGE

    try:
        settings = get_settings()
        setup_logging(
            args.log_level or settings.LOG_LEVEL,
            args.log_format or settings.LOG_FORMAT,
        )
    except (ValidationError, ValueError) as e:
        print(f"Error: invalid IMAGESORT_* environment setting: {e}", file=sys.stderr)
        return EXIT_ERROR

    try:
        validate_inputs(args.image_folder, args.model, args.labels)
    except InputNotFound as e:
        logger.error(f"Error: {e}")
        return e.exit_code

    try:
        config = load_config(args.config or settings.CONFIG_FILE)
        if settings.INTRA_OP_THREADS is not None:
            config.onnx_runtime.intra_op_num_threads = settings.INTRA_OP_THREADS
        if settings.INTER_OP_THREADS is not None:
            config.onnx_runtime.inter_op_num_threads = settings.INTER_OP_THREADS

        classifier = Classifier.from_paths(args.model, args.labels, config)
    except ImageSortError as e:
        logger.error(f"Error: {e}")
        return EXIT_ERROR
    except Exception:
        logger.exception("An unexpected error occurred during setup")
        return EXIT_ERROR

    organizer = FolderOrganizer(
        classifier,
        extensions=config.organizer.extensions,
        fallback_folder=config.organizer.fallback_folder,
        dry_run=args.dry_run,
    )
    report = organizer.organize(args.image_folder)

    if report.failed:
        logger.warning(f"{len(report.failed)} of {report.total} images could not be processed")
    logger.info("Image classification and organization complete")

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
