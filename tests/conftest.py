"""
Pytest Fixtures - Shared Test Fixtures for imagesort

Fixtures:
    sample_image: Sample RGB image (480x640) for testing
    sample_image_small: Small RGB image (10x10) for edge case testing
    solid_image: Factory for single-color RGB images
    write_image: Helper that saves an RGB array to disk
    fake_engine: In-memory InferenceEngine with scripted scores
"""

from pathlib import Path
from typing import Any, Callable

import cv2
import numpy as np
import pytest


# =============================================================================
# Image Fixtures
# =============================================================================

@pytest.fixture
def sample_image() -> np.ndarray:
    """
    Sample RGB image for testing.

    Returns:
        RGB uint8 array with shape [480, 640, 3]
    """
    rng = np.random.default_rng(42)
    return rng.integers(0, 256, (480, 640, 3), dtype=np.uint8)


@pytest.fixture
def sample_image_small() -> np.ndarray:
    """
    Small RGB image for edge case testing.

    Returns:
        RGB uint8 array with shape [10, 10, 3]
    """
    rng = np.random.default_rng(46)
    return rng.integers(0, 256, (10, 10, 3), dtype=np.uint8)


@pytest.fixture
def solid_image() -> Callable[..., np.ndarray]:
    """Factory for single-color RGB images."""

    def _make(rgb: tuple[int, int, int], height: int = 10, width: int = 10) -> np.ndarray:
        return np.full((height, width, 3), rgb, dtype=np.uint8)

    return _make


@pytest.fixture
def write_image() -> Callable[[Path, np.ndarray], Path]:
    """Save an RGB uint8 array to disk (format chosen by suffix)."""

    def _write(path: Path, rgb: np.ndarray) -> Path:
        ok = cv2.imwrite(str(path), cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR))
        assert ok, f"failed to write test image {path}"
        return path

    return _write


# =============================================================================
# Engine Fixtures
# =============================================================================

class FakeEngine:
    """InferenceEngine stand-in that returns scripted scores."""

    def __init__(
        self,
        scores: Any = None,
        input_shape: tuple = (1, 3, 8, 8),
        error: Exception | None = None,
    ) -> None:
        self.scores = np.array([[0.1, 0.7, 0.2]], dtype=np.float32) if scores is None else scores
        self.input_shape = input_shape
        self.error = error
        self.calls: list[tuple[str, np.ndarray]] = []

    def list_inputs(self) -> list[str]:
        return ["input"]

    def list_outputs(self) -> list[str]:
        return ["output"]

    def get_input_shape(self, name: str) -> tuple:
        return self.input_shape

    def run(self, input_name: str, tensor: np.ndarray) -> dict[str, np.ndarray]:
        self.calls.append((input_name, tensor))
        if self.error is not None:
            raise self.error
        return {"output": np.asarray(self.scores)}


@pytest.fixture
def fake_engine() -> FakeEngine:
    """FakeEngine with an 8x8 NCHW input and scores favouring index 1."""
    return FakeEngine()


@pytest.fixture
def labels_file(tmp_path: Path) -> Path:
    """Labels file with three classes."""
    path = tmp_path / "labels.txt"
    path.write_text("cat\ndog\nbird\n", encoding="utf-8")
    return path
