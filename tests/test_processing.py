"""
Unit Tests for Processing Module

This module tests:
- transforms.py: load_image, resize_stretch, normalize
- tensor_builder.py: TensorBuilder, resolve_input_geometry

Test Categories:
- Shape validation: Output tensor dimensions and layout
- Dtype validation: Output tensors are float32
- Range validation: Output values within per-channel bounds
- Determinism: Identical input gives bit-identical output
- Geometry: Model input shape interpretation and fallbacks
"""

import logging
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from imagesort.processing.tensor_builder import (
    DEFAULT_INPUT_SIZE,
    InputGeometry,
    TensorBuilder,
    TensorLayout,
    resolve_input_geometry,
)
from imagesort.processing.transforms import (
    IMAGENET_MEAN,
    IMAGENET_STD,
    load_image,
    normalize,
    resize_stretch,
)

# =============================================================================
# Tests for transforms.py
# =============================================================================


class TestNormalize:
    """Tests for per-channel normalization."""

    def test_output_dtype(self, sample_image: np.ndarray) -> None:
        """Output should be float32."""
        assert normalize(sample_image).dtype == np.float32

    def test_output_shape(self, sample_image: np.ndarray) -> None:
        """Output shape should match input shape."""
        assert normalize(sample_image).shape == sample_image.shape

    def test_zero_image(self) -> None:
        """Zero image should normalize to -mean/std."""
        zero_image = np.zeros((4, 4, 3), dtype=np.uint8)
        normalized = normalize(zero_image)

        expected = -IMAGENET_MEAN / IMAGENET_STD
        assert np.allclose(normalized[0, 0, :], expected)

    def test_white_image(self) -> None:
        """White image (255) should normalize to (1-mean)/std."""
        white_image = np.full((4, 4, 3), 255, dtype=np.uint8)
        normalized = normalize(white_image)

        expected = (1.0 - IMAGENET_MEAN) / IMAGENET_STD
        assert np.allclose(normalized[0, 0, :], expected)

    def test_custom_constants(self) -> None:
        """Injected mean/std should replace the ImageNet defaults."""
        image = np.full((2, 2, 3), 255, dtype=np.uint8)
        normalized = normalize(image, mean=[0.5, 0.5, 0.5], std=[0.5, 0.5, 0.5])

        assert np.allclose(normalized, 1.0)


class TestResizeStretch:
    """Tests for stretch resize."""

    @pytest.mark.parametrize("width,height", [(224, 224), (299, 150), (32, 64)])
    def test_output_shape(self, sample_image: np.ndarray, width: int, height: int) -> None:
        """Output should be exactly height x width, ignoring aspect ratio."""
        resized = resize_stretch(sample_image, width, height)

        assert resized.shape == (height, width, 3)

    def test_preserves_dtype(self, sample_image: np.ndarray) -> None:
        """Resize should keep uint8 dtype."""
        assert resize_stretch(sample_image, 100, 100).dtype == np.uint8

    def test_solid_color_unchanged(self, solid_image) -> None:
        """Stretching a solid image should keep its color."""
        image = solid_image((10, 200, 30), height=7, width=13)
        resized = resize_stretch(image, 224, 224)

        assert np.all(resized == np.array([10, 200, 30], dtype=np.uint8))


class TestLoadImage:
    """Tests for image loading."""

    def test_load_png_is_rgb(self, tmp_path: Path, solid_image, write_image) -> None:
        """Decoded pixels should be in RGB order."""
        path = write_image(tmp_path / "red.png", solid_image((255, 0, 0)))

        image = load_image(path)

        assert image.shape == (10, 10, 3)
        assert image.dtype == np.uint8
        assert tuple(image[0, 0]) == (255, 0, 0)

    def test_load_gif(self, tmp_path: Path) -> None:
        """GIF files should decode through the Pillow path."""
        path = tmp_path / "blue.gif"
        Image.new("RGB", (6, 4), (0, 0, 255)).save(path)

        image = load_image(path)

        assert image.shape == (4, 6, 3)
        assert tuple(image[0, 0]) == (0, 0, 255)

    def test_load_non_ascii_path(self, tmp_path: Path, solid_image, write_image) -> None:
        """Paths with non-ASCII characters should load."""
        path = write_image(tmp_path / "café.png", solid_image((0, 255, 0)))

        assert tuple(load_image(path)[0, 0]) == (0, 255, 0)

    def test_nonexistent_file(self) -> None:
        """Should raise ValueError for missing file."""
        with pytest.raises(ValueError, match="Failed to load"):
            load_image("/nonexistent/path/image.jpg")

    def test_corrupt_file(self, tmp_path: Path) -> None:
        """Should raise ValueError for undecodable content."""
        path = tmp_path / "broken.jpg"
        path.write_bytes(b"not an image")

        with pytest.raises(ValueError, match="Failed to load"):
            load_image(path)

    def test_empty_file(self, tmp_path: Path) -> None:
        """Should raise ValueError for an empty file."""
        path = tmp_path / "empty.png"
        path.write_bytes(b"")

        with pytest.raises(ValueError, match="Failed to load"):
            load_image(path)


# =============================================================================
# Tests for TensorBuilder
# =============================================================================


class TestTensorBuilder:
    """Tests for TensorBuilder class."""

    @pytest.fixture
    def builder(self) -> TensorBuilder:
        """Create TensorBuilder with a non-square target to catch H/W swaps."""
        return TensorBuilder(width=64, height=32)

    def test_output_shape(self, builder: TensorBuilder, sample_image: np.ndarray) -> None:
        """Output tensor should have shape [1, 3, H, W]."""
        tensor = builder(sample_image)

        assert tensor.shape == (1, 3, 32, 64)

    def test_output_dtype(self, builder: TensorBuilder, sample_image: np.ndarray) -> None:
        """Output tensor should be float32."""
        assert builder(sample_image).dtype == np.float32

    def test_output_contiguous(self, builder: TensorBuilder, sample_image: np.ndarray) -> None:
        """Output tensor should be contiguous for ONNX Runtime."""
        assert builder(sample_image).flags["C_CONTIGUOUS"]

    def test_output_range_per_channel(
        self,
        builder: TensorBuilder,
        sample_image: np.ndarray,
    ) -> None:
        """Each channel should lie within [(0-mean)/std, (1-mean)/std]."""
        tensor = builder(sample_image)

        low = -IMAGENET_MEAN / IMAGENET_STD
        high = (1.0 - IMAGENET_MEAN) / IMAGENET_STD
        for c in range(3):
            channel = tensor[0, c]
            assert channel.min() >= low[c] - 1e-6
            assert channel.max() <= high[c] + 1e-6

    def test_planar_layout(self, solid_image) -> None:
        """Channel c of the tensor should hold only that channel's values."""
        builder = TensorBuilder(width=4, height=4)
        tensor = builder(solid_image((255, 0, 0)))

        assert np.allclose(tensor[0, 0], (1.0 - 0.485) / 0.229)
        assert np.allclose(tensor[0, 1], (0.0 - 0.456) / 0.224)
        assert np.allclose(tensor[0, 2], (0.0 - 0.406) / 0.225)

    def test_pixel_position(self) -> None:
        """Pixel (x, y) should land at [0, c, y, x]."""
        image = np.zeros((3, 5, 3), dtype=np.uint8)
        image[1, 4] = (255, 255, 255)  # y=1, x=4
        builder = TensorBuilder(width=5, height=3)

        tensor = builder(image)

        white = (1.0 - IMAGENET_MEAN) / IMAGENET_STD
        assert np.allclose(tensor[0, :, 1, 4], white)
        assert tensor[0, 0, 0, 0] < 0

    def test_deterministic(self, builder: TensorBuilder, sample_image: np.ndarray) -> None:
        """Identical input should give bit-identical tensors."""
        first = builder(sample_image)
        second = TensorBuilder(width=64, height=32)(sample_image.copy())

        assert np.array_equal(first, second)
        assert first.tobytes() == second.tobytes()

    def test_does_not_modify_input(self, builder: TensorBuilder, sample_image: np.ndarray) -> None:
        """Original image should not be modified."""
        original = sample_image.copy()

        builder(sample_image)

        assert np.array_equal(sample_image, original)

    def test_small_input(self, builder: TensorBuilder, sample_image_small: np.ndarray) -> None:
        """Small images should be upscaled to the target size."""
        assert builder(sample_image_small).shape == (1, 3, 32, 64)

    def test_nhwc_layout(self, sample_image: np.ndarray) -> None:
        """NHWC builders should emit [1, H, W, 3] with the same values."""
        nchw = TensorBuilder(width=16, height=8)(sample_image)
        nhwc = TensorBuilder(width=16, height=8, layout=TensorLayout.NHWC)(sample_image)

        assert nhwc.shape == (1, 8, 16, 3)
        assert np.array_equal(nhwc[0].transpose(2, 0, 1), nchw[0])

    def test_get_input_shape(self) -> None:
        """Declared output shape should follow the layout."""
        assert TensorBuilder(width=10, height=20).get_input_shape() == (1, 3, 20, 10)
        assert TensorBuilder(
            width=10, height=20, layout=TensorLayout.NHWC
        ).get_input_shape() == (1, 20, 10, 3)

    def test_from_geometry(self) -> None:
        """Builder should adopt geometry size and layout."""
        geometry = InputGeometry(width=12, height=6, layout=TensorLayout.NHWC)

        builder = TensorBuilder.from_geometry(geometry)

        assert (builder.width, builder.height, builder.layout) == (12, 6, TensorLayout.NHWC)

    def test_invalid_input_wrong_ndim(self, builder: TensorBuilder) -> None:
        """Should raise ValueError for non-3D input."""
        with pytest.raises(ValueError, match="3D array"):
            builder(np.zeros((100, 100), dtype=np.uint8))

    def test_invalid_input_wrong_channels(self, builder: TensorBuilder) -> None:
        """Should raise ValueError for non-RGB input."""
        with pytest.raises(ValueError, match="3 channels"):
            builder(np.zeros((100, 100, 4), dtype=np.uint8))

    def test_invalid_input_empty(self, builder: TensorBuilder) -> None:
        """Should raise ValueError for zero-size images."""
        with pytest.raises(ValueError, match="Invalid image dimensions"):
            builder(np.zeros((0, 10, 3), dtype=np.uint8))

    @pytest.mark.parametrize(
        "mean,std",
        [
            ([0.5, 0.5], [0.2, 0.2, 0.2]),
            ([0.5, 0.5, 0.5], [0.2, 0.2, 0.2, 0.2]),
            ([0.5, 0.5, 0.5], [0.2, 0.0, 0.2]),
        ],
    )
    def test_invalid_constants(self, mean: list, std: list) -> None:
        """Mean/std must be 3-element vectors with non-zero std."""
        with pytest.raises(ValueError):
            TensorBuilder(mean=mean, std=std)

    def test_invalid_size(self) -> None:
        """Target size must be positive."""
        with pytest.raises(ValueError, match="Invalid target size"):
            TensorBuilder(width=0, height=224)


# =============================================================================
# Tests for resolve_input_geometry
# =============================================================================


class TestResolveInputGeometry:
    """Tests for model input shape interpretation."""

    def test_channel_first(self) -> None:
        """[1, 3, H, W] should resolve to W x H, NCHW."""
        geometry = resolve_input_geometry((1, 3, 240, 320))

        assert geometry == InputGeometry(width=320, height=240, layout=TensorLayout.NCHW)

    def test_channel_last_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        """[1, H, W, 3] should resolve to NHWC and log a warning."""
        with caplog.at_level(logging.WARNING):
            geometry = resolve_input_geometry((1, 240, 320, 3))

        assert geometry.layout is TensorLayout.NHWC
        assert (geometry.width, geometry.height) == (320, 240)
        assert not geometry.is_fallback
        assert "NHWC" in caplog.text

    def test_dynamic_batch(self) -> None:
        """Symbolic batch dimensions should be accepted."""
        geometry = resolve_input_geometry(("batch_size", 3, 224, 224))

        assert geometry == InputGeometry(width=224, height=224)

    @pytest.mark.parametrize(
        "shape",
        [
            (1, 1, 28, 28),
            (2, 3, 224, 224),
            (3, 224, 224),
            (1, 3, 224, 224, 1),
            (),
        ],
    )
    def test_fallback(self, shape: tuple, caplog: pytest.LogCaptureFixture) -> None:
        """Unrecognized shapes should fall back to 224x224 with a warning."""
        with caplog.at_level(logging.WARNING):
            geometry = resolve_input_geometry(shape)

        assert (geometry.width, geometry.height) == (DEFAULT_INPUT_SIZE, DEFAULT_INPUT_SIZE)
        assert geometry.layout is TensorLayout.NCHW
        assert geometry.is_fallback
        assert "Assuming 224x224" in caplog.text

    def test_dynamic_spatial_dims(self, caplog: pytest.LogCaptureFixture) -> None:
        """Recognized layout with symbolic H/W should keep layout, use default size."""
        with caplog.at_level(logging.WARNING):
            geometry = resolve_input_geometry((1, 3, "height", "width"))

        assert geometry.is_fallback
        assert geometry.layout is TensorLayout.NCHW
        assert (geometry.width, geometry.height) == (224, 224)
        assert "dynamic spatial dimensions" in caplog.text

    def test_custom_default(self) -> None:
        """Fallback size should be configurable."""
        geometry = resolve_input_geometry((1, 1, 28, 28), default_width=96, default_height=64)

        assert (geometry.width, geometry.height) == (96, 64)
