import numpy as np
import pytest

cv2 = pytest.importorskip("cv2")

from facerelay.crop.encoder import FaceCropper
from facerelay.types import Rectangle


def _frame(width: int = 100, height: int = 80) -> np.ndarray:
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:, :, 1] = 200
    return image


def _decode(data: bytes) -> np.ndarray:
    return cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)


@pytest.mark.parametrize(
    "rect",
    [
        Rectangle(10, 10, 0, 20),
        Rectangle(10, 10, 20, 0),
        Rectangle(10, 10, -5, 20),
        Rectangle(10, 10, 20, -1),
        Rectangle(10, 10, 0.3, 20),  # rounds to zero pixels
    ],
)
def test_degenerate_rect_returns_none(rect):
    assert FaceCropper().crop(_frame(), rect, timestamp_ms=1) is None


def test_crop_inside_frame_is_png_of_rect_size():
    face = FaceCropper().crop(_frame(), Rectangle(10, 20, 30, 40), timestamp_ms=1234)
    assert face is not None
    assert face.mime_type == "image/png"
    assert face.timestamp_ms == 1234
    assert face.encoded_image.startswith(b"\x89PNG")
    decoded = _decode(face.encoded_image)
    assert decoded.shape == (40, 30, 4)
    assert np.all(decoded[:, :, 3] == 255)
    assert np.all(decoded[:, :, 1] == 200)


def test_crop_copies_the_right_region():
    image = _frame()
    image[20:30, 10:20] = (0, 0, 255)
    surface = FaceCropper().extract(image, Rectangle(10, 20, 10, 10))
    assert surface.shape == (10, 10, 4)
    assert np.all(surface[:, :, 2] == 255)
    assert np.all(surface[:, :, 1] == 0)


def test_out_of_bounds_rect_keeps_size_and_leaves_blank_transparent():
    surface = FaceCropper().extract(_frame(100, 80), Rectangle(-10, -5, 20, 20))
    assert surface.shape == (20, 20, 4)
    assert np.all(surface[:5, :, 3] == 0)
    assert np.all(surface[:, :10, 3] == 0)
    assert np.all(surface[5:, 10:, 3] == 255)
    assert np.all(surface[5:, 10:, 1] == 200)


def test_rect_past_far_edges_is_padded():
    surface = FaceCropper().extract(_frame(100, 80), Rectangle(90, 70, 20, 20))
    assert surface.shape == (20, 20, 4)
    assert np.all(surface[:10, :10, 3] == 255)
    assert np.all(surface[10:, :, 3] == 0)
    assert np.all(surface[:, 10:, 3] == 0)


def test_rect_fully_outside_frame_yields_nothing():
    assert FaceCropper().crop(_frame(100, 80), Rectangle(150, 10, 20, 20), timestamp_ms=1) is None
    assert FaceCropper().crop(_frame(100, 80), Rectangle(-40, -40, 20, 20), timestamp_ms=1) is None


def test_fractional_rect_is_rounded():
    surface = FaceCropper().extract(_frame(), Rectangle(10.4, 10.6, 20.6, 15.4))
    assert surface.shape == (15, 21, 4)


def test_jpeg_format():
    face = FaceCropper(image_format="jpeg").crop(_frame(), Rectangle(0, 0, 16, 16), timestamp_ms=5)
    assert face.mime_type == "image/jpeg"
    assert face.encoded_image.startswith(b"\xff\xd8")
    assert _decode(face.encoded_image).shape == (16, 16, 3)


def test_unknown_format_rejected():
    with pytest.raises(ValueError):
        FaceCropper(image_format="gif")


def test_grayscale_source_is_supported():
    gray = np.full((50, 50), 128, dtype=np.uint8)
    surface = FaceCropper().extract(gray, Rectangle(5, 5, 10, 10))
    assert surface.shape == (10, 10, 4)
    assert np.all(surface[:, :, 0] == 128)
