import io

import numpy as np
import pytest
from PIL import Image

from sketchlib.colors import pack_rgb
from sketchlib.convertors import (
    ImageUnreadableError,
    image_to_bytes,
    open_image_as_packed,
    packed_to_pil,
    save_image,
)


@pytest.fixture
def rgb():
    return np.random.default_rng(0).integers(0, 256, size=(5, 8, 3), dtype=np.uint8)


def test_open_from_path_bytes_and_pil(tmp_path, rgb):
    path = tmp_path / "photo.png"
    Image.fromarray(rgb).save(path)
    expected = pack_rgb(rgb)

    np.testing.assert_array_equal(open_image_as_packed(path), expected)
    np.testing.assert_array_equal(open_image_as_packed(str(path)), expected)
    np.testing.assert_array_equal(open_image_as_packed(path.read_bytes()), expected)
    np.testing.assert_array_equal(open_image_as_packed(Image.fromarray(rgb)), expected)


def test_open_converts_grayscale_images():
    gray = Image.fromarray(np.full((2, 3), 0x40, dtype=np.uint8))
    packed = open_image_as_packed(gray)
    assert (packed == 0x404040).all()


def test_open_missing_file_is_unreadable(tmp_path):
    with pytest.raises(ImageUnreadableError) as info:
        open_image_as_packed(tmp_path / "missing.jpg")
    assert isinstance(info.value, IOError)


def test_open_corrupt_bytes_is_unreadable():
    with pytest.raises(ImageUnreadableError):
        open_image_as_packed(b"\x89PNG broken")


def test_open_rejects_unsupported_type():
    with pytest.raises(ValueError):
        open_image_as_packed(12345)


def test_packed_to_pil(rgb):
    pil_image = packed_to_pil(pack_rgb(rgb))
    assert pil_image.mode == "RGB"
    assert pil_image.size == (8, 5)
    np.testing.assert_array_equal(np.asarray(pil_image), rgb)


@pytest.mark.parametrize("img_format", ["png", "PNG", ".png"])
def test_image_to_bytes_from_packed_is_lossless_png(rgb, img_format):
    encoded = image_to_bytes(pack_rgb(rgb), img_format)
    decoded = np.asarray(Image.open(io.BytesIO(encoded)).convert("RGB"))
    np.testing.assert_array_equal(decoded, rgb)


def test_image_to_bytes_from_pil(rgb):
    encoded = image_to_bytes(Image.fromarray(rgb), "png")
    np.testing.assert_array_equal(open_image_as_packed(encoded), pack_rgb(rgb))


def test_image_to_bytes_errors(rgb):
    with pytest.raises(ValueError):
        image_to_bytes(pack_rgb(rgb), "notaformat")
    with pytest.raises(ValueError):
        image_to_bytes(Image.fromarray(rgb), "notaformat")
    with pytest.raises(ValueError):
        image_to_bytes("not an image")


def test_save_image(tmp_path, rgb):
    path = save_image(pack_rgb(rgb), tmp_path / "out.png")
    assert path == tmp_path / "out.png"
    np.testing.assert_array_equal(open_image_as_packed(path), pack_rgb(rgb))


def test_save_image_unknown_extension(tmp_path, rgb):
    with pytest.raises(IOError):
        save_image(pack_rgb(rgb), tmp_path / "out.unknownext")
