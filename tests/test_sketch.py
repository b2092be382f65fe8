import numpy as np
import pytest
from PIL import Image

from sketchlib.colors import pack_rgb, rgb_to_hsv, unpack_rgb
from sketchlib.config import SketchParams
from sketchlib.convertors import ImageUnreadableError, image_to_bytes, open_image_as_packed
from sketchlib.sketch import (
    SketchResult,
    colored_pencil,
    do_sketch_images,
    pencil_sketch,
    sketch_file,
    sketch_image_bytes,
)


def _params(**overrides):
    values = dict(
        gaussian_size=5,
        sigma=2.0,
        bilateral_size=3,
        sigma_c=230.0,
        sigma_s=230.0,
        gamma=6.0,
        hue=1.0,
        saturation=0.8,
    )
    values.update(overrides)
    return SketchParams(**values)


def _random_image(seed, h=12, w=16):
    rgb = np.random.default_rng(seed).integers(0, 256, size=(h, w, 3), dtype=np.uint8)
    return pack_rgb(rgb)


def test_black_image_without_blur_gives_white_sketch():
    image = np.zeros((2, 2), dtype=np.int32)
    result = pencil_sketch(image, _params(gaussian_size=0))

    assert isinstance(result, SketchResult)
    assert (result.sketch == 0xFFFFFF).all()
    assert (result.colored == 0xFFFFFF).all()


def test_pipeline_does_not_mutate_input():
    image = _random_image(0)
    before = image.copy()
    pencil_sketch(image, _params())
    np.testing.assert_array_equal(image, before)


def test_pipeline_outputs_are_well_formed():
    image = _random_image(1)
    result = pencil_sketch(image, _params())

    assert result.sketch.shape == image.shape
    assert result.colored.shape == image.shape
    rgb = unpack_rgb(result.sketch)
    assert (rgb[..., 0] == rgb[..., 1]).all() and (rgb[..., 1] == rgb[..., 2]).all()
    assert result.colored.min() >= 0 and result.colored.max() <= 0xFFFFFF


@pytest.mark.parametrize("workers", [2, 5])
def test_pipeline_does_not_depend_on_workers(workers):
    image = _random_image(2, 21, 17)
    single = pencil_sketch(image, _params(), workers=1)
    multi = pencil_sketch(image, _params(), workers=workers)
    np.testing.assert_array_equal(single.sketch, multi.sketch)
    np.testing.assert_array_equal(single.colored, multi.colored)


def test_colored_pencil_gray_pixel_takes_sketch_intensity():
    image = pack_rgb(np.array([[[90, 90, 90]]], dtype=np.uint8))
    sketch = np.array([[100]], dtype=np.int32)
    result = colored_pencil(image, sketch, 1.0, 0.8)
    assert result is image
    assert image[0, 0] == 0x646464


def test_colored_pencil_keeps_hue():
    image = pack_rgb(np.array([[[200, 0, 0], [0, 0, 120]]], dtype=np.uint8))
    sketch = np.array([[255, 255]], dtype=np.int32)
    colored_pencil(image, sketch, 1.0, 1.0)
    np.testing.assert_array_equal(image, [[0xFF0000, 0x0000FF]])


def test_colored_pencil_value_comes_from_sketch():
    image = _random_image(3)
    sketch = np.random.default_rng(4).integers(0, 256, size=image.shape).astype(np.int32)
    colored_pencil(image, sketch, 1.0, 0.8)
    value = rgb_to_hsv(image)[..., 2] * 255.0
    assert np.abs(value - sketch).max() <= 1.0


def test_colored_pencil_rejects_bad_arguments():
    image = np.zeros((2, 2), dtype=np.int32)
    with pytest.raises(ValueError):
        colored_pencil(image, np.zeros((2, 3), dtype=np.int32), 1.0, 0.8)
    with pytest.raises(ValueError):
        colored_pencil(image, np.zeros((2, 2), dtype=np.int32), 1.0, 0.0)


def test_sketch_file_writes_both_renderings(tmp_path):
    source = tmp_path / "rocks.png"
    rgb = np.random.default_rng(5).integers(0, 256, size=(10, 14, 3), dtype=np.uint8)
    Image.fromarray(rgb).save(source)

    result_path, colored_path = sketch_file(source, _params(), workers=2)

    assert result_path == tmp_path / "rocks_result.png"
    assert colored_path == tmp_path / "rocks_colored.png"
    expected = pencil_sketch(open_image_as_packed(source), _params())
    np.testing.assert_array_equal(open_image_as_packed(result_path), expected.sketch)
    np.testing.assert_array_equal(open_image_as_packed(colored_path), expected.colored)


def test_sketch_file_missing_input(tmp_path):
    with pytest.raises(ImageUnreadableError):
        sketch_file(tmp_path / "missing.png", _params())


def test_sketch_image_bytes_rejects_garbage():
    with pytest.raises(ImageUnreadableError):
        sketch_image_bytes(b"not an image", _params())


def test_do_sketch_images_keeps_order():
    images = [_random_image(seed, 6 + seed, 9) for seed in range(4)]
    raw = [image_to_bytes(image, "png") for image in images]

    outputs = do_sketch_images(raw, _params(), img_format="png", colored=True)

    assert len(outputs) == len(images)
    for image, encoded in zip(images, outputs):
        expected = pencil_sketch(image, _params()).colored
        np.testing.assert_array_equal(open_image_as_packed(encoded), expected)


def test_do_sketch_images_surfaces_unreadable_input():
    with pytest.raises(ImageUnreadableError):
        do_sketch_images([b"garbage"], _params())


def test_do_sketch_images_wraps_encoding_failures():
    raw = [image_to_bytes(_random_image(6), "png")]
    with pytest.raises(RuntimeError):
        do_sketch_images(raw, _params(), img_format="nope")
