"""
sketch.py

This module runs the pencil-sketch pipeline and composes the colored-pencil
rendering. It is the entry point for library users.

Features:
    - Colored-pencil composition (sketch luminance with the original hue and saturation).
    - Full pipeline on a packed buffer: grayscale, equalization, Gaussian blur,
      blending, bilateral filtering, gamma correction, colored pencil.
    - Sketching single files and batches of encoded images in parallel.

Dependencies:
    - numpy
    - concurrent.futures
    - .colors, .filters, .convertors, .config, .utils

Raises:
    ValueError: For invalid buffers or parameters.
    ImageUnreadableError: If an input image cannot be decoded.
    RuntimeError: If a batch fails for another reason.

Author: Granton s.r.o.
Date: 2025-09-03

Usage example:
    >>> from sketchlib.sketch import sketch_file
    >>> from sketchlib.config import SketchParams
    >>> result_path, colored_path = sketch_file("rocks.jpg", SketchParams.classic())
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple
from concurrent.futures import ThreadPoolExecutor
from itertools import repeat
import logging
import time

import numpy as np

from sketchlib.colors import hsv_to_rgb, rgb_to_hsv, to_grayscale, to_rgb_from_gray
from sketchlib.config import SketchParams
from sketchlib.convertors import (
    ImageUnreadableError,
    image_to_bytes,
    open_image_as_packed,
    save_image,
)
from sketchlib.filters import (
    bilateral_filter,
    blend,
    equalize_histogram,
    gamma_correct,
    gaussian_filter,
)
from sketchlib.utils import _check_buffer, default_workers, parallel_rows

logger = logging.getLogger(__name__)


@dataclass
class SketchResult:
    """
    Output of one pipeline run. Both buffers are packed RGB with the input's shape.
    """
    sketch: np.ndarray   # Black and white pencil sketch.
    colored: np.ndarray  # Colored pencil rendering.


def colored_pencil(
    image: np.ndarray,
    sketch: np.ndarray,
    hue: float,
    saturation: float,
    workers: Optional[int] = None,
) -> np.ndarray:
    """
    Turn the original color image into a colored-pencil drawing, in place.

    The image is converted to HSV, hue is multiplied by ``hue``, saturation is
    raised to the power ``saturation`` and value is replaced with the sketch
    intensity. The result is converted back to packed RGB into ``image``.

    Args:
        image (np.ndarray): Original packed RGB buffer, overwritten.
        sketch (np.ndarray): Grayscale sketch of the same shape.
        hue (float): Hue scale factor.
        saturation (float): Saturation exponent; below 1 boosts, above 1 reduces.
        workers (int, optional): Number of threads.

    Returns:
        np.ndarray: ``image``.

    Raises:
        ValueError: If the buffers differ in shape or the factors are out of range.
    """
    _check_buffer(image)
    _check_buffer(sketch, "grayscale buffer")
    if image.shape != sketch.shape:
        raise ValueError("Image and sketch buffers must have the same shape.")
    if hue < 0:
        raise ValueError(f"hue must not be negative, got {hue!r}.")
    if not saturation > 0:
        raise ValueError(f"saturation must be positive, got {saturation!r}.")

    hsv = rgb_to_hsv(image, workers)

    def _rows(start: int, stop: int) -> None:
        band = hsv[start:stop]
        band[..., 0] *= hue
        band[..., 1] **= saturation
        band[..., 2] = sketch[start:stop] / 255.0

    parallel_rows(_rows, image.shape[0], workers)
    return hsv_to_rgb(hsv, out=image, workers=workers)


def pencil_sketch(
    image: np.ndarray,
    params: SketchParams,
    workers: Optional[int] = None,
) -> SketchResult:
    """
    Run the whole pencil-sketch pipeline on a packed RGB buffer.

    Stages run one after another; each one finishes on every row before the
    next starts. ``image`` is left unchanged.

    Args:
        image (np.ndarray): Packed RGB buffer.
        params (SketchParams): Pipeline parameters.
        workers (int, optional): Number of threads per stage.

    Returns:
        SketchResult: Monochrome sketch and colored-pencil image.

    Raises:
        ValueError: If the buffer is not a 2D numpy array.
    """
    _check_buffer(image)
    start = time.perf_counter()

    gray = to_grayscale(image.copy(), workers)
    equalize_histogram(gray, workers)
    logger.debug("Grayscale and equalization done")

    sketch = gray.copy()
    gaussian_filter(sketch, params.gaussian_size, params.sigma, workers)
    logger.debug(f"Gaussian blur done (size={params.gaussian_size}, sigma={params.sigma})")

    blend(gray, sketch, workers)
    bilateral_filter(sketch, params.bilateral_size, params.sigma_c, params.sigma_s, workers)
    logger.debug(f"Bilateral filter done (size={params.bilateral_size})")

    gamma_correct(sketch, params.gamma, workers)
    colored = colored_pencil(image.copy(), sketch, params.hue, params.saturation, workers)
    to_rgb_from_gray(sketch, workers)

    height, width = image.shape
    logger.info(f"Sketched {width}x{height} image in {time.perf_counter() - start:.2f}s")
    return SketchResult(sketch=sketch, colored=colored)


def sketch_file(
    path: str | Path,
    params: SketchParams,
    workers: Optional[int] = None,
) -> Tuple[Path, Path]:
    """
    Sketch an image file and write both renderings next to it.

    ``photo.jpg`` produces ``photo_result.jpg`` (monochrome) and
    ``photo_colored.jpg`` (colored pencil).

    Args:
        path (str | Path): Input image.
        params (SketchParams): Pipeline parameters.
        workers (int, optional): Number of threads per stage.

    Returns:
        Tuple[Path, Path]: Paths of the monochrome and colored images.

    Raises:
        ImageUnreadableError: If the input cannot be decoded.
        IOError: If an output file cannot be written.
    """
    path = Path(path)
    result = pencil_sketch(open_image_as_packed(path), params, workers)
    result_path = save_image(result.sketch, path.with_name(f"{path.stem}_result{path.suffix}"))
    colored_path = save_image(result.colored, path.with_name(f"{path.stem}_colored{path.suffix}"))
    return result_path, colored_path


def sketch_image_bytes(
    image_bytes: bytes,
    params: SketchParams,
    img_format: str = "PNG",
    colored: bool = False,
    workers: Optional[int] = 1,
) -> bytes:
    """
    Sketch one encoded image.

    Args:
        image_bytes (bytes): Encoded input image.
        params (SketchParams): Pipeline parameters.
        img_format (str): Output image format.
        colored (bool): Return the colored-pencil image instead of the monochrome sketch.
        workers (int, optional): Number of threads per stage.

    Returns:
        bytes: Encoded output image.

    Raises:
        ImageUnreadableError: If the input cannot be decoded.
        ValueError: If encoding fails.
    """
    image = open_image_as_packed(image_bytes)
    result = pencil_sketch(image, params, workers)
    return image_to_bytes(result.colored if colored else result.sketch, img_format)


def do_sketch_images(
    raw_images: List[bytes],
    params: SketchParams,
    img_format: str = "PNG",
    colored: bool = False,
) -> List[bytes]:
    """
    Sketch a list of encoded images in parallel, one image per thread.

    Args:
        raw_images (List[bytes]): Encoded input images.
        params (SketchParams): Pipeline parameters.
        img_format (str): Output image format.
        colored (bool): Return colored-pencil images instead of monochrome sketches.

    Returns:
        List[bytes]: Encoded outputs in input order.

    Raises:
        ImageUnreadableError: If an input cannot be decoded.
        RuntimeError: If sketching fails for another reason.
    """
    try:
        with ThreadPoolExecutor(max_workers=default_workers()) as ex:
            outputs: List[bytes] = list(
                ex.map(
                    sketch_image_bytes,
                    raw_images,
                    repeat(params),
                    repeat(img_format),
                    repeat(colored),
                )
            )
        logger.info(f"Sketched batch of {len(outputs)} images")
        return outputs
    except ImageUnreadableError:
        raise
    except Exception as e:
        raise RuntimeError(f"Failed to sketch images: {e}") from e
