"""
filters.py

Tone and neighborhood filters of the pencil-sketch pipeline. Every filter works
on a 2D integer intensity buffer (``int32`` or ``uint8``) and writes its result
back into that buffer.

Features:
    - Histogram equalization with per-worker histograms.
    - 1D and 2D Gaussian kernels.
    - Separable Gaussian smoothing (horizontal pass, then vertical pass).
    - Bilateral filtering with a spatial and a range kernel.
    - Dodge-style blending of the grayscale and blurred layers.
    - Gamma correction through a lookup table.

Dependencies:
    - numpy
    - .utils

Raises:
    ValueError: For invalid buffers, kernel sizes or sigmas.

Author: Granton s.r.o.
Date: 2025-09-03

Usage example:
    >>> gray = to_grayscale(pack_rgb(rgb))
    >>> equalize_histogram(gray)
    >>> sketch = gaussian_filter(gray.copy(), size=31, sigma=6.0)
"""

from typing import Optional
import math
import numpy as np

from sketchlib.colors import PACKED_DTYPE
from sketchlib.utils import (
    _check_buffer,
    _check_sigma,
    _check_size,
    _odd,
    pad,
    parallel_rows,
)


def _check_intensities(image: np.ndarray) -> None:
    if image.size and (image.min() < 0 or image.max() > 255):
        raise ValueError("Grayscale intensities must lie in [0, 255].")


def equalize_histogram(image: np.ndarray, workers: Optional[int] = None) -> np.ndarray:
    """
    Perform histogram equalization on a grayscale buffer, in place.

    Each worker counts its own band of rows into a private histogram; the
    histograms are summed once every worker has finished. The cumulative counts
    are then turned into the lookup table
    ``table[v] = int(255 * cdf[v] / cdf[255] + 0.5)`` and every pixel is remapped.

    Args:
        image (np.ndarray): Grayscale buffer with intensities in [0, 255].
        workers (int, optional): Number of threads.

    Returns:
        np.ndarray: The same buffer, equalized.

    Raises:
        ValueError: If input is not a 2D array of intensities in [0, 255].
    """
    _check_buffer(image, "grayscale buffer")
    _check_intensities(image)
    if image.size == 0:
        return image

    counts = parallel_rows(
        lambda start, stop: np.bincount(image[start:stop].ravel(), minlength=256),
        image.shape[0],
        workers,
    )
    histogram = np.zeros(256, dtype=np.int64)
    for count in counts:
        histogram += count

    np.cumsum(histogram, out=histogram)
    table = (255.0 * histogram / histogram[255] + 0.5).astype(PACKED_DTYPE)

    def _remap(start: int, stop: int) -> None:
        image[start:stop] = table[image[start:stop]]

    parallel_rows(_remap, image.shape[0], workers)
    return image


def gaussian_kernel_1d(size: int, sigma: float) -> np.ndarray:
    """
    Create a normalized 1D Gaussian kernel.

    Even sizes are bumped to the next odd number so the kernel has a center.

    Args:
        size (int): Requested kernel length.
        sigma (float): Standard deviation of the Gaussian.

    Returns:
        np.ndarray: Kernel of odd length summing to 1.

    Raises:
        ValueError: If ``size`` is negative or ``sigma`` is not positive.
    """
    _check_size(size)
    _check_sigma(sigma)
    n = _odd(size)
    variance = sigma * sigma * 2.0
    coefficient = 1.0 / math.sqrt(variance * math.pi)
    x = np.arange(n) - n // 2
    vector = coefficient * np.exp(-(x * x) / variance)
    return vector / vector.sum()


def gaussian_kernel_2d(size: int, sigma: float) -> np.ndarray:
    """
    Create a normalized ``n x n`` Gaussian kernel, ``n`` being ``size`` made odd.

    Args:
        size (int): Requested side length.
        sigma (float): Standard deviation of the Gaussian.

    Returns:
        np.ndarray: Square kernel summing to 1.

    Raises:
        ValueError: If ``size`` is negative or ``sigma`` is not positive.
    """
    _check_size(size)
    _check_sigma(sigma)
    n = _odd(size)
    variance = sigma * sigma * 2.0
    coefficient = 1.0 / (variance * math.pi)
    x = (np.arange(n) - n // 2)[:, None]
    y = (np.arange(n) - n // 2)[None, :]
    matrix = coefficient * np.exp(-(x * x + y * y) / variance)
    return matrix / matrix.sum()


def range_kernel(sigma_c: float) -> np.ndarray:
    """
    Gaussian weights for every absolute intensity difference 0..255.

    Args:
        sigma_c (float): Standard deviation over intensity differences.

    Returns:
        np.ndarray: 256 weights, largest at difference 0.

    Raises:
        ValueError: If ``sigma_c`` is not positive.
    """
    _check_sigma(sigma_c, "sigma_c")
    variance = sigma_c * sigma_c * 2.0
    coefficient = 1.0 / math.sqrt(variance * math.pi)
    d = np.arange(256, dtype=np.float64)
    return coefficient * np.exp(-(d * d) / variance)


def gaussian_filter(
    sketch: np.ndarray,
    size: int,
    sigma: float,
    workers: Optional[int] = None,
) -> np.ndarray:
    """
    Smooth a grayscale buffer with a separable Gaussian, in place.

    The buffer is edge padded and filtered along rows, then padded again from
    the row-filtered result and filtered along columns. Each output is
    ``int(0.5 + sum(kernel[i] * neighbor[i]))``. ``size = 0`` leaves the
    buffer untouched.

    Args:
        sketch (np.ndarray): Grayscale buffer with intensities in [0, 255], modified in place.
        size (int): Kernel length (even values are made odd, 0 disables).
        sigma (float): Standard deviation of the Gaussian.
        workers (int, optional): Number of threads.

    Returns:
        np.ndarray: The same buffer, smoothed.

    Raises:
        ValueError: If input is not a 2D array of intensities in [0, 255],
            ``size`` is negative or ``sigma`` is not positive.
    """
    _check_buffer(sketch, "grayscale buffer")
    _check_intensities(sketch)
    _check_size(size)
    _check_sigma(sigma)
    if size == 0:
        return sketch

    kernel = gaussian_kernel_1d(size, sigma)
    n = len(kernel)
    half = n // 2
    height, width = sketch.shape

    padded = pad(sketch, n)

    def _horizontal(start: int, stop: int) -> None:
        acc = np.full((stop - start, width), 0.5)
        for i in range(n):
            acc += kernel[i] * padded[start + half:stop + half, i:i + width]
        sketch[start:stop] = acc.astype(PACKED_DTYPE)

    parallel_rows(_horizontal, height, workers)

    padded = pad(sketch, n)

    def _vertical(start: int, stop: int) -> None:
        acc = np.full((stop - start, width), 0.5)
        for i in range(n):
            acc += kernel[i] * padded[start + i:stop + i, half:half + width]
        sketch[start:stop] = acc.astype(PACKED_DTYPE)

    parallel_rows(_vertical, height, workers)
    return sketch


def bilateral_filter(
    sketch: np.ndarray,
    size: int,
    sigma_c: float,
    sigma_s: float,
    workers: Optional[int] = None,
) -> np.ndarray:
    """
    Edge preserving smoothing of a grayscale buffer, in place.

    Every neighbor in the ``n x n`` window is weighted by
    ``spatial[i, j] * range[|center - neighbor|]`` and the output is
    ``int(sum(weight * neighbor) / sum(weight) + 0.5)``. The spatial center
    weight is always positive, so the denominator never vanishes.

    Args:
        sketch (np.ndarray): Grayscale buffer with intensities in [0, 255].
        size (int): Window side (even values are made odd).
        sigma_c (float): Range sigma; larger values preserve fewer edges.
        sigma_s (float): Spatial sigma.
        workers (int, optional): Number of threads.

    Returns:
        np.ndarray: The same buffer, filtered.

    Raises:
        ValueError: If input is not a 2D array of intensities in [0, 255],
            ``size`` is negative or a sigma is not positive.
    """
    _check_buffer(sketch, "grayscale buffer")
    _check_intensities(sketch)
    spatial = gaussian_kernel_2d(size, sigma_s)
    weights_c = range_kernel(sigma_c)
    n = spatial.shape[0]
    width = sketch.shape[1]

    padded = pad(sketch, n)

    def _rows(start: int, stop: int) -> None:
        center = sketch[start:stop].astype(PACKED_DTYPE)
        weights = np.zeros(center.shape)
        total = np.zeros(center.shape)
        for i in range(n):
            for j in range(n):
                pixel = padded[start + i:stop + i, j:j + width].astype(PACKED_DTYPE)
                weight = spatial[i, j] * weights_c[np.abs(center - pixel)]
                weights += weight
                total += pixel * weight
        sketch[start:stop] = (total / weights + 0.5).astype(PACKED_DTYPE)

    parallel_rows(_rows, sketch.shape[0], workers)
    return sketch


def blend(gray: np.ndarray, sketch: np.ndarray, workers: Optional[int] = None) -> np.ndarray:
    """
    Dodge-blend the grayscale layer over the blurred layer, writing into ``sketch``.

    ``255`` where the blurred value is 0, otherwise ``min(255, gray * 256 // sketch)``.

    Args:
        gray (np.ndarray): Grayscale layer (read only).
        sketch (np.ndarray): Blurred layer, replaced by the blend.
        workers (int, optional): Number of threads.

    Returns:
        np.ndarray: ``sketch``.

    Raises:
        ValueError: If inputs are not 2D arrays of the same shape.
    """
    _check_buffer(gray, "grayscale buffer")
    _check_buffer(sketch, "grayscale buffer")
    if gray.shape != sketch.shape:
        raise ValueError("Grayscale and sketch buffers must have the same shape.")

    def _rows(start: int, stop: int) -> None:
        pixel = sketch[start:stop]
        divisor = np.where(pixel == 0, 1, pixel)
        blended = np.minimum(gray[start:stop].astype(PACKED_DTYPE) * 256 // divisor, 255)
        sketch[start:stop] = np.where(pixel == 0, 255, blended)

    parallel_rows(_rows, sketch.shape[0], workers)
    return sketch


def gamma_correct(image: np.ndarray, gamma: float, workers: Optional[int] = None) -> np.ndarray:
    """
    Gamma correct a grayscale buffer through a 256-entry lookup table, in place.

    Args:
        image (np.ndarray): Grayscale buffer with intensities in [0, 255].
        gamma (float): Exponent; values above 1 darken midtones.
        workers (int, optional): Number of threads.

    Returns:
        np.ndarray: The same buffer, corrected.

    Raises:
        ValueError: If input is not a valid buffer or ``gamma`` is not positive.
    """
    _check_buffer(image, "grayscale buffer")
    _check_intensities(image)
    _check_sigma(gamma, "gamma")
    lut = ((np.arange(256) / 255.0) ** gamma * 255.0 + 0.5).astype(PACKED_DTYPE)

    def _rows(start: int, stop: int) -> None:
        image[start:stop] = lut[image[start:stop]]

    parallel_rows(_rows, image.shape[0], workers)
    return image
