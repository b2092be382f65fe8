"""
colors.py

Per-pixel color model conversions for packed RGB buffers.

A packed buffer is a 2D ``int32`` numpy array of shape (height, width) where
every element holds one pixel as ``0x00RRGGBB``. A grayscale buffer has the same
shape and holds a single 0-255 intensity per element. HSV buffers are float
arrays of shape (height, width, 3) with hue, saturation and value in [0, 1].

Features:
    - Packing and unpacking between (H, W, 3) uint8 RGB arrays and packed buffers.
    - Luma grayscale reduction.
    - RGB to HSV and HSV to RGB.
    - Broadcasting a grayscale intensity back into an RGB pixel.

Dependencies:
    - numpy

Raises:
    ValueError: For buffers of the wrong shape.

Author: Granton s.r.o.
Date: 2025-09-03
"""

from typing import Optional
import numpy as np

from sketchlib.utils import _check_buffer, parallel_rows

PACKED_DTYPE = np.int32


def pack_rgb(rgb: np.ndarray) -> np.ndarray:
    """
    Pack an RGB image into a buffer of ``0x00RRGGBB`` integers.

    Args:
        rgb (np.ndarray): Image of shape (H, W, 3), RGB channel order.

    Returns:
        np.ndarray: Packed buffer of shape (H, W), dtype int32.

    Raises:
        ValueError: If input is not a 3-channel numpy array.
    """
    if not isinstance(rgb, np.ndarray) or rgb.ndim != 3 or rgb.shape[2] != 3:
        raise ValueError("Input must be an RGB image (3-channel numpy array).")
    channels = rgb.astype(PACKED_DTYPE) & 0xFF
    return (channels[..., 0] << 16) | (channels[..., 1] << 8) | channels[..., 2]


def unpack_rgb(image: np.ndarray) -> np.ndarray:
    """
    Unpack a packed buffer into an (H, W, 3) uint8 RGB image.

    Args:
        image (np.ndarray): Packed buffer.

    Returns:
        np.ndarray: RGB image, dtype uint8.

    Raises:
        ValueError: If input is not a 2D numpy array.
    """
    _check_buffer(image)
    return np.stack(
        [(image >> 16) & 0xFF, (image >> 8) & 0xFF, image & 0xFF], axis=-1
    ).astype(np.uint8)


def to_grayscale(image: np.ndarray, workers: Optional[int] = None) -> np.ndarray:
    """
    Replace every packed pixel with its luma ``(3R + 4G + B) // 8``, in place.

    Args:
        image (np.ndarray): Packed buffer, modified in place.
        workers (int, optional): Number of threads.

    Returns:
        np.ndarray: The same buffer, now holding intensities.

    Raises:
        ValueError: If input is not a 2D numpy array.
    """
    _check_buffer(image)

    def _rows(start: int, stop: int) -> None:
        band = image[start:stop]
        r = (band >> 16) & 0xFF
        g = (band >> 8) & 0xFF
        b = band & 0xFF
        band[:] = (3 * r + 4 * g + b) // 8

    parallel_rows(_rows, image.shape[0], workers)
    return image


def to_rgb_from_gray(image: np.ndarray, workers: Optional[int] = None) -> np.ndarray:
    """
    Copy every grayscale intensity into all three channels, in place.

    Args:
        image (np.ndarray): Grayscale buffer, modified in place.
        workers (int, optional): Number of threads.

    Returns:
        np.ndarray: The same buffer, now packed RGB.

    Raises:
        ValueError: If input is not a 2D numpy array.
    """
    _check_buffer(image, "grayscale buffer")

    def _rows(start: int, stop: int) -> None:
        band = image[start:stop]
        band[:] = (band << 16) | (band << 8) | band

    parallel_rows(_rows, image.shape[0], workers)
    return image


def _rgb_to_hsv_rows(band: np.ndarray) -> np.ndarray:
    r = ((band >> 16) & 0xFF) / 255.0
    g = ((band >> 8) & 0xFF) / 255.0
    b = (band & 0xFF) / 255.0

    value = np.maximum(np.maximum(r, g), b)
    c = value - np.minimum(np.minimum(r, g), b)

    saturation = np.divide(c, value, out=np.zeros_like(c), where=value != 0.0)

    chroma = np.where(c == 0.0, 1.0, c)
    hue = np.where(
        value == r,
        (g - b) / chroma,
        np.where(value == g, (b - r) / chroma + 2.0, (r - g) / chroma + 4.0),
    )
    hue[c == 0.0] = 0.0
    hue = np.where(hue < 0.0, hue / 6.0 + 1.0, hue / 6.0)

    return np.stack([hue, saturation, value], axis=-1)


def rgb_to_hsv(image: np.ndarray, workers: Optional[int] = None) -> np.ndarray:
    """
    Convert a packed RGB buffer to HSV.

    Black pixels get saturation 0 and achromatic pixels get hue 0. Negative
    hues from the red sector wrap into [0, 1).

    Args:
        image (np.ndarray): Packed buffer.
        workers (int, optional): Number of threads.

    Returns:
        np.ndarray: Float array of shape (H, W, 3) holding hue, saturation, value.

    Raises:
        ValueError: If input is not a 2D numpy array.
    """
    _check_buffer(image)
    hsv = np.empty(image.shape + (3,), dtype=np.float64)

    def _rows(start: int, stop: int) -> None:
        hsv[start:stop] = _rgb_to_hsv_rows(image[start:stop])

    parallel_rows(_rows, image.shape[0], workers)
    return hsv


def _hsv_to_rgb_rows(band: np.ndarray) -> np.ndarray:
    h = band[..., 0] * 360.0
    s = band[..., 1]
    v = band[..., 2]

    c = s * v
    x = c * (1.0 - np.abs(np.fmod(h / 60.0, 2.0) - 1.0))
    m = v - c
    zero = np.zeros_like(c)

    sectors = [h >= 300.0, h >= 240.0, h >= 180.0, h >= 120.0, h >= 60.0]
    red = np.select(sectors, [c, x, zero, zero, x], default=c)
    green = np.select(sectors, [zero, zero, x, c, c], default=x)
    blue = np.select(sectors, [x, c, c, x, zero], default=zero)

    r = np.trunc((red + m) * 255.0 + 0.5).astype(PACKED_DTYPE)
    g = np.trunc((green + m) * 255.0 + 0.5).astype(PACKED_DTYPE)
    b = np.trunc((blue + m) * 255.0 + 0.5).astype(PACKED_DTYPE)
    return (r << 16) | (g << 8) | b


def hsv_to_rgb(
    hsv: np.ndarray,
    out: Optional[np.ndarray] = None,
    workers: Optional[int] = None,
) -> np.ndarray:
    """
    Convert an HSV buffer back to packed RGB.

    Channels are quantized with round-half-up (``+ 0.5`` then truncate).

    Args:
        hsv (np.ndarray): Float array of shape (H, W, 3).
        out (np.ndarray, optional): Packed buffer of shape (H, W) to write into.
        workers (int, optional): Number of threads.

    Returns:
        np.ndarray: Packed buffer (``out`` when given).

    Raises:
        ValueError: If input is not an (H, W, 3) array or ``out`` does not match.
    """
    if not isinstance(hsv, np.ndarray) or hsv.ndim != 3 or hsv.shape[2] != 3:
        raise ValueError("Input must be an HSV buffer (3-channel numpy array).")
    if out is None:
        out = np.empty(hsv.shape[:2], dtype=PACKED_DTYPE)
    elif out.shape != hsv.shape[:2]:
        raise ValueError("Output buffer must have the same height and width as the HSV buffer.")

    def _rows(start: int, stop: int) -> None:
        out[start:stop] = _hsv_to_rgb_rows(hsv[start:stop])

    parallel_rows(_rows, hsv.shape[0], workers)
    return out
