"""
convertors.py

This module connects the packed pixel buffers used by the sketch filters with
image files and encoded image bytes:
- Opening images from a path, bytes or a PIL Image as a packed buffer.
- Converting packed buffers to PIL Images.
- Encoding packed buffers to bytes and writing them to files.

Dependencies:
    - numpy
    - Pillow (PIL)
    - OpenCV (cv2)
    - .colors

Raises:
    ImageUnreadableError: If an input image cannot be opened or decoded.
    ValueError: For unsupported input types or failed encodings.
    IOError: For file writing errors.

Author: Granton s.r.o.
Date: 2025-09-03
"""

from pathlib import Path
import io

import numpy as np
from PIL import Image

from sketchlib.colors import pack_rgb, unpack_rgb


class ImageUnreadableError(IOError):
    """The input image is missing, corrupt or in an unsupported format."""


def open_image_as_packed(file: str | Path | bytes | Image.Image) -> np.ndarray:
    """
    Opens an image file, image bytes or a PIL Image and returns it as a packed buffer.

    Args:
        file (str | Path | bytes | PIL.Image.Image): Path to the image file, bytes of the image, or a PIL Image.

    Returns:
        np.ndarray: Packed ``0x00RRGGBB`` buffer of shape (height, width).

    Raises:
        ValueError: If the input type is not supported.
        ImageUnreadableError: If the image cannot be opened or decoded.
    """
    if not isinstance(file, (str, Path, bytes, Image.Image)):
        raise ValueError("Input must be a file path (str or Path), bytes, or PIL Image.")
    try:
        if isinstance(file, (str, Path)):
            with Image.open(file) as im:
                image = im.convert("RGB")
        elif isinstance(file, bytes):
            with Image.open(io.BytesIO(file)) as im:
                image = im.convert("RGB")
        else:
            image = file.convert("RGB")
    except Exception as e:
        raise ImageUnreadableError(f"Failed to open image: {e}") from e

    return pack_rgb(np.asarray(image))


def packed_to_pil(image: np.ndarray) -> Image.Image:
    """
    Converts a packed buffer to an RGB PIL Image.

    Args:
        image (np.ndarray): Packed buffer.

    Returns:
        PIL.Image.Image: RGB image.

    Raises:
        ValueError: If the buffer is not a 2D numpy array.
    """
    return Image.fromarray(unpack_rgb(image))


def image_to_bytes(image: np.ndarray | Image.Image, img_format: str = "png") -> bytes:
    """
    Converts a packed buffer or PIL Image to bytes in the specified format.

    Args:
        image (np.ndarray or PIL.Image.Image): Packed buffer or PIL Image.
        img_format (str): Format to save the image (default 'png').

    Returns:
        bytes: Image in bytes format.

    Raises:
        ValueError: If the image type is not supported or encoding fails.
    """
    import cv2

    if isinstance(image, Image.Image):
        output = io.BytesIO()
        try:
            image.save(output, format=img_format.upper())
        except Exception as e:
            raise ValueError(f"Failed to save PIL image as {img_format}: {e}") from e
        return output.getvalue()
    elif isinstance(image, np.ndarray):
        ext = img_format.lower()
        if not ext.startswith('.'):
            ext = '.' + ext
        bgr = cv2.cvtColor(unpack_rgb(image), cv2.COLOR_RGB2BGR)
        try:
            success, buffer = cv2.imencode(ext, bgr)
        except cv2.error as e:
            raise ValueError(f"Image encoding failed for format: {img_format}") from e
        if not success:
            raise ValueError(f"Image encoding failed for format: {img_format}")
        return buffer.tobytes()
    else:
        raise ValueError(f"Image format not supported: {type(image)}")


def save_image(image: np.ndarray, path: str | Path) -> Path:
    """
    Writes a packed buffer to a file; the format follows the file extension.

    Args:
        image (np.ndarray): Packed buffer.
        path (str | Path): Destination file.

    Returns:
        Path: The written file.

    Raises:
        ValueError: If the buffer is invalid.
        IOError: If the file cannot be written.
    """
    path = Path(path)
    pil_image = packed_to_pil(image)
    try:
        pil_image.save(path)
    except Exception as e:
        raise IOError(f"Failed to write image '{path}': {e}") from e
    return path
