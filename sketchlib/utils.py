"""
utils.py

Shared helpers for the sketch filters: input validation, row-band work
partitioning across a thread pool, odd kernel sizes, and replicate-edge padding.

Dependencies:
    - numpy
    - opencv-python (cv2)
    - concurrent.futures

Raises:
    ValueError: For invalid buffers, sizes or worker counts.

Author: Granton s.r.o.
Date: 2025-09-03
"""

from typing import Callable, List, Optional, TypeVar
import os
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import cv2

T = TypeVar("T")


def default_workers() -> int:
    """Number of threads used when a caller does not ask for a specific count."""
    return min(32, (os.cpu_count() or 1) * 2)


def _odd(n: int) -> int:
    """Ensure the number is odd (for kernel sizes)."""
    return n if n % 2 == 1 else n + 1


def _check_buffer(image: np.ndarray, what: str = "image buffer") -> None:
    if not isinstance(image, np.ndarray) or image.ndim != 2:
        raise ValueError(f"Input must be a packed {what} (2D numpy array).")


def _check_size(size: int) -> None:
    if int(size) != size or size < 0:
        raise ValueError(f"Kernel size must be a non-negative integer, got {size!r}.")


def _check_sigma(sigma: float, name: str = "sigma") -> None:
    if not sigma > 0:
        raise ValueError(f"{name} must be positive, got {sigma!r}.")


def parallel_rows(
    func: Callable[[int, int], T],
    n_rows: int,
    workers: Optional[int] = None,
) -> List[T]:
    """
    Run ``func(start, stop)`` over contiguous row bands covering ``[0, n_rows)``.

    Bands are disjoint, so ``func`` may write its rows of a shared output buffer
    without locking. All bands finish before this function returns, which is
    the barrier between two pipeline stages. With a single worker the band is
    processed inline on the calling thread.

    Args:
        func (Callable[[int, int], T]): Work for one band of rows.
        n_rows (int): Number of rows to cover.
        workers (int, optional): Thread count; defaults to ``default_workers()``.

    Returns:
        List[T]: One result per band, in row order.

    Raises:
        ValueError: If ``workers`` is smaller than 1.
    """
    if workers is None:
        workers = default_workers()
    if workers < 1:
        raise ValueError(f"workers must be at least 1, got {workers}.")
    workers = min(workers, max(n_rows, 1))
    if workers == 1:
        return [func(0, n_rows)]

    bounds = np.linspace(0, n_rows, workers + 1).astype(int)
    with ThreadPoolExecutor(max_workers=workers) as ex:
        return list(ex.map(func, bounds[:-1].tolist(), bounds[1:].tolist()))


def pad(src: np.ndarray, size: int) -> np.ndarray:
    """
    Edge pad a buffer so a ``size``-wide window fits around every pixel.

    The result has shape ``(height + size, width + size)``. ``size // 2`` rows
    and columns are added before the image and ``size - size // 2`` after it;
    each added pixel repeats the nearest edge or corner pixel of ``src``.
    ``size = 0`` returns an unpadded copy.

    Args:
        src (np.ndarray): 2D buffer to pad.
        size (int): Window size the padding is made for.

    Returns:
        np.ndarray: New padded buffer with the dtype of ``src``.

    Raises:
        ValueError: If ``src`` is not a 2D array or ``size`` is negative.
    """
    _check_buffer(src)
    _check_size(size)
    if size == 0:
        return src.copy()
    before = size // 2
    after = size - before
    return cv2.copyMakeBorder(src, before, after, before, after, cv2.BORDER_REPLICATE)
