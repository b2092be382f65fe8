"""
pencil-sketch-granton

A Python package that turns photographs into pencil sketches, in black and white
and as colored pencil drawings.

Features:
    - Luma grayscale and RGB/HSV conversions on packed pixel buffers
    - Histogram equalization
    - Separable Gaussian smoothing
    - Edge preserving bilateral filtering
    - Dodge blending and gamma correction
    - Colored pencil composition
    - Row-parallel filters and batch sketching of encoded images

Author: Granton s.r.o.
"""

from sketchlib.config import SketchParams
from sketchlib.convertors import ImageUnreadableError, open_image_as_packed, save_image
from sketchlib.sketch import SketchResult, colored_pencil, pencil_sketch, sketch_file
