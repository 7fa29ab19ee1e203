"""bifslide: Ventana BigTIFF whole-slide image recognition.

Opens a tiled TIFF, decides whether it was written by a Ventana iScan
scanner, and exposes its properties, associated images and pyramid.

Example:
    from bifslide import open_slide

    with open_slide("slide.bif") as slide:
        print(slide.properties["openslide.mpp-x"])
        print(slide.level_dimensions)
"""

from bifslide.slide import Slide, can_open, detect_vendor, open_slide
from bifslide.tiff.exceptions import BadDataError, FormatNotSupportedError, SlideError

__all__ = [
    "BadDataError",
    "FormatNotSupportedError",
    "Slide",
    "SlideError",
    "can_open",
    "detect_vendor",
    "open_slide",
]
