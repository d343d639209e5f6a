"""
Utility modules for image handling and cubemap geometry.
"""

from .image import ImageUtils, ImageLoadError, ImageSource, load_font
from .cubemap import (
    CubeFace,
    CubemapUtils,
    FaceCell,
    IncompleteFaceSetError,
    HORIZONTAL_CROSS_LAYOUT,
    DICE_FACE_MAPPING,
)

__all__ = [
    "ImageUtils",
    "ImageLoadError",
    "ImageSource",
    "load_font",
    "CubeFace",
    "CubemapUtils",
    "FaceCell",
    "IncompleteFaceSetError",
    "HORIZONTAL_CROSS_LAYOUT",
    "DICE_FACE_MAPPING",
]
