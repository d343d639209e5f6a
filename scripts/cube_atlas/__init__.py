"""
Cube Atlas Pipeline

Composes six cube-face images into a single horizontal-cross texture atlas,
writes a UV mapping sidecar for 3D engines and validates atlases after the fact.
Faces can come from a local directory, procedurally drawn dice or URLs.
"""

__version__ = "0.1.0"
__author__ = "Cube Atlas Development Team"

from .config import AtlasConfig
from .pipeline import CrossAtlasPipeline
from .providers.base import FaceSource
from .processing.normalizer import FaceNormalizer
from .processing.atlas import CrossLayoutEngine
from .processing.metadata import UVMappingReporter
from .processing.validator import AtlasValidator
from .utils.cubemap import CubeFace

__all__ = [
    "AtlasConfig",
    "CrossAtlasPipeline",
    "FaceSource",
    "FaceNormalizer",
    "CrossLayoutEngine",
    "UVMappingReporter",
    "AtlasValidator",
    "CubeFace",
]
