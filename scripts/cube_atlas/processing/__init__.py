"""
Atlas processing modules for face normalization, cross layout, UV reports, validation, label textures and sprite trimming.
"""

from .normalizer import FaceNormalizer, NormalizationConfig, InvalidGutterError, validate_gutter
from .atlas import CrossLayoutEngine, AtlasLayout, AtlasResult, AtlasGenerationError, Rectangle
from .metadata import UVMappingReporter, report_path_for
from .validator import AtlasValidator, ValidationResult
from .text import TextTextureGenerator, TextureItem, load_items, select_items
from .trim import TrimProcessor, TrimConfig, REPORT_NAME as PROCESS_REPORT_NAME

__all__ = [
    "FaceNormalizer",
    "NormalizationConfig",
    "InvalidGutterError",
    "validate_gutter",
    "CrossLayoutEngine",
    "AtlasLayout",
    "AtlasResult",
    "AtlasGenerationError",
    "Rectangle",
    "UVMappingReporter",
    "report_path_for",
    "AtlasValidator",
    "ValidationResult",
    "TextTextureGenerator",
    "TextureItem",
    "load_items",
    "select_items",
    "TrimProcessor",
    "TrimConfig",
    "PROCESS_REPORT_NAME",
]
