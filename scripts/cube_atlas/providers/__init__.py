"""
Face sources for the pipeline.
Handles local face directories, procedurally drawn dice and remote downloads.
"""

from .base import (
    FaceSource, FaceSet, ProviderRegistry,
    ProviderError, ConfigurationError, NetworkError,
    provider_registry
)
from .directory import DirectoryFaceSource
from .dice import DiceFaceSource
from .remote import UrlFaceSource, load_manifest

# Register provider classes with the global registry
provider_registry.register_provider_class("directory", DirectoryFaceSource)
provider_registry.register_provider_class("dice", DiceFaceSource)
provider_registry.register_provider_class("url", UrlFaceSource)

__all__ = [
    # Base classes and registry
    "FaceSource",
    "FaceSet",
    "ProviderRegistry",
    "provider_registry",

    # Exceptions
    "ProviderError",
    "ConfigurationError",
    "NetworkError",

    # Concrete sources
    "DirectoryFaceSource",
    "DiceFaceSource",
    "UrlFaceSource",

    # Utilities
    "load_manifest",
]
