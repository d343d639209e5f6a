"""
Face source interface and registry.

A face source hands the compositor six ready images (paths, encoded bytes or
PIL images keyed by CubeFace), or raises. Retrying, caching and format quirks
stay inside the source.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Any, Type

from ..utils.cubemap import CubeFace
from ..utils.image import ImageSource


FaceSet = Dict[CubeFace, ImageSource]


class FaceSource(ABC):
    """Something that can supply all six faces of a cube."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self._configured = False

    @abstractmethod
    def get_face_set(self) -> FaceSet:
        """
        Return all six cube faces.

        Returns:
            Mapping of every CubeFace to a path, encoded bytes or PIL Image

        Raises:
            IncompleteFaceSetError: If the source cannot supply all six faces
            ProviderError: If fetching a face fails
        """

    @abstractmethod
    def configure(self, config: Dict[str, Any]) -> None:
        """
        Apply source settings.

        Raises:
            ConfigurationError: If ``validate_config`` reports problems
        """

    def is_configured(self) -> bool:
        return self._configured

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """Error messages for ``config``; empty when it is usable."""
        return []

    def get_provider_info(self) -> Dict[str, Any]:
        """Short description of the source for logs and CLI output."""
        return {
            "name": type(self).__name__,
            "configured": self._configured,
            "config": self.config,
        }


class ProviderError(Exception):
    """A face source could not deliver its faces."""

    def __init__(self, message: str, provider: str, recoverable: bool = False):
        super().__init__(message)
        self.provider = provider
        self.recoverable = recoverable


class ConfigurationError(ProviderError):
    """Face source settings are unusable."""

    def __init__(self, message: str, provider: str):
        super().__init__(f"Configuration error: {message}", provider)


class NetworkError(ProviderError):
    """A remote face could not be fetched; retrying later may succeed."""

    def __init__(self, message: str, provider: str):
        super().__init__(f"Network error: {message}", provider, recoverable=True)


class ProviderRegistry:
    """Face source classes by short name (``directory``, ``dice``, ``url``)."""

    def __init__(self):
        self._sources: Dict[str, Type[FaceSource]] = {}

    def register_provider_class(self, name: str, source_class: type) -> None:
        """
        Make ``source_class`` available as ``name``.

        Raises:
            ValueError: If source_class is not a FaceSource
        """
        if not (isinstance(source_class, type) and issubclass(source_class, FaceSource)):
            raise ValueError(f"{source_class!r} is not a FaceSource subclass")
        self._sources[name] = source_class

    def create_provider(self, name: str, config: Dict[str, Any]) -> FaceSource:
        """
        Instantiate and configure the face source registered as ``name``.

        Raises:
            ValueError: If no source is registered under ``name``
            ConfigurationError: If the source rejects ``config``
        """
        source_class = self._sources.get(name)
        if source_class is None:
            raise ValueError(f"Unknown face source '{name}'. Available: {', '.join(sorted(self._sources))}")

        source = source_class(config)
        try:
            source.configure(config)
        except ConfigurationError:
            raise
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"face source '{name}' rejected its settings: {e}", name)

        return source

    def list_available_provider_classes(self) -> List[str]:
        return list(self._sources)


provider_registry = ProviderRegistry()
