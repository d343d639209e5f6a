"""
Face source downloading the six faces over HTTP.

The manifest maps face names (``positiveX``/``positive_x``) or die numbers
(``"1"``..``"6"``) to URLs. Transient failures are retried with exponential
backoff before giving up with NetworkError.
"""

import json
import logging
import time
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
import requests

from .base import FaceSource, FaceSet, ConfigurationError, NetworkError, ProviderError
from ..config import ErrorConfig
from ..utils.cubemap import CubeFace, CubemapUtils, DICE_FACE_MAPPING, IncompleteFaceSetError


logger = logging.getLogger(__name__)


def load_manifest(path: Union[str, Path]) -> Dict[str, str]:
    """Read a JSON manifest of ``{face-or-number: url}``."""
    with open(path, 'r') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Manifest {path} must be a JSON object mapping faces to URLs")
    return {str(key): str(value) for key, value in data.items()}


def resolve_manifest_key(key: str) -> Optional[CubeFace]:
    """Map a manifest key (face name or die number) to a cube face."""
    key = str(key).strip()
    if key.isdigit():
        return DICE_FACE_MAPPING.get(int(key))
    return CubemapUtils.parse_face(key)


class UrlFaceSource(FaceSource):
    """Downloads cube faces listed in a URL manifest."""

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.urls: Dict[CubeFace, str] = {}
        self.error_config = config.get("error_config") or ErrorConfig()

    def configure(self, config: Dict[str, Any]) -> None:
        """Configure the manifest and retry policy."""
        errors = self.validate_config(config)
        if errors:
            raise ConfigurationError('; '.join(errors), "UrlFaceSource")

        self.error_config = config.get("error_config") or ErrorConfig()
        self.urls = {
            resolve_manifest_key(key): url
            for key, url in config.get("manifest", {}).items()
        }
        self._configured = True

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        errors = []

        manifest = config.get("manifest")
        if not isinstance(manifest, dict) or not manifest:
            return ["'manifest' must be a non-empty mapping of faces to URLs"]

        seen: Dict[CubeFace, str] = {}
        for key, url in manifest.items():
            face = resolve_manifest_key(key)
            if face is None:
                errors.append(f"Unknown face '{key}' in manifest")
                continue
            if face in seen:
                errors.append(f"Face {face.value} given twice ('{seen[face]}' and '{key}')")
            seen[face] = key
            if not isinstance(url, str) or not url.startswith(("http://", "https://")):
                errors.append(f"URL for '{key}' must start with http:// or https://")

        return errors

    def _retry_after(self, response: requests.Response) -> Optional[float]:
        value = response.headers.get("Retry-After")
        if value is None:
            return None
        try:
            return max(0.0, float(value))
        except ValueError:
            # HTTP-date form is not supported
            return None

    def download(self, url: str) -> bytes:
        """
        Fetch one URL, retrying 429/5xx responses and connection failures.

        Raises:
            NetworkError: When retries are exhausted or a non-retryable error occurs
        """
        cfg = self.error_config
        last_error = "no attempt made"

        for attempt in range(cfg.max_retries + 1):
            delay = cfg.retry_delay * (2 ** attempt)
            try:
                response = requests.get(url, timeout=cfg.request_timeout)
            except (requests.ConnectionError, requests.Timeout) as e:
                last_error = str(e)
            else:
                if response.status_code in cfg.retry_statuses:
                    last_error = f"HTTP {response.status_code}"
                    retry_after = self._retry_after(response)
                    if retry_after is not None:
                        delay = retry_after
                else:
                    try:
                        response.raise_for_status()
                    except requests.RequestException as e:
                        raise NetworkError(f"Download of {url} failed: {e}", "UrlFaceSource")
                    return response.content

            if attempt < cfg.max_retries:
                logger.warning(f"Download of {url} failed ({last_error}), retrying in {delay:.1f}s "
                               f"({attempt + 1}/{cfg.max_retries})")
                time.sleep(delay)

        raise NetworkError(
            f"Download of {url} failed after {cfg.max_retries + 1} attempts: {last_error}",
            "UrlFaceSource"
        )

    def get_face_set(self) -> FaceSet:
        """
        Download every face in the manifest.

        Raises:
            IncompleteFaceSetError: If the manifest does not cover all six faces
            NetworkError: If a download fails
        """
        if not self._configured:
            raise ProviderError("UrlFaceSource is not configured", "UrlFaceSource")

        missing = [face.value for face in CubeFace if face not in self.urls]
        if missing:
            raise IncompleteFaceSetError(
                f"Manifest is missing faces: {', '.join(missing)}", missing=missing
            )

        faces: FaceSet = {}
        for face in CubeFace:
            url = self.urls[face]
            logger.info(f"Downloading {face.value} from {url}")
            faces[face] = self.download(url)
        return faces
