"""
Face source reading six images from a local directory.

Two naming conventions are recognised, checked in this order:

* ``positive_x.png``, ``negative_x.png``, ... (one file per cube face)
* ``1.png`` .. ``6.png`` (die faces, placed through the dice mapping)
"""

import logging
from pathlib import Path
from typing import Dict, Any, List, Optional

from .base import FaceSource, FaceSet, ConfigurationError
from ..utils.cubemap import CubeFace, CubemapUtils, DICE_FACE_MAPPING, IncompleteFaceSetError


logger = logging.getLogger(__name__)

NAMED = "named"
NUMBERED = "numbered"


class DirectoryFaceSource(FaceSource):
    """Loads cube faces from ``<input_dir>/positive_x.png`` etc. or ``1.png``..``6.png``."""

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.input_dir = Path(config.get("input_dir", "./cube_faces"))
        self.extension = config.get("extension", ".png")
        self.convention: Optional[str] = None

    def configure(self, config: Dict[str, Any]) -> None:
        """Configure the input directory."""
        errors = self.validate_config(config)
        if errors:
            raise ConfigurationError('; '.join(errors), "DirectoryFaceSource")

        self.input_dir = Path(config.get("input_dir", "./cube_faces"))
        self.extension = config.get("extension", ".png")
        self._configured = True

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        errors = []
        extension = config.get("extension", ".png")
        if not isinstance(extension, str) or not extension.startswith("."):
            errors.append("'extension' must be a string starting with '.'")
        return errors

    def named_files(self) -> Dict[CubeFace, Path]:
        """Expected path of every face under the named convention."""
        return {face: self.input_dir / f"{face.file_stem}{self.extension}" for face in CubeFace}

    def numbered_files(self) -> Dict[int, Path]:
        """Expected path of every die face under the numbered convention."""
        return {number: self.input_dir / f"{number}{self.extension}" for number in sorted(DICE_FACE_MAPPING)}

    def find_named_faces(self) -> Dict[CubeFace, Path]:
        """Named face files that exist."""
        return {face: path for face, path in self.named_files().items() if path.is_file()}

    def find_numbered_faces(self) -> Dict[int, Path]:
        """Numbered face files that exist."""
        return {number: path for number, path in self.numbered_files().items() if path.is_file()}

    def get_face_set(self) -> FaceSet:
        """
        Resolve the six faces, preferring named files over numbered ones.

        Raises:
            IncompleteFaceSetError: If neither convention has all six files
        """
        named = self.find_named_faces()
        if len(named) == len(CubeFace):
            self.convention = NAMED
            logger.info(f"Using named cube faces from {self.input_dir}")
            return dict(named)

        numbered = self.find_numbered_faces()
        if len(numbered) == len(DICE_FACE_MAPPING):
            self.convention = NUMBERED
            logger.info(f"Using numbered die faces from {self.input_dir}")
            return CubemapUtils.map_dice_faces([numbered[n] for n in sorted(numbered)])

        self.convention = None
        missing_named = [path.name for face, path in self.named_files().items() if face not in named]
        missing_numbered = [path.name for n, path in self.numbered_files().items() if n not in numbered]
        raise IncompleteFaceSetError(
            f"No complete face set in {self.input_dir}: "
            f"missing {', '.join(missing_named)} (named) and "
            f"{', '.join(missing_numbered)} (numbered)",
            missing=missing_named if len(named) >= len(numbered) else missing_numbered,
        )
