"""
Horizontal-cross atlas composition for cube faces.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple, TypeVar, Union
from PIL import Image

from ..utils.cubemap import (
    CubeFace, CubemapUtils, HORIZONTAL_CROSS_LAYOUT, IncompleteFaceSetError
)
from ..utils.image import ImageUtils


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Rectangle:
    """Rectangle for atlas layout calculations."""
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """(left, top, right, bottom) as used by ``Image.crop``."""
        return (self.x, self.y, self.right, self.bottom)

    def intersects(self, other: 'Rectangle') -> bool:
        """Check if this rectangle intersects with another."""
        return not (self.right <= other.x or other.right <= self.x or
                   self.bottom <= other.y or other.bottom <= self.y)


@dataclass
class AtlasLayout:
    """Pixel placement of every face in an atlas."""
    width: int
    height: int
    positions: Dict[CubeFace, Rectangle]

    @property
    def efficiency(self) -> float:
        """Share of the canvas covered by faces (always 0.5 for a horizontal cross)."""
        used = sum(rect.width * rect.height for rect in self.positions.values())
        total = self.width * self.height
        return used / total if total > 0 else 0.0


@dataclass
class AtlasResult:
    """Result of atlas composition."""
    atlas: Image.Image
    layout: AtlasLayout
    cell_size: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    def face_region(self, face: Union[CubeFace, str]) -> Image.Image:
        """Crop the pixels written for ``face`` back out of the atlas."""
        resolved = CubemapUtils.parse_face(face)
        if resolved is None:
            raise KeyError(f"Unknown cube face: {face}")
        return self.atlas.crop(self.layout.positions[resolved].box)

    def save_atlas(self, path: Union[str, Path], compress_level: int = 6) -> Path:
        """Save atlas image as PNG, replacing the destination only once fully written."""
        return ImageUtils.save_image(self.atlas, path, compress_level=compress_level)


class CrossLayoutEngine:
    """Places six cube faces into a 4x3 horizontal-cross canvas."""

    def __init__(self, cell_size: int):
        """Initialize layout engine for square cells of ``cell_size`` pixels."""
        if cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        self.cell_size = cell_size

    @staticmethod
    def resolve_faces(faces: Mapping[Union[CubeFace, str], T]) -> Dict[CubeFace, T]:
        """
        Key a face mapping by CubeFace, accepting enum members or face names.

        Raises:
            IncompleteFaceSetError: If any face is missing, unknown or given twice
        """
        resolved: Dict[CubeFace, T] = {}
        unexpected = []

        for key, value in faces.items():
            face = CubemapUtils.parse_face(key)
            if face is None or face in resolved:
                unexpected.append(str(key))
                continue
            resolved[face] = value

        missing = [face.value for face in CubeFace if face not in resolved]

        if missing or unexpected:
            parts = []
            if missing:
                parts.append(f"missing {', '.join(missing)}")
            if unexpected:
                parts.append(f"unexpected {', '.join(unexpected)}")
            raise IncompleteFaceSetError(
                f"A horizontal cross needs exactly the six cube faces ({'; '.join(parts)})",
                missing=missing,
                unexpected=unexpected,
            )

        return resolved

    def calculate_layout(self) -> AtlasLayout:
        """Compute the pixel rectangle of every face."""
        width, height = CubemapUtils.calculate_atlas_size(self.cell_size)
        layout = AtlasLayout(width, height, {})

        for face, cell in HORIZONTAL_CROSS_LAYOUT.items():
            x, y = CubemapUtils.pixel_origin(cell.col, cell.row, self.cell_size)
            rect = Rectangle(x, y, self.cell_size, self.cell_size)
            for other_face, other in layout.positions.items():
                if rect.intersects(other):
                    raise AtlasGenerationError(f"Cells of {face.value} and {other_face.value} overlap")
            layout.positions[face] = rect

        return layout

    def compose(self, faces: Mapping[Union[CubeFace, str], Image.Image]) -> AtlasResult:
        """
        Composite six prepared faces into one transparent atlas.

        Args:
            faces: Mapping of every cube face to a ``cell_size`` square image

        Returns:
            AtlasResult with the ``(4 * cell_size, 3 * cell_size)`` RGBA atlas

        Raises:
            IncompleteFaceSetError: If the face set is not exactly the six faces
            AtlasGenerationError: If a face image is not ``cell_size`` square
        """
        resolved = self.resolve_faces(faces)

        for face, image in resolved.items():
            if image.size != (self.cell_size, self.cell_size):
                raise AtlasGenerationError(
                    f"Face {face.value} has size {image.size}, expected "
                    f"({self.cell_size}, {self.cell_size})"
                )

        layout = self.calculate_layout()
        atlas = Image.new('RGBA', (layout.width, layout.height), (0, 0, 0, 0))

        for face, rect in layout.positions.items():
            # Straight copy: gutters stay fully transparent and the cell is byte-exact.
            atlas.paste(ImageUtils.ensure_rgba(resolved[face]), (rect.x, rect.y))
            logger.debug(f"Placed {face.label} at ({rect.x}, {rect.y})")

        return AtlasResult(
            atlas=atlas,
            layout=layout,
            cell_size=self.cell_size,
            metadata={
                "layout": "horizontal_cross",
                "layout_efficiency": layout.efficiency,
            },
        )


class AtlasGenerationError(Exception):
    """Exception raised when atlas generation fails."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


__all__ = [
    "Rectangle",
    "AtlasLayout",
    "AtlasResult",
    "CrossLayoutEngine",
    "AtlasGenerationError",
    "IncompleteFaceSetError",
]
