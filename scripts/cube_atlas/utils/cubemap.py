"""
Cube face identifiers, the horizontal-cross layout table and geometry helpers.

Grid rows and UV ``v`` use a bottom-left origin (row 0 is the bottom row, as in
OpenGL). Pixel coordinates use the top-left origin of image files, so a cell at
grid ``row`` starts at pixel ``y = (MAX_ROW - row) * cell_size``.

    row2:  [empty] [+Y]    [empty] [empty]
    row1:  [-X]    [+Z]    [+X]    [-Z]
    row0:  [empty] [-Y]    [empty] [empty]
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union


T = TypeVar("T")


class IncompleteFaceSetError(Exception):
    """Exception raised when a face set is missing faces or names unknown ones."""

    def __init__(self, message: str, missing: Sequence[str] = (), unexpected: Sequence[str] = ()):
        super().__init__(message)
        self.message = message
        self.missing = list(missing)
        self.unexpected = list(unexpected)


class CubeFace(str, Enum):
    """Outward normal of a cube face in a right-handed coordinate system."""
    POSITIVE_X = "positiveX"
    NEGATIVE_X = "negativeX"
    POSITIVE_Y = "positiveY"
    NEGATIVE_Y = "negativeY"
    POSITIVE_Z = "positiveZ"
    NEGATIVE_Z = "negativeZ"

    @property
    def file_stem(self) -> str:
        """File name stem used on disk, e.g. ``positive_x``."""
        sign, axis = self.value[:-1], self.value[-1]
        return f"{sign}_{axis.lower()}"

    @property
    def label(self) -> str:
        """Short label such as ``+X`` or ``-Z``."""
        sign = "+" if self.value.startswith("positive") else "-"
        return f"{sign}{self.value[-1]}"


@dataclass(frozen=True)
class FaceCell:
    """Grid placement of one face in the 4x3 horizontal cross."""
    face: CubeFace
    col: int
    row: int

    @property
    def u_range(self) -> Tuple[float, float]:
        return (self.col / GRID_COLS, (self.col + 1) / GRID_COLS)

    @property
    def v_range(self) -> Tuple[float, float]:
        return (self.row / GRID_ROWS, (self.row + 1) / GRID_ROWS)


GRID_COLS = 4
GRID_ROWS = 3
MAX_ROW = GRID_ROWS - 1
ATLAS_ASPECT_RATIO = GRID_COLS / GRID_ROWS

# Order matches the sidecar report: middle row left to right, then top, then bottom.
HORIZONTAL_CROSS_LAYOUT: Mapping[CubeFace, FaceCell] = MappingProxyType({
    CubeFace.NEGATIVE_X: FaceCell(CubeFace.NEGATIVE_X, col=0, row=1),
    CubeFace.POSITIVE_Z: FaceCell(CubeFace.POSITIVE_Z, col=1, row=1),
    CubeFace.POSITIVE_X: FaceCell(CubeFace.POSITIVE_X, col=2, row=1),
    CubeFace.NEGATIVE_Z: FaceCell(CubeFace.NEGATIVE_Z, col=3, row=1),
    CubeFace.POSITIVE_Y: FaceCell(CubeFace.POSITIVE_Y, col=1, row=2),
    CubeFace.NEGATIVE_Y: FaceCell(CubeFace.NEGATIVE_Y, col=1, row=0),
})

# Standard die: opposite faces sum to seven (1-6, 2-5, 3-4).
DICE_FACE_MAPPING: Mapping[int, CubeFace] = MappingProxyType({
    1: CubeFace.POSITIVE_X,
    2: CubeFace.POSITIVE_Y,
    3: CubeFace.POSITIVE_Z,
    4: CubeFace.NEGATIVE_Z,
    5: CubeFace.NEGATIVE_Y,
    6: CubeFace.NEGATIVE_X,
})


class CubemapUtils:
    """Utility class for horizontal-cross cubemap geometry."""

    @staticmethod
    def parse_face(name: Union[str, CubeFace]) -> Optional[CubeFace]:
        """
        Resolve a face from its enum value, camelCase name or file stem.

        Returns:
            The matching CubeFace, or None if the name is not a face
        """
        if isinstance(name, CubeFace):
            return name

        normalized = str(name).strip().replace("_", "").replace("-", "").lower()
        for face in CubeFace:
            if face.value.lower() == normalized:
                return face
        return None

    @staticmethod
    def empty_cells() -> List[Tuple[int, int]]:
        """Return (col, row) of the six unpopulated grid cells."""
        used = {(cell.col, cell.row) for cell in HORIZONTAL_CROSS_LAYOUT.values()}
        return [
            (col, row)
            for row in range(GRID_ROWS)
            for col in range(GRID_COLS)
            if (col, row) not in used
        ]

    @staticmethod
    def calculate_atlas_size(cell_size: int) -> Tuple[int, int]:
        """Pixel (width, height) of an atlas built from ``cell_size`` squares."""
        return (cell_size * GRID_COLS, cell_size * GRID_ROWS)

    @staticmethod
    def calculate_cell_size(atlas_size: Tuple[int, int]) -> Optional[int]:
        """Cell size of an atlas, or None if it does not split into equal square cells."""
        width, height = atlas_size
        if width <= 0 or height <= 0 or width % GRID_COLS or height % GRID_ROWS:
            return None
        if width // GRID_COLS != height // GRID_ROWS:
            return None
        return width // GRID_COLS

    @staticmethod
    def pixel_origin(col: int, row: int, cell_size: int) -> Tuple[int, int]:
        """Top-left pixel (x, y) of a grid cell, flipping the bottom-up row index."""
        return (col * cell_size, (MAX_ROW - row) * cell_size)

    @staticmethod
    def pixel_box(col: int, row: int, cell_size: int) -> Tuple[int, int, int, int]:
        """Pixel box (left, top, right, bottom) of a grid cell, right/bottom exclusive."""
        x, y = CubemapUtils.pixel_origin(col, row, cell_size)
        return (x, y, x + cell_size, y + cell_size)

    @staticmethod
    def face_pixel_box(face: CubeFace, cell_size: int) -> Tuple[int, int, int, int]:
        """Pixel box of ``face`` inside an atlas of the given cell size."""
        cell = HORIZONTAL_CROSS_LAYOUT[face]
        return CubemapUtils.pixel_box(cell.col, cell.row, cell_size)

    @staticmethod
    def validate_cross_ratio(size: Tuple[int, int], tolerance: float = 0.01) -> bool:
        """
        Check that dimensions follow the 4:3 horizontal-cross ratio.

        Args:
            size: (width, height) dimensions
            tolerance: Maximum relative error from 4:3

        Returns:
            True if the ratio is within tolerance
        """
        width, height = size
        if width <= 0 or height <= 0:
            return False

        ratio = width / height
        return abs(ratio - ATLAS_ASPECT_RATIO) / ATLAS_ASPECT_RATIO <= tolerance

    @staticmethod
    def map_dice_faces(dice_faces: Sequence[T]) -> Dict[CubeFace, T]:
        """
        Assign six die faces (ordered 1..6) to cube faces via ``DICE_FACE_MAPPING``.

        Raises:
            IncompleteFaceSetError: If not exactly six die faces are given
        """
        if len(dice_faces) != len(DICE_FACE_MAPPING):
            raise IncompleteFaceSetError(
                f"A die needs exactly {len(DICE_FACE_MAPPING)} faces, got {len(dice_faces)}"
            )

        return {
            DICE_FACE_MAPPING[number]: dice_faces[number - 1]
            for number in sorted(DICE_FACE_MAPPING)
        }
