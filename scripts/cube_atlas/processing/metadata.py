"""
UV mapping report generation for horizontal-cross atlases.

The report is derived from the static layout table and the cell size alone,
so it can be produced without touching atlas pixels.
"""

from pathlib import Path
from typing import Any, Dict, Union

from ..utils.cubemap import (
    CubemapUtils, GRID_COLS, GRID_ROWS, HORIZONTAL_CROSS_LAYOUT
)
from ..utils.image import ImageUtils


REPORT_SUFFIX = "_uv_mapping.json"

USAGE_HINTS = {
    "cocos": "Use this atlas with custom shader supporting horizontal cross UV mapping",
    "unity": "Compatible with Unity's Cubemap texture import settings",
    "threejs": "Use with THREE.CubeTextureLoader or custom geometry UV",
}


def report_path_for(atlas_path: Union[str, Path]) -> Path:
    """Sidecar path for an atlas: ``dice.png`` -> ``dice_uv_mapping.json``."""
    atlas_path = Path(atlas_path)
    return atlas_path.with_name(f"{atlas_path.stem}{REPORT_SUFFIX}")


class UVMappingReporter:
    """Builds and writes the machine-readable face mapping of an atlas."""

    def build_report(self, cell_size: int, atlas_name: str = "horizontal_cross_atlas.png",
                     gutter_size: int = 0) -> Dict[str, Any]:
        """
        Describe where every face lives inside an atlas.

        ``uvRange`` uses a bottom-left origin (v grows upwards, row 0 is the
        bottom row). ``pixelRange`` uses the top-left origin of the image file;
        both ranges are [start, end) pairs.

        Args:
            cell_size: Edge length of one grid cell in pixels
            atlas_name: File name recorded in the report
            gutter_size: Transparent border applied to each face (0 for none)

        Returns:
            JSON-serialisable report dictionary

        Raises:
            ValueError: If ``cell_size`` is not positive
        """
        if cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")

        total_width, total_height = CubemapUtils.calculate_atlas_size(cell_size)

        face_mapping = []
        for face, cell in HORIZONTAL_CROSS_LAYOUT.items():
            left, top, right, bottom = CubemapUtils.pixel_box(cell.col, cell.row, cell_size)
            face_mapping.append({
                "face": face.value,
                "gridPosition": {"col": cell.col, "row": cell.row},
                "uvRange": {
                    "u": list(cell.u_range),
                    "v": list(cell.v_range),
                },
                "pixelRange": {
                    "x": [left, right],
                    "y": [top, bottom],
                },
            })

        return {
            "atlas": atlas_name,
            "gridSize": {"cols": GRID_COLS, "rows": GRID_ROWS},
            "cellSize": {"width": cell_size, "height": cell_size},
            "totalSize": {"width": total_width, "height": total_height},
            "uvOrigin": "bottom-left",
            "pixelOrigin": "top-left",
            "gutter": {"enabled": gutter_size > 0, "size": gutter_size},
            "faceMapping": face_mapping,
            "usage": dict(USAGE_HINTS),
        }

    def write_report(self, atlas_path: Union[str, Path], cell_size: int,
                     gutter_size: int = 0) -> Path:
        """Write the report next to ``atlas_path`` and return the report path."""
        atlas_path = Path(atlas_path)
        report = self.build_report(cell_size, atlas_path.name, gutter_size)
        return ImageUtils.save_json(report, report_path_for(atlas_path))
