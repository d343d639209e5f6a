"""
Procedural die faces drawn with Pillow.

Face 1 is drawn in a highlight colour; the other faces use the dot colour.
"""

import logging
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple, Union
from PIL import Image, ImageColor, ImageDraw

from .base import FaceSource, FaceSet, ConfigurationError
from ..utils.cubemap import CubemapUtils, DICE_FACE_MAPPING
from ..utils.image import ImageUtils, load_font


logger = logging.getLogger(__name__)

DOTS = "dots"
NUMBERS = "numbers"

BORDER_INSET = 2
BORDER_WIDTH = 2
BORDER_RADIUS = 8


class DiceFaceSource(FaceSource):
    """Renders the six faces of a standard die as dots or numerals."""

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self._apply(config)

    def _apply(self, config: Dict[str, Any]) -> None:
        self.size = config.get("size", 128)
        self.style = config.get("style", DOTS)
        self.background_color = config.get("background_color", "#FFFFFF")
        self.dot_color = config.get("dot_color", "#000000")
        self.special_color = config.get("special_color", "#FF0000")
        self.dot_radius: Optional[int] = config.get("dot_radius")

    def configure(self, config: Dict[str, Any]) -> None:
        """Configure rendering options."""
        errors = self.validate_config(config)
        if errors:
            raise ConfigurationError('; '.join(errors), "DiceFaceSource")
        self._apply(config)
        self._configured = True

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        errors = []

        size = config.get("size", 128)
        if not isinstance(size, int) or size <= 0:
            errors.append("'size' must be a positive integer")

        if config.get("style", DOTS) not in (DOTS, NUMBERS):
            errors.append(f"'style' must be '{DOTS}' or '{NUMBERS}'")

        for key in ("background_color", "dot_color", "special_color"):
            if key in config:
                try:
                    ImageColor.getrgb(config[key])
                except ValueError:
                    errors.append(f"'{key}' is not a valid colour: {config[key]}")

        radius = config.get("dot_radius")
        if radius is not None and (not isinstance(radius, int) or radius <= 0):
            errors.append("'dot_radius' must be a positive integer")

        return errors

    def get_dot_positions(self, face_number: int) -> List[Tuple[float, float]]:
        """Pip centres of a standard die face, 15% padding from the edges."""
        padding = self.size * 0.15
        left, top = padding, padding
        right, bottom = self.size - padding, self.size - padding
        center = self.size / 2

        layouts = {
            1: [(center, center)],
            2: [(left, top), (right, bottom)],
            3: [(left, top), (center, center), (right, bottom)],
            4: [(left, top), (right, top), (left, bottom), (right, bottom)],
            5: [(left, top), (right, top), (center, center), (left, bottom), (right, bottom)],
            6: [(left, top), (left, center), (left, bottom),
                (right, top), (right, center), (right, bottom)],
        }
        return layouts.get(face_number, [])

    def _face_color(self, face_number: int) -> str:
        return self.special_color if face_number == 1 else self.dot_color

    def _effective_dot_radius(self) -> float:
        # 10px on the 128px reference face
        if self.dot_radius is not None:
            return self.dot_radius
        return max(1.0, self.size * 10 / 128)

    def render_face(self, face_number: int) -> Image.Image:
        """
        Draw one die face.

        Args:
            face_number: 1..6

        Returns:
            Opaque RGBA ``size x size`` image

        Raises:
            ValueError: If face_number is not 1..6
        """
        if face_number not in DICE_FACE_MAPPING:
            raise ValueError(f"Die face must be 1-6, got {face_number}")

        image = Image.new('RGBA', (self.size, self.size), ImageColor.getcolor(self.background_color, 'RGBA'))
        draw = ImageDraw.Draw(image)
        color = self._face_color(face_number)

        far = self.size - 1 - BORDER_INSET
        draw.rounded_rectangle(
            [BORDER_INSET, BORDER_INSET, far, far],
            radius=BORDER_RADIUS, outline=color, width=BORDER_WIDTH
        )

        if self.style == NUMBERS:
            font = load_font(max(1, int(self.size * 0.5)))
            draw.text((self.size / 2, self.size / 2), str(face_number),
                      fill=color, font=font, anchor="mm")
        else:
            r = self._effective_dot_radius()
            for x, y in self.get_dot_positions(face_number):
                draw.ellipse([x - r, y - r, x + r, y + r], fill=color)

        return image

    def file_name(self, face_number: int) -> str:
        prefix = "dice_number" if self.style == NUMBERS else "dice_face"
        return f"{prefix}_{face_number}.png"

    def write_faces(self, output_dir: Union[str, Path]) -> List[Path]:
        """Render all six faces to ``output_dir`` and return their paths in 1..6 order."""
        output_dir = Path(output_dir)
        paths = []
        for number in sorted(DICE_FACE_MAPPING):
            path = ImageUtils.save_image(self.render_face(number), output_dir / self.file_name(number))
            logger.info(f"Die face {number} written to {path}")
            paths.append(path)
        return paths

    def get_face_set(self) -> FaceSet:
        """Render the six faces in memory and place them through the dice mapping."""
        faces = [self.render_face(number) for number in sorted(DICE_FACE_MAPPING)]
        return CubemapUtils.map_dice_faces(faces)
