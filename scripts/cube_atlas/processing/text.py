"""
Placeholder label textures for actors, buildings and cards.

Each texture is a transparent square with a translucent band, the item's
display text in its level or category colour and a faint dashed frame.
"""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union
from PIL import Image, ImageColor, ImageDraw

from ..utils.image import ImageUtils, load_font


logger = logging.getLogger(__name__)

LEVEL_COLORS = {
    '0': '#808080',
    '1': '#4CAF50',
    '2': '#2196F3',
    '3': '#9C27B0',
    '4': '#FF9800',
    '5': '#FFD700',
}

CATEGORY_COLORS = {
    'npc': '#FF6B6B',
    'object': '#00BCD4',
}

DEFAULT_COLOR = '#333333'

MAX_FULL_SIZE_CHARS = 8


@dataclass(frozen=True)
class TextureItem:
    """One label texture to render."""
    name: str
    category: str
    description: str = ""

    @property
    def display_text(self) -> str:
        """Description up to the first ``-``, falling back to the name."""
        text = self.description.split("-", 1)[0].strip()
        return text or self.name

    @property
    def color(self) -> str:
        level = re.search(r"lv(\d+)", self.name)
        if level:
            return LEVEL_COLORS.get(level.group(1), DEFAULT_COLOR)
        return CATEGORY_COLORS.get(self.category, DEFAULT_COLOR)


def load_items(path: Union[str, Path]) -> List[TextureItem]:
    """Read ``[{"name", "category", "description"}, ...]`` from a JSON file."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"Texture manifest {path} must be a JSON list")

    return [
        TextureItem(
            name=str(entry["name"]),
            category=str(entry.get("category", "misc")),
            description=str(entry.get("description", "")),
        )
        for entry in data
    ]


def select_items(items: Iterable[TextureItem], names: Optional[Iterable[str]] = None,
                 category: Optional[str] = None) -> List[TextureItem]:
    """
    Return a new list holding only the requested items.

    ``items`` is never modified; unknown names are ignored.
    """
    wanted = set(names) if names else None
    return [
        item for item in items
        if (wanted is None or item.name in wanted)
        and (category is None or item.category == category)
    ]


class TextTextureGenerator:
    """Renders TextureItems into transparent PNG labels."""

    def __init__(self, width: int = 256, height: int = 256, font_size: int = 32):
        if width <= 0 or height <= 0:
            raise ValueError(f"Texture size must be positive, got {width}x{height}")
        if font_size <= 0:
            raise ValueError(f"font_size must be positive, got {font_size}")
        self.width = width
        self.height = height
        self.font_size = font_size

    def fitted_font_size(self, text: str) -> int:
        """Shrink the font proportionally once text exceeds eight characters."""
        if len(text) > MAX_FULL_SIZE_CHARS:
            return max(1, int(self.font_size * MAX_FULL_SIZE_CHARS / len(text)))
        return self.font_size

    def _dashed_rectangle(self, draw: ImageDraw.ImageDraw, box: Tuple[int, int, int, int],
                          fill: Tuple[int, int, int, int], dash: int = 5) -> None:
        left, top, right, bottom = box
        for x in range(left, right, dash * 2):
            end = min(x + dash - 1, right)
            draw.line([(x, top), (end, top)], fill=fill)
            draw.line([(x, bottom), (end, bottom)], fill=fill)
        for y in range(top, bottom, dash * 2):
            end = min(y + dash - 1, bottom)
            draw.line([(left, y), (left, end)], fill=fill)
            draw.line([(right, y), (right, end)], fill=fill)

    def render(self, item: TextureItem) -> Image.Image:
        """Draw one label texture."""
        w, h = self.width, self.height
        text = item.display_text
        r, g, b = ImageColor.getrgb(item.color)[:3]

        image = Image.new('RGBA', (w, h), (0, 0, 0, 0))

        band = Image.new('RGBA', (w, h), (0, 0, 0, 0))
        ImageDraw.Draw(band).rounded_rectangle(
            [int(w * 0.1), int(h * 0.35), int(w * 0.9), int(h * 0.65)],
            radius=10, fill=(0, 0, 0, 51)
        )
        image = Image.alpha_composite(image, band)

        draw = ImageDraw.Draw(image)
        font = load_font(self.fitted_font_size(text))
        draw.text((w / 2, h / 2), text, fill=(r, g, b, 255), font=font, anchor="mm",
                  stroke_width=2, stroke_fill=(255, 255, 255, 204))

        self._dashed_rectangle(draw, (5, 5, w - 6, h - 6), (r, g, b, 77))

        return image

    def output_path(self, item: TextureItem, output_dir: Union[str, Path]) -> Path:
        return Path(output_dir) / item.category / f"{item.name}.png"

    def generate(self, item: TextureItem, output_dir: Union[str, Path]) -> Path:
        """Render ``item`` to ``<output_dir>/<category>/<name>.png``."""
        path = self.output_path(item, output_dir)
        logger.info(f"Rendering label '{item.display_text}' for {item.name} ({item.color})")
        return ImageUtils.save_image(self.render(item), path)

    def generate_batch(self, items: Iterable[TextureItem], output_dir: Union[str, Path],
                       only: Optional[Iterable[str]] = None) -> Dict[str, int]:
        """
        Render many items, continuing past individual failures.

        Args:
            items: Items to render
            output_dir: Root directory; one sub-directory per category
            only: Optional item names to restrict the batch to

        Returns:
            ``{"success": n, "failed": m}``
        """
        selected = select_items(items, only)
        counts = {"success": 0, "failed": 0}

        for item in selected:
            try:
                self.generate(item, output_dir)
                counts["success"] += 1
            except (OSError, ValueError) as e:
                logger.error(f"Failed to render label for {item.name}: {e}")
                counts["failed"] += 1

        logger.info(f"Rendered {counts['success']} labels, {counts['failed']} failed")
        return counts
