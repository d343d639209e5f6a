"""
Face normalization: load a source image, stretch it to a square cell and
optionally inset it behind a transparent gutter.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from PIL import Image

from ..utils.image import ImageSource, ImageUtils


logger = logging.getLogger(__name__)


@dataclass
class NormalizationConfig:
    """Configuration for face normalization."""
    cell_size: int = 128
    gutter_size: int = 0  # 0 disables the gutter
    quality_method: str = 'lanczos'  # Resampling method for quality preservation

    def __post_init__(self):
        if self.cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {self.cell_size}")
        validate_gutter(self.cell_size, self.gutter_size)


def validate_gutter(cell_size: int, gutter_size: int) -> None:
    """
    Check that a gutter leaves a non-empty content square inside the cell.

    Raises:
        InvalidGutterError: If ``gutter_size < 0`` or ``2 * gutter_size >= cell_size``
    """
    if gutter_size < 0:
        raise InvalidGutterError(f"Gutter size must not be negative, got {gutter_size}", cell_size, gutter_size)
    if 2 * gutter_size >= cell_size:
        raise InvalidGutterError(
            f"Gutter size {gutter_size} leaves no content in a {cell_size}px cell "
            f"(2 * gutter must be < cell size)",
            cell_size,
            gutter_size,
        )


class FaceNormalizer:
    """Turns arbitrary source images into cell-sized RGBA faces."""

    def __init__(self, config: NormalizationConfig):
        """Initialize normalizer with configuration."""
        self.config = config

    @property
    def cell_size(self) -> int:
        return self.config.cell_size

    def normalize(self, source: ImageSource) -> Image.Image:
        """
        Load ``source`` and stretch it to a ``cell_size`` square.

        The source aspect ratio is not preserved; callers wanting letterboxing
        must crop their images first.

        Args:
            source: File path, encoded bytes or PIL Image

        Returns:
            New RGBA image of ``cell_size x cell_size``

        Raises:
            ImageLoadError: If the source is missing or undecodable
        """
        image = ImageUtils.ensure_rgba(ImageUtils.load_image(source))
        target = (self.cell_size, self.cell_size)
        if image.size != target:
            logger.debug(f"Resizing face from {image.size} to {target}")
        return ImageUtils.resize_with_quality(image, target, self.config.quality_method)

    def apply_gutter(self, image: Image.Image, gutter_size: Optional[int] = None) -> Image.Image:
        """
        Shrink a normalized face into the centre of its cell behind a transparent border.

        Args:
            image: Normalized ``cell_size`` square
            gutter_size: Border width in pixels; defaults to the configured gutter

        Returns:
            New ``cell_size`` square whose outer ``gutter_size`` pixels have alpha 0

        Raises:
            InvalidGutterError: If the gutter does not fit in the cell
        """
        if gutter_size is None:
            gutter_size = self.config.gutter_size

        validate_gutter(self.cell_size, gutter_size)

        if gutter_size == 0:
            return image.copy()

        inner_size = self.cell_size - 2 * gutter_size
        shrunk = ImageUtils.resize_with_quality(
            ImageUtils.ensure_rgba(image), (inner_size, inner_size), self.config.quality_method
        )
        return ImageUtils.center_content(shrunk, (self.cell_size, self.cell_size))

    def prepare_face(self, source: ImageSource) -> Image.Image:
        """Normalize a source image and apply the configured gutter."""
        face = self.normalize(source)
        if self.config.gutter_size:
            face = self.apply_gutter(face)
        return face


class InvalidGutterError(ValueError):
    """Exception raised when a gutter is geometrically impossible for the cell size."""

    def __init__(self, message: str, cell_size: Optional[int], gutter_size: int):
        super().__init__(message)
        self.message = message
        self.cell_size = cell_size
        self.gutter_size = gutter_size
