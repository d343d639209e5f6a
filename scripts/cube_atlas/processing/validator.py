"""
Post-hoc validation of horizontal-cross atlases.

Shape problems are reported through ValidationResult; only a failure to read
the atlas is raised (as ImageLoadError).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Dict, Any, Optional
from PIL import Image
import numpy as np

from ..config import ValidationConfig
from .normalizer import InvalidGutterError
from ..utils.cubemap import ATLAS_ASPECT_RATIO, CubemapUtils, HORIZONTAL_CROSS_LAYOUT
from ..utils.image import ImageSource, ImageUtils


@dataclass
class ValidationResult:
    """Result of atlas validation."""
    asset_name: str
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        """Check if validation passed (no errors)."""
        return len(self.errors) == 0

    @property
    def has_warnings(self) -> bool:
        """Check if validation has warnings."""
        return len(self.warnings) > 0

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)

    def __bool__(self) -> bool:
        return self.is_valid


class AtlasValidator:
    """Checks that an image is a well-formed horizontal-cross atlas."""

    def __init__(self, config: Optional[ValidationConfig] = None):
        """Initialize validator with configuration."""
        self.config = config or ValidationConfig()

    def validate(self, source: ImageSource, gutter_size: Optional[int] = None,
                 name: Optional[str] = None) -> ValidationResult:
        """
        Validate an atlas file, encoded buffer or image.

        Args:
            source: Atlas path, bytes or PIL Image (never modified)
            gutter_size: If given, also require a transparent border of this width
                around every face
            name: Name used in the result; defaults to the path or "atlas"

        Returns:
            ValidationResult; ``is_valid`` is False for zero-sized or non-4:3 atlases

        Raises:
            ImageLoadError: If the atlas cannot be read at all
            InvalidGutterError: If gutter_size is negative
        """
        if gutter_size is not None and gutter_size < 0:
            raise InvalidGutterError(f"Gutter size must not be negative, got {gutter_size}", None, gutter_size)

        if name is None:
            name = str(source) if isinstance(source, (str, Path)) else "atlas"

        image = ImageUtils.load_image(source)
        result = ValidationResult(name)
        result.metadata["size"] = image.size

        if not self._validate_dimensions(image, result):
            return result

        cell_size = CubemapUtils.calculate_cell_size(image.size)
        result.metadata["cell_size"] = cell_size
        if cell_size is None:
            result.add_warning(
                f"Atlas {image.width}x{image.height} does not split into equal square cells"
            )
            return result

        alpha = ImageUtils.alpha_array(image)
        self._validate_empty_cells(alpha, cell_size, result)

        if gutter_size:
            self._validate_gutters(alpha, cell_size, gutter_size, result)

        return result

    def _validate_dimensions(self, image: Image.Image, result: ValidationResult) -> bool:
        """Check non-zero size and the 4:3 aspect ratio."""
        width, height = image.size

        if width <= 0 or height <= 0:
            result.add_error(f"Atlas has invalid dimensions: {width}x{height}")
            return False

        ratio = width / height
        result.metadata["aspect_ratio"] = ratio

        if not CubemapUtils.validate_cross_ratio(image.size, self.config.aspect_tolerance):
            result.add_error(
                f"Aspect ratio {ratio:.2f} does not match expected {ATLAS_ASPECT_RATIO:.2f} (4:3)"
            )
            return False

        return True

    def _validate_empty_cells(self, alpha: np.ndarray, cell_size: int, result: ValidationResult) -> None:
        """Warn when cells outside the cross contain visible pixels."""
        for col, row in CubemapUtils.empty_cells():
            left, top, right, bottom = CubemapUtils.pixel_box(col, row, cell_size)
            if np.any(alpha[top:bottom, left:right] > 0):
                result.add_warning(f"Empty cell (col {col}, row {row}) is not transparent")

    def _validate_gutters(self, alpha: np.ndarray, cell_size: int, gutter_size: int,
                          result: ValidationResult) -> None:
        """Require every face border of ``gutter_size`` pixels to be fully transparent."""
        if 2 * gutter_size >= cell_size:
            result.add_error(f"Gutter size {gutter_size} does not fit in {cell_size}px cells")
            return

        g = gutter_size
        for face in HORIZONTAL_CROSS_LAYOUT:
            left, top, right, bottom = CubemapUtils.face_pixel_box(face, cell_size)
            cell = alpha[top:bottom, left:right]
            border = np.concatenate([
                cell[:g, :].ravel(),
                cell[-g:, :].ravel(),
                cell[:, :g].ravel(),
                cell[:, -g:].ravel(),
            ])
            opaque = int(np.sum(border > 0))
            if opaque:
                result.add_error(
                    f"Face {face.value} has {opaque} non-transparent pixels in its {g}px gutter"
                )
