"""
Post-processing for loose sprite images.

Each PNG in a directory is trimmed to its visible pixels and fitted, aspect
ratio intact, into the centre of a transparent square. Originals can be
backed up and overwritten in place; a ``process_report.json`` summarises the run.
"""

import logging
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from PIL import Image

from ..utils.image import ImageLoadError, ImageSource, ImageUtils


logger = logging.getLogger(__name__)

REPORT_NAME = "process_report.json"


@dataclass
class TrimConfig:
    """Settings for a trim-and-fit run."""
    size: int = 256
    backup: bool = True
    overwrite: bool = False
    quality_method: str = 'lanczos'

    def __post_init__(self):
        if self.size <= 0:
            raise ValueError(f"size must be positive, got {self.size}")
        if self.overwrite and not self.backup:
            raise ValueError("Overwriting the original images requires a backup")


def backup_dir_for(input_dir: Union[str, Path]) -> Path:
    """``sprites/`` is backed up to the sibling ``sprites_backup/``."""
    input_dir = Path(input_dir)
    return input_dir.parent / f"{input_dir.name}_backup"


def default_output_dir(input_dir: Union[str, Path]) -> Path:
    input_dir = Path(input_dir)
    return input_dir.parent / f"{input_dir.name}_processed"


class TrimProcessor:
    """Trims transparent borders and fits images into transparent squares."""

    def __init__(self, config: Optional[TrimConfig] = None):
        self.config = config or TrimConfig()

    def process_image(self, source: ImageSource) -> Image.Image:
        """
        Trim and fit one image.

        Args:
            source: File path, encoded bytes or PIL Image (never modified)

        Returns:
            New RGBA ``size x size`` image

        Raises:
            ImageLoadError: If the source cannot be read
        """
        image = ImageUtils.ensure_rgba(ImageUtils.load_image(source))
        trimmed = ImageUtils.crop_to_content(image)
        return ImageUtils.resize_with_aspect(trimmed, self.config.size, self.config.quality_method)

    def process_file(self, input_path: Union[str, Path], output_path: Union[str, Path]) -> Path:
        """Process ``input_path`` and write the result to ``output_path``."""
        result = self.process_image(input_path)
        return ImageUtils.save_image(result, output_path)

    def find_images(self, input_dir: Path) -> List[Path]:
        """PNG files directly inside ``input_dir``, sorted by name."""
        return sorted(
            path for path in input_dir.iterdir()
            if path.is_file() and path.suffix.lower() == ".png"
        )

    def process_directory(self, input_dir: Union[str, Path],
                          output_dir: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """
        Process every PNG in ``input_dir`` and write ``process_report.json``.

        With ``overwrite`` the results replace the originals (after the backup);
        otherwise they go to ``output_dir`` (default ``<input>_processed``).
        A file that fails is counted and skipped.

        Returns:
            The report that was written

        Raises:
            FileNotFoundError: If ``input_dir`` does not exist
            ValueError: If ``input_dir`` holds no PNG files
        """
        input_dir = Path(input_dir)
        if not input_dir.is_dir():
            raise FileNotFoundError(f"Input directory not found: {input_dir}")

        files = self.find_images(input_dir)
        if not files:
            raise ValueError(f"No PNG files found in {input_dir}")

        if self.config.overwrite:
            output_dir = input_dir
        else:
            output_dir = Path(output_dir) if output_dir else default_output_dir(input_dir)

        backup_dir = None
        if self.config.backup:
            backup_dir = backup_dir_for(input_dir)
            backup_dir.mkdir(parents=True, exist_ok=True)
            for path in files:
                shutil.copy2(path, backup_dir / path.name)
            logger.info(f"Backed up {len(files)} images to {backup_dir}")

        entries = []
        for path in files:
            output_path = output_dir / path.name
            try:
                self.process_file(path, output_path)
            except (ImageLoadError, OSError) as e:
                logger.error(f"Failed to process {path.name}: {e}")
                entries.append({"name": path.name, "path": str(output_path), "success": False})
                continue
            logger.info(f"Processed {path.name} -> {output_path}")
            entries.append({"name": path.name, "path": str(output_path), "success": True})

        succeeded = sum(1 for entry in entries if entry["success"])
        report = {
            "timestamp": datetime.now().isoformat(),
            "settings": {
                "targetSize": self.config.size,
                "inputDir": str(input_dir),
                "outputDir": str(output_dir),
                "backupDir": str(backup_dir) if backup_dir else None,
                "overwrite": self.config.overwrite,
            },
            "summary": {
                "total": len(files),
                "success": succeeded,
                "failed": len(files) - succeeded,
            },
            "files": entries,
        }
        ImageUtils.save_json(report, output_dir / REPORT_NAME)
        return report
