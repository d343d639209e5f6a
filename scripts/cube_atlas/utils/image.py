"""
Image loading, resizing and saving helpers shared by the compositor and validator.
"""

import io
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np
from PIL import Image, ImageFont, UnidentifiedImageError


ImageSource = Union[str, Path, bytes, Image.Image]

RESAMPLING_METHODS = {
    'lanczos': Image.Resampling.LANCZOS,
    'bicubic': Image.Resampling.BICUBIC,
    'bilinear': Image.Resampling.BILINEAR,
    'nearest': Image.Resampling.NEAREST,
}


def load_font(size: int, bold: bool = True) -> ImageFont.ImageFont:
    """Load DejaVu Sans (shipped with most Pillow installs), else Pillow's default font."""
    name = "DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf"
    try:
        return ImageFont.truetype(name, size)
    except OSError:
        return ImageFont.load_default(size=size)


def _default_file_mode() -> int:
    """Mode a plainly created file would get under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


class ImageLoadError(Exception):
    """Exception raised when a source image is missing or cannot be decoded."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source


class ImageUtils:
    """Utility class for common image processing operations."""

    @staticmethod
    def load_image(data: ImageSource) -> Image.Image:
        """
        Load image from various sources.

        Args:
            data: Image data as bytes, file path, or PIL Image

        Returns:
            Fully decoded PIL Image object

        Raises:
            ImageLoadError: If the file is missing or cannot be decoded
        """
        if isinstance(data, Image.Image):
            return data

        if isinstance(data, bytes):
            try:
                image = Image.open(io.BytesIO(data))
                image.load()
                return image
            except (UnidentifiedImageError, OSError) as e:
                raise ImageLoadError(f"Cannot load image from bytes: {e}")

        if isinstance(data, (str, Path)):
            path = Path(data)
            if not path.is_file():
                raise ImageLoadError(f"Image file not found: {path}", str(path))
            try:
                with Image.open(path) as image:
                    image.load()
                    return image.copy()
            except (UnidentifiedImageError, OSError) as e:
                raise ImageLoadError(f"Cannot load image from path '{path}': {e}", str(path))

        raise ImageLoadError(f"Unsupported image data type: {type(data)}")

    @staticmethod
    def ensure_rgba(image: Image.Image) -> Image.Image:
        """Convert image to RGBA mode if not already."""
        if image.mode != 'RGBA':
            return image.convert('RGBA')
        return image

    @staticmethod
    def get_resampling(method: str) -> Image.Resampling:
        """Map a resampling method name to the Pillow filter, defaulting to Lanczos."""
        return RESAMPLING_METHODS.get(method.lower(), Image.Resampling.LANCZOS)

    @staticmethod
    def resize_with_quality(image: Image.Image, target_size: Tuple[int, int],
                           method: str = 'lanczos') -> Image.Image:
        """
        Resize image to exactly ``target_size``, ignoring the source aspect ratio.

        Args:
            image: Source image
            target_size: Target (width, height)
            method: Resampling method ('lanczos', 'bicubic', 'bilinear', 'nearest')

        Returns:
            New resized image
        """
        return image.resize(target_size, ImageUtils.get_resampling(method))

    @staticmethod
    def resize_with_aspect(image: Image.Image, size: int, method: str = 'lanczos') -> Image.Image:
        """
        Fit image inside a transparent ``size`` square without distorting it.

        The longer side becomes ``size``; the shorter side is padded equally
        on both ends.

        Returns:
            New RGBA image of ``size x size``
        """
        scale = min(size / image.width, size / image.height)
        fitted = (max(1, round(image.width * scale)), max(1, round(image.height * scale)))
        resized = ImageUtils.resize_with_quality(ImageUtils.ensure_rgba(image), fitted, method)
        return ImageUtils.center_content(resized, (size, size))

    @staticmethod
    def crop_to_content(image: Image.Image) -> Image.Image:
        """Crop away fully transparent rows and columns; a blank image is returned unchanged."""
        bbox = ImageUtils.get_bounding_box(image)
        if bbox is None:
            return image
        return image.crop(bbox)

    @staticmethod
    def center_content(image: Image.Image, target_size: Tuple[int, int]) -> Image.Image:
        """
        Place image in the middle of a transparent canvas of ``target_size``.

        Pixels are copied as-is (no alpha blending), so the centered region is
        identical to the input.
        """
        target_width, target_height = target_size
        result = Image.new('RGBA', target_size, (0, 0, 0, 0))

        x_offset = (target_width - image.width) // 2
        y_offset = (target_height - image.height) // 2
        result.paste(image, (x_offset, y_offset))

        return result

    @staticmethod
    def alpha_array(image: Image.Image) -> np.ndarray:
        """Return the alpha channel as a (height, width) uint8 array."""
        return np.array(ImageUtils.ensure_rgba(image))[:, :, 3]

    @staticmethod
    def get_bounding_box(image: Image.Image) -> Optional[Tuple[int, int, int, int]]:
        """
        Get bounding box of non-transparent content.

        Returns:
            Bounding box as (left, top, right, bottom) or None if fully transparent
        """
        alpha = ImageUtils.ensure_rgba(image).getchannel('A')
        return alpha.getbbox()

    @staticmethod
    def save_image(image: Image.Image, path: Union[str, Path], compress_level: int = 6) -> Path:
        """
        Save image as PNG through a temporary file in the destination directory.

        The destination only appears once the encoder has finished, so an
        interrupted save never leaves a truncated file behind.

        Returns:
            Path of the written file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".png.tmp", dir=path.parent)
        try:
            with os.fdopen(fd, 'wb') as f:
                image.save(f, format='PNG', compress_level=compress_level)
            # mkstemp creates 0600 files
            os.chmod(tmp_name, _default_file_mode())
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        return path

    @staticmethod
    def save_json(data: Dict[str, Any], path: Union[str, Path]) -> Path:
        """Write JSON with the same temporary-file-then-rename strategy as ``save_image``."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".json.tmp", dir=path.parent)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
                f.write("\n")
            os.chmod(tmp_name, _default_file_mode())
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        return path
