"""
Configuration management for the cube atlas pipeline.
Supports TOML and JSON configuration files with environment variable overrides.
"""

import os
import json
from dataclasses import dataclass, field

# Handle tomllib import for different Python versions
try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11 with tomli package
from typing import Dict, List, Optional, Any, Union
from pathlib import Path


ENV_PREFIX = "CUBE_ATLAS_"

DEFAULT_CONFIG_FILES = [
    Path("cube_atlas.toml"),
    Path("cube_atlas.json"),
    Path("scripts/cube_atlas.toml"),
    Path("scripts/cube_atlas.json"),
]


@dataclass
class AtlasConfig:
    """Main configuration class for atlas generation."""

    # Compositor settings
    gutter: bool = False
    gutter_size: int = 2
    resample: str = "lanczos"
    max_workers: int = 6

    # Validation settings
    aspect_tolerance: float = 0.01

    # Output settings
    compression_level: int = 6

    # Dice face rendering
    dice_background_color: str = "#FFFFFF"
    dice_dot_color: str = "#000000"
    dice_special_color: str = "#FF0000"
    dice_dot_radius: Optional[int] = None

    # Remote face downloads
    request_timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 1.0

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "AtlasConfig":
        """Load configuration from TOML or JSON file."""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix.lower() == '.toml':
            return cls._from_toml(config_path)
        elif config_path.suffix.lower() == '.json':
            return cls._from_json(config_path)
        else:
            raise ValueError(f"Unsupported configuration format: {config_path.suffix}")

    @classmethod
    def _from_toml(cls, config_path: Path) -> "AtlasConfig":
        """Load configuration from TOML file."""
        with open(config_path, 'rb') as f:
            data = tomllib.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_json(cls, config_path: Path) -> "AtlasConfig":
        """Load configuration from JSON file."""
        with open(config_path, 'r') as f:
            data = json.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "AtlasConfig":
        """Create configuration from dictionary."""
        config_data = {}

        if 'compositor' in data:
            compositor = data['compositor']
            config_data['gutter'] = compositor.get('gutter', False)
            config_data['gutter_size'] = compositor.get('gutter_size', 2)
            config_data['resample'] = compositor.get('resample', 'lanczos')
            config_data['max_workers'] = compositor.get('max_workers', 6)

        if 'validation' in data:
            validation = data['validation']
            config_data['aspect_tolerance'] = validation.get('aspect_tolerance', 0.01)

        if 'output' in data:
            output = data['output']
            config_data['compression_level'] = output.get('compression_level', 6)

        if 'dice' in data:
            dice = data['dice']
            config_data['dice_background_color'] = dice.get('background_color', '#FFFFFF')
            config_data['dice_dot_color'] = dice.get('dot_color', '#000000')
            config_data['dice_special_color'] = dice.get('special_color', '#FF0000')
            config_data['dice_dot_radius'] = dice.get('dot_radius')

        if 'remote' in data:
            remote = data['remote']
            config_data['request_timeout'] = remote.get('timeout', 30.0)
            config_data['max_retries'] = remote.get('max_retries', 3)
            config_data['retry_delay'] = remote.get('retry_delay', 1.0)

        return cls(**config_data)

    @classmethod
    def default(cls) -> "AtlasConfig":
        """Create default configuration with environment variable overrides."""
        return cls._apply_env_overrides(cls())

    @classmethod
    def _apply_env_overrides(cls, config: "AtlasConfig") -> "AtlasConfig":
        """Apply environment variable overrides to configuration."""

        if os.getenv('CUBE_ATLAS_GUTTER'):
            config.gutter = os.getenv('CUBE_ATLAS_GUTTER', 'false').lower() == 'true'

        if os.getenv('CUBE_ATLAS_GUTTER_SIZE'):
            config.gutter_size = int(os.getenv('CUBE_ATLAS_GUTTER_SIZE', '2'))

        if os.getenv('CUBE_ATLAS_RESAMPLE'):
            config.resample = os.getenv('CUBE_ATLAS_RESAMPLE', 'lanczos')

        if os.getenv('CUBE_ATLAS_MAX_WORKERS'):
            config.max_workers = int(os.getenv('CUBE_ATLAS_MAX_WORKERS', '6'))

        if os.getenv('CUBE_ATLAS_ASPECT_TOLERANCE'):
            config.aspect_tolerance = float(os.getenv('CUBE_ATLAS_ASPECT_TOLERANCE', '0.01'))

        if os.getenv('CUBE_ATLAS_COMPRESSION_LEVEL'):
            config.compression_level = int(os.getenv('CUBE_ATLAS_COMPRESSION_LEVEL', '6'))

        if os.getenv('CUBE_ATLAS_REQUEST_TIMEOUT'):
            config.request_timeout = float(os.getenv('CUBE_ATLAS_REQUEST_TIMEOUT', '30'))

        if os.getenv('CUBE_ATLAS_MAX_RETRIES'):
            config.max_retries = int(os.getenv('CUBE_ATLAS_MAX_RETRIES', '3'))

        if os.getenv('CUBE_ATLAS_RETRY_DELAY'):
            config.retry_delay = float(os.getenv('CUBE_ATLAS_RETRY_DELAY', '1.0'))

        return config

    def effective_gutter_size(self) -> int:
        """Gutter width actually applied: 0 unless the gutter is enabled."""
        return self.gutter_size if self.gutter else 0

    def validation_config(self) -> "ValidationConfig":
        return ValidationConfig(aspect_tolerance=self.aspect_tolerance)

    def error_config(self) -> "ErrorConfig":
        return ErrorConfig(
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
            request_timeout=self.request_timeout,
        )

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if self.gutter_size < 0:
            errors.append("gutter_size must not be negative")

        if self.resample.lower() not in ['lanczos', 'bicubic', 'bilinear', 'nearest']:
            errors.append("resample must be lanczos, bicubic, bilinear, or nearest")

        if self.max_workers < 1:
            errors.append("max_workers must be at least 1")

        if not 0 < self.aspect_tolerance < 1:
            errors.append("aspect_tolerance must be between 0 and 1")

        if not 0 <= self.compression_level <= 9:
            errors.append("compression_level must be between 0 and 9")

        if self.dice_dot_radius is not None and self.dice_dot_radius <= 0:
            errors.append("dice dot_radius must be positive")

        if self.request_timeout <= 0:
            errors.append("request timeout must be positive")

        if self.max_retries < 0:
            errors.append("max_retries must not be negative")

        if self.retry_delay < 0:
            errors.append("retry_delay must not be negative")

        return errors


@dataclass
class ValidationConfig:
    """Configuration for atlas validation."""
    aspect_tolerance: float = 0.01  # Relative error allowed from 4:3


@dataclass
class ErrorConfig:
    """Configuration for retrying remote face downloads."""
    max_retries: int = 3
    retry_delay: float = 1.0
    request_timeout: float = 30.0
    retry_statuses: List[int] = field(default_factory=lambda: [429, 500, 502, 503, 504])
