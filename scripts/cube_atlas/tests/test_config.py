"""
Tests for atlas configuration loading.
"""

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from ..config import AtlasConfig, ErrorConfig, ValidationConfig


class TestAtlasConfig(unittest.TestCase):
    """Test cases for AtlasConfig."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.dir = Path(self.temp_dir.name)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_defaults(self):
        config = AtlasConfig()

        self.assertFalse(config.gutter)
        self.assertEqual(config.gutter_size, 2)
        self.assertEqual(config.resample, "lanczos")
        self.assertEqual(config.effective_gutter_size(), 0)
        self.assertEqual(config.validate(), [])

    def test_effective_gutter_size(self):
        config = AtlasConfig(gutter=True, gutter_size=5)
        self.assertEqual(config.effective_gutter_size(), 5)

    def test_from_toml(self):
        path = self.dir / "cube_atlas.toml"
        path.write_text(
            "[compositor]\n"
            "gutter = true\n"
            "gutter_size = 4\n"
            "max_workers = 2\n"
            "\n"
            "[validation]\n"
            "aspect_tolerance = 0.02\n"
            "\n"
            "[dice]\n"
            "dot_color = \"#112233\"\n"
            "dot_radius = 6\n"
            "\n"
            "[remote]\n"
            "max_retries = 5\n"
        )

        config = AtlasConfig.from_file(path)

        self.assertTrue(config.gutter)
        self.assertEqual(config.gutter_size, 4)
        self.assertEqual(config.max_workers, 2)
        self.assertEqual(config.aspect_tolerance, 0.02)
        self.assertEqual(config.dice_dot_color, "#112233")
        self.assertEqual(config.dice_dot_radius, 6)
        self.assertEqual(config.max_retries, 5)
        self.assertEqual(config.retry_delay, 1.0)

    def test_from_json(self):
        path = self.dir / "cube_atlas.json"
        path.write_text(json.dumps({"output": {"compression_level": 9}}))

        config = AtlasConfig.from_file(path)

        self.assertEqual(config.compression_level, 9)
        self.assertFalse(config.gutter)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            AtlasConfig.from_file(self.dir / "missing.toml")

    def test_unsupported_format(self):
        path = self.dir / "cube_atlas.yaml"
        path.write_text("gutter: true\n")

        with self.assertRaises(ValueError):
            AtlasConfig.from_file(path)

    def test_env_overrides(self):
        env = {
            "CUBE_ATLAS_GUTTER": "true",
            "CUBE_ATLAS_GUTTER_SIZE": "3",
            "CUBE_ATLAS_MAX_RETRIES": "7",
            "CUBE_ATLAS_ASPECT_TOLERANCE": "0.05",
        }
        with patch.dict(os.environ, env):
            config = AtlasConfig.default()

        self.assertTrue(config.gutter)
        self.assertEqual(config.gutter_size, 3)
        self.assertEqual(config.max_retries, 7)
        self.assertEqual(config.aspect_tolerance, 0.05)

    def test_validate_reports_errors(self):
        config = AtlasConfig(
            gutter_size=-1,
            resample="cubic",
            max_workers=0,
            compression_level=12,
            request_timeout=0,
        )

        errors = config.validate()

        self.assertEqual(len(errors), 5)
        self.assertTrue(any("resample" in error for error in errors))

    def test_derived_configs(self):
        config = AtlasConfig(aspect_tolerance=0.03, max_retries=1, retry_delay=0.1, request_timeout=5)

        self.assertEqual(config.validation_config(), ValidationConfig(aspect_tolerance=0.03))
        error_config = config.error_config()
        self.assertIsInstance(error_config, ErrorConfig)
        self.assertEqual(error_config.max_retries, 1)
        self.assertEqual(error_config.retry_delay, 0.1)
        self.assertEqual(error_config.request_timeout, 5)
        self.assertIn(503, error_config.retry_statuses)


if __name__ == '__main__':
    unittest.main()
