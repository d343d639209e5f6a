"""
Integration tests for the cube atlas CLI.
Tests command-line interface functionality and argument parsing.
"""

import io
import os
import json
import tempfile
import shutil
from pathlib import Path
from unittest.mock import patch
from PIL import Image
from typer.testing import CliRunner

from ..cli import app
from ..providers import remote
from ..utils.cubemap import CubeFace


class TestCLIIntegration:
    """Test CLI integration and command functionality."""

    def setup_method(self):
        """Set up test environment before each test."""
        self.runner = CliRunner()
        self.temp_dir = tempfile.mkdtemp()
        self.original_cwd = os.getcwd()
        os.chdir(self.temp_dir)

    def teardown_method(self):
        """Clean up test environment after each test."""
        os.chdir(self.original_cwd)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_numbered_faces(self, directory: Path, count: int = 6):
        directory.mkdir(parents=True, exist_ok=True)
        for number in range(1, count + 1):
            Image.new('RGB', (20, 20), (number * 40, 0, 0)).save(directory / f"{number}.png")

    def test_help(self):
        result = self.runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "dice" in result.stdout
        assert "from-files" in result.stdout

    def test_dice_defaults_to_generated_dice(self):
        result = self.runner.invoke(app, ["dice", "--size", "32"])

        assert result.exit_code == 0, result.stdout
        output = Path("generated_dice")
        for number in range(1, 7):
            assert (output / f"dice_face_{number}.png").exists()
        assert (output / "dice_horizontal_cross.png").exists()
        assert (output / "dice_horizontal_cross_uv_mapping.json").exists()
        with Image.open(output / "dice_horizontal_cross.png") as atlas:
            assert atlas.size == (128, 96)

    def test_dice_numbers_with_gutter(self):
        result = self.runner.invoke(
            app, ["dice", "--size", "40", "--no-dots", "--gutter", "--gutterSize", "4", "--output", "nums"]
        )

        assert result.exit_code == 0, result.stdout
        assert Path("nums/dice_number_1.png").exists()
        report = json.loads(Path("nums/dice_horizontal_cross_uv_mapping.json").read_text())
        assert report["gutter"] == {"enabled": True, "size": 4}

    def test_dice_gutter_size_ignored_without_gutter(self):
        result = self.runner.invoke(app, ["dice", "--size", "32", "--gutter-size", "4", "--output", "plain"])

        assert result.exit_code == 0, result.stdout
        report = json.loads(Path("plain/dice_horizontal_cross_uv_mapping.json").read_text())
        assert report["gutter"]["enabled"] is False

    def test_dice_invalid_gutter_writes_nothing(self):
        result = self.runner.invoke(
            app, ["dice", "--size", "100", "--gutter", "--gutter-size", "64", "--output", "bad"]
        )

        assert result.exit_code == 1
        assert not Path("bad").exists()

    def test_gutter_from_config_file(self):
        Path("cube_atlas.toml").write_text("[compositor]\ngutter = true\ngutter_size = 3\n")

        result = self.runner.invoke(app, ["dice", "--size", "32", "--output", "configured"])

        assert result.exit_code == 0, result.stdout
        report = json.loads(Path("configured/dice_horizontal_cross_uv_mapping.json").read_text())
        assert report["gutter"] == {"enabled": True, "size": 3}

    def test_from_files_numbered(self):
        self._write_numbered_faces(Path("cube_faces"))

        result = self.runner.invoke(app, ["from-files", "--size", "16"])

        assert result.exit_code == 0, result.stdout
        with Image.open("horizontal_cross_atlas.png") as atlas:
            assert atlas.size == (64, 48)
        assert Path("horizontal_cross_atlas_uv_mapping.json").exists()

    def test_from_files_named(self):
        faces = Path("faces")
        faces.mkdir()
        for face in CubeFace:
            Image.new('RGB', (10, 10), (0, 0, 255)).save(faces / f"{face.file_stem}.png")

        result = self.runner.invoke(
            app, ["from-files", "--input", "faces", "--output", "out/atlas.png", "--size", "8"]
        )

        assert result.exit_code == 0, result.stdout
        assert Path("out/atlas.png").exists()
        assert Path("out/atlas_uv_mapping.json").exists()

    def test_from_files_incomplete(self):
        self._write_numbered_faces(Path("cube_faces"), count=5)

        result = self.runner.invoke(app, ["from-files", "--size", "16"])

        assert result.exit_code == 1
        assert not Path("horizontal_cross_atlas.png").exists()

    def test_from_urls(self):
        data = io.BytesIO()
        Image.new("RGB", (8, 8), (0, 128, 0)).save(data, format="PNG")
        Path("faces.json").write_text(json.dumps({str(n): f"https://example.com/{n}.png" for n in range(1, 7)}))

        with patch.object(remote.requests, "get") as mock_get:
            mock_get.return_value.status_code = 200
            mock_get.return_value.content = data.getvalue()
            result = self.runner.invoke(app, ["from-urls", "faces.json", "--size", "8"])

        assert result.exit_code == 0, result.stdout
        assert mock_get.call_count == 6
        assert Path("horizontal_cross_atlas.png").exists()

    def test_from_urls_bad_manifest(self):
        Path("faces.json").write_text(json.dumps({"sky": "https://example.com/sky.png"}))

        result = self.runner.invoke(app, ["from-urls", "faces.json"])

        assert result.exit_code == 1

    def test_validate_valid_atlas(self):
        self.runner.invoke(app, ["dice", "--size", "16", "--output", "d"])

        result = self.runner.invoke(app, ["validate", "d/dice_horizontal_cross.png"])

        assert result.exit_code == 0, result.stdout

    def test_validate_wrong_ratio(self):
        Image.new('RGBA', (100, 100)).save("square.png")

        result = self.runner.invoke(app, ["validate", "square.png"])

        assert result.exit_code == 1

    def test_validate_tolerance_flag(self):
        Image.new('RGBA', (1100, 750)).save("wide.png")

        assert self.runner.invoke(app, ["validate", "wide.png"]).exit_code == 1
        assert self.runner.invoke(app, ["validate", "wide.png", "--tolerance", "0.2"]).exit_code == 0

    def test_validate_unreadable(self):
        Path("broken.png").write_bytes(b"garbage")

        result = self.runner.invoke(app, ["validate", "broken.png"])

        assert result.exit_code == 1
        assert "Could not read atlas" in result.stdout

    def test_validate_rejects_negative_gutter(self):
        self.runner.invoke(app, ["dice", "--size", "16", "--output", "d"])

        result = self.runner.invoke(app, ["validate", "d/dice_horizontal_cross.png", "--gutter-size", "-1"])

        assert result.exit_code == 2
        assert "non-transparent" not in result.stdout

    def test_invalid_env_override_reported(self):
        result = self.runner.invoke(
            app, ["dice", "--size", "16", "--output", "d"], env={"CUBE_ATLAS_MAX_WORKERS": "0"}
        )

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "max_workers must be at least 1" in result.stdout
        assert not Path("d").exists()

    def test_report_to_file(self):
        result = self.runner.invoke(app, ["report", "--size", "64", "--output", "report.json"])

        assert result.exit_code == 0, result.stdout
        report = json.loads(Path("report.json").read_text())
        assert report["totalSize"] == {"width": 256, "height": 192}

    def test_report_invalid_size(self):
        result = self.runner.invoke(app, ["report", "--size", "0"])
        assert result.exit_code == 1

    def test_labels(self):
        Path("labels.json").write_text(json.dumps([
            {"name": "guard", "category": "npc", "description": "Guard - watches the gate"},
            {"name": "farm_lv1", "category": "building", "description": "Farm"},
        ]))

        result = self.runner.invoke(
            app, ["labels", "labels.json", "--output", "labels", "--width", "64", "--height", "64",
                  "--only", "guard"]
        )

        assert result.exit_code == 0, result.stdout
        assert Path("labels/npc/guard.png").exists()
        assert not Path("labels/building").exists()

    def test_process(self):
        sprites = Path("sprites")
        sprites.mkdir()
        Image.new('RGBA', (40, 20), (255, 0, 0, 255)).save(sprites / "a.png")

        result = self.runner.invoke(app, ["process", "--input", "sprites", "--size", "32"])

        assert result.exit_code == 0, result.stdout
        with Image.open("sprites_processed/a.png") as processed:
            assert processed.size == (32, 32)
        assert Path("sprites_backup/a.png").exists()
        report = json.loads(Path("sprites_processed/process_report.json").read_text())
        assert report["summary"]["success"] == 1

    def test_process_overwrite_without_backup(self):
        Path("sprites").mkdir()
        Image.new('RGBA', (8, 8), (255, 0, 0, 255)).save("sprites/a.png")

        result = self.runner.invoke(app, ["process", "--input", "sprites", "--overwrite", "--no-backup"])

        assert result.exit_code == 1
        with Image.open("sprites/a.png") as original:
            assert original.size == (8, 8)

    def test_process_missing_input(self):
        result = self.runner.invoke(app, ["process", "--input", "nowhere"])
        assert result.exit_code == 1

    def test_config_show_and_validate(self):
        result = self.runner.invoke(app, ["config", "--show", "--validate"])
        assert result.exit_code == 0, result.stdout
        assert "Configuration is valid" in result.stdout

    def test_config_validate_invalid(self):
        Path("bad.json").write_text(json.dumps({"compositor": {"max_workers": 0}}))

        result = self.runner.invoke(app, ["config", "--validate", "--config", "bad.json"])

        assert result.exit_code == 1

    def test_config_env_vars(self):
        result = self.runner.invoke(app, ["config", "--env-vars"])
        assert result.exit_code == 0
        assert "CUBE_ATLAS_GUTTER" in result.stdout

    def test_missing_config_file(self):
        result = self.runner.invoke(app, ["dice", "--config", "nope.toml"])
        assert result.exit_code == 1

    def test_version(self):
        result = self.runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "Cube Atlas" in result.stdout
