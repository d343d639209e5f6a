"""
Integration tests for the complete atlas pipeline.
Tests end-to-end builds from files and dice, error propagation and pre-I/O checks.
"""

import json
import os
import shutil
import tempfile
from pathlib import Path
from unittest.mock import patch
import numpy as np
import pytest
from PIL import Image

from ..config import AtlasConfig
from ..pipeline import CrossAtlasPipeline, PipelineStep, DICE_ATLAS_NAME
from ..processing.normalizer import InvalidGutterError
from ..providers.directory import DirectoryFaceSource
from ..utils.cubemap import CubeFace, IncompleteFaceSetError
from ..utils.image import ImageLoadError, ImageUtils


COLORS = {
    CubeFace.POSITIVE_X: (0, 255, 0),
    CubeFace.NEGATIVE_X: (0, 0, 255),
    CubeFace.POSITIVE_Y: (255, 255, 0),
    CubeFace.NEGATIVE_Y: (0, 255, 255),
    CubeFace.POSITIVE_Z: (255, 0, 0),
    CubeFace.NEGATIVE_Z: (255, 0, 255),
}


class TestPipelineIntegration:
    """Integration tests for the complete atlas pipeline."""

    def setup_method(self):
        """Set up test environment for each test."""
        self.temp_dir = Path(tempfile.mkdtemp())
        self.faces_dir = self.temp_dir / "cube_faces"
        self.faces_dir.mkdir()
        self.pipeline = CrossAtlasPipeline(AtlasConfig(max_workers=3))

    def teardown_method(self):
        """Clean up test environment after each test."""
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _write_named_faces(self, size=(300, 300), faces=None):
        for face in faces or CubeFace:
            Image.new('RGB', size, COLORS[face]).save(self.faces_dir / f"{face.file_stem}.png")

    def test_six_colored_faces_from_files(self):
        """Six solid faces at 256px give a 1024x768 atlas with red on +Z."""
        self._write_named_faces()
        output = self.temp_dir / "horizontal_cross_atlas.png"

        source = DirectoryFaceSource({"input_dir": str(self.faces_dir)})
        source.configure({"input_dir": str(self.faces_dir)})
        result = self.pipeline.build_from_source(source, output, cell_size=256)

        assert output.exists()
        with Image.open(output) as atlas:
            assert atlas.size == (1024, 768)
            pixels = np.array(atlas.convert('RGBA')).astype(int)

        region = pixels[256:512, 256:512]
        assert np.all(np.abs(region[:, :, 0] - 255) <= 1)
        assert np.all(region[:, :, 1] <= 1)
        assert np.all(region[:, :, 2] <= 1)
        assert np.all(region[:, :, 3] >= 254)

        assert result.validation.is_valid
        assert result.report_path == self.temp_dir / "horizontal_cross_atlas_uv_mapping.json"
        report = json.loads(result.report_path.read_text())
        assert report["totalSize"] == {"width": 1024, "height": 768}

    def test_step_results_recorded(self):
        self._write_named_faces(size=(16, 16))
        faces = {face: self.faces_dir / f"{face.file_stem}.png" for face in CubeFace}

        result = self.pipeline.build(faces, self.temp_dir / "atlas.png", cell_size=16)

        assert list(result.steps) == [
            PipelineStep.PREPARE, PipelineStep.COMPOSE, PipelineStep.SAVE,
            PipelineStep.REPORT, PipelineStep.VALIDATE,
        ]
        assert all(step.success for step in result.steps.values())

    def test_build_without_report(self):
        self._write_named_faces(size=(16, 16))
        faces = {face.value: self.faces_dir / f"{face.file_stem}.png" for face in CubeFace}

        result = self.pipeline.build(faces, self.temp_dir / "atlas.png", cell_size=16, write_report=False)

        assert result.report_path is None
        assert not (self.temp_dir / "atlas_uv_mapping.json").exists()

    def test_five_of_six_files(self):
        self._write_named_faces(faces=list(CubeFace)[:5])
        source = DirectoryFaceSource({"input_dir": str(self.faces_dir)})
        source.configure({"input_dir": str(self.faces_dir)})
        output = self.temp_dir / "atlas.png"

        with pytest.raises(IncompleteFaceSetError):
            self.pipeline.build_from_source(source, output, cell_size=32)

        assert not output.exists()

    def test_invalid_gutter_before_io(self):
        """gutter 64 in a 100px cell fails before any face is read or file written."""
        self._write_named_faces(size=(8, 8))
        faces = {face: self.faces_dir / f"{face.file_stem}.png" for face in CubeFace}
        output = self.temp_dir / "out" / "atlas.png"

        with patch.object(ImageUtils, "load_image") as mock_load:
            with pytest.raises(InvalidGutterError):
                self.pipeline.build(faces, output, cell_size=100, gutter_size=64)

        mock_load.assert_not_called()
        assert not output.parent.exists()

    def test_invalid_gutter_before_dice_faces_written(self):
        output_dir = self.temp_dir / "dice"

        with pytest.raises(InvalidGutterError):
            self.pipeline.build_dice(output_dir, cell_size=100, gutter_size=64)

        assert not output_dir.exists()

    def test_face_failure_aborts_build(self):
        self._write_named_faces(size=(8, 8))
        (self.faces_dir / "negative_y.png").write_bytes(b"not a png")
        faces = {face: self.faces_dir / f"{face.file_stem}.png" for face in CubeFace}
        output = self.temp_dir / "atlas.png"

        with pytest.raises(ImageLoadError):
            self.pipeline.build(faces, output, cell_size=16)

        assert not output.exists()

    def test_existing_atlas_untouched_on_failure(self):
        output = self.temp_dir / "atlas.png"
        output.write_bytes(b"previous")
        faces = {face: self.faces_dir / f"{face.file_stem}.png" for face in CubeFace}

        with pytest.raises(ImageLoadError):
            self.pipeline.build(faces, output, cell_size=16)

        assert output.read_bytes() == b"previous"

    def test_gutter_build(self):
        self._write_named_faces(size=(40, 40))
        faces = {face: self.faces_dir / f"{face.file_stem}.png" for face in CubeFace}

        result = self.pipeline.build(faces, self.temp_dir / "atlas.png", cell_size=32, gutter_size=3)

        assert result.validation.is_valid, result.validation.errors
        region = result.atlas.face_region(CubeFace.POSITIVE_Z)
        assert ImageUtils.get_bounding_box(region) == (3, 3, 29, 29)
        report = json.loads(result.report_path.read_text())
        assert report["gutter"] == {"enabled": True, "size": 3}

    def test_build_dice(self):
        output_dir = self.temp_dir / "generated_dice"

        result = self.pipeline.build_dice(output_dir, cell_size=64)

        assert [p.name for p in result.face_paths] == [f"dice_face_{n}.png" for n in range(1, 7)]
        assert result.atlas_path == output_dir / DICE_ATLAS_NAME
        assert (output_dir / "dice_horizontal_cross_uv_mapping.json").exists()
        assert result.validation.is_valid
        # Die face 1 (red pip) lands on +X, centre of cell (2, 1)
        assert result.atlas.atlas.getpixel((2 * 64 + 32, 64 + 32)) == (255, 0, 0, 255)

    def test_build_dice_numbers(self):
        result = self.pipeline.build_dice(self.temp_dir / "numbers", cell_size=48, dots=False)

        assert result.face_paths[0].name == "dice_number_1.png"
        assert result.atlas.atlas.size == (192, 144)
