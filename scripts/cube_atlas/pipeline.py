"""
Atlas pipeline coordinator.
Runs prepare -> compose -> save -> report -> validate for one atlas and records
the timing and outcome of each step.
"""

import time
import logging
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Any, Callable, Mapping, Union
from dataclasses import dataclass, field

from .config import AtlasConfig
from .providers.base import FaceSet, FaceSource
from .providers.dice import DiceFaceSource, DOTS, NUMBERS
from .processing.normalizer import FaceNormalizer, NormalizationConfig, validate_gutter
from .processing.atlas import CrossLayoutEngine, AtlasResult
from .processing.metadata import UVMappingReporter
from .processing.validator import AtlasValidator, ValidationResult
from .utils.cubemap import CubeFace, CubemapUtils
from .utils.image import ImageSource


DICE_ATLAS_NAME = "dice_horizontal_cross.png"


class PipelineStep(Enum):
    """Enumeration of pipeline steps."""
    PREPARE = "prepare"
    COMPOSE = "compose"
    SAVE = "save"
    REPORT = "report"
    VALIDATE = "validate"


@dataclass
class StepResult:
    """Result of a pipeline step execution."""
    step: PipelineStep
    success: bool
    duration: float
    message: str


@dataclass
class BuildResult:
    """Everything produced by one atlas build."""
    atlas_path: Path
    cell_size: int
    gutter_size: int
    atlas: AtlasResult
    report_path: Optional[Path] = None
    validation: Optional[ValidationResult] = None
    face_paths: List[Path] = field(default_factory=list)
    steps: Dict[PipelineStep, StepResult] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        return sum(step.duration for step in self.steps.values())


class CrossAtlasPipeline:
    """
    Builds horizontal-cross atlases from face sets.

    Face preparation runs on a thread pool; composition waits for all six
    faces. Any failure aborts the build before the atlas file is replaced.
    """

    def __init__(self, config: Optional[AtlasConfig] = None):
        """
        Initialize the atlas pipeline.

        Args:
            config: Atlas configuration; defaults to ``AtlasConfig.default()``
        """
        self.config = config or AtlasConfig.default()
        self.logger = self._setup_logging()
        self.reporter = UVMappingReporter()
        self.validator = AtlasValidator(self.config.validation_config())

    def _setup_logging(self) -> logging.Logger:
        """Set up logging for the pipeline."""
        logger = logging.getLogger("cube_atlas")
        logger.setLevel(logging.INFO)

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def _execute_step(self, result_steps: Dict[PipelineStep, StepResult],
                      step: PipelineStep, handler: Callable[[], Any]) -> Any:
        """Run one step, recording its duration, and re-raise its failure."""
        self.logger.info(f"Executing step: {step.value}")
        start_time = time.time()

        try:
            value = handler()
        except Exception as e:
            duration = time.time() - start_time
            result_steps[step] = StepResult(step, False, duration, f"Step {step.value} failed: {e}")
            self.logger.error(f"Step {step.value} failed after {duration:.2f}s: {e}")
            raise

        duration = time.time() - start_time
        result_steps[step] = StepResult(step, True, duration, f"Step {step.value} completed successfully")
        self.logger.info(f"Step {step.value} completed in {duration:.2f}s")
        return value

    def prepare_faces(self, faces: Mapping[Union[CubeFace, str], ImageSource],
                      normalizer: FaceNormalizer) -> Dict[CubeFace, Any]:
        """
        Normalize (and inset) all six faces concurrently.

        Returns only after every face is ready; the first failure is raised.
        """
        resolved = CrossLayoutEngine.resolve_faces(faces)

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {
                face: executor.submit(normalizer.prepare_face, source)
                for face, source in resolved.items()
            }
            # Iterate in face order so the first failing face is reported deterministically
            return {face: futures[face].result() for face in CubeFace}

    def build(self, faces: Mapping[Union[CubeFace, str], ImageSource], output_path: Union[str, Path],
              cell_size: int = 128, gutter_size: int = 0, write_report: bool = True) -> BuildResult:
        """
        Build, save, report and validate one atlas.

        Args:
            faces: Every cube face mapped to a path, bytes or PIL Image
            output_path: Atlas PNG destination
            cell_size: Edge length of each face cell
            gutter_size: Transparent border per face (0 disables it)
            write_report: Also write the ``_uv_mapping.json`` sidecar

        Raises:
            InvalidGutterError: Before any I/O if the gutter does not fit
            IncompleteFaceSetError: If the face set is not exactly six faces
            ImageLoadError: If a face cannot be loaded
        """
        # Validates cell and gutter sizes before any file access
        normalization = NormalizationConfig(cell_size, gutter_size, self.config.resample)

        output_path = Path(output_path)
        steps: Dict[PipelineStep, StepResult] = {}
        normalizer = FaceNormalizer(normalization)
        engine = CrossLayoutEngine(cell_size)

        self.logger.info(f"Building {cell_size}px horizontal cross atlas -> {output_path}")

        prepared = self._execute_step(steps, PipelineStep.PREPARE,
                                      lambda: self.prepare_faces(faces, normalizer))
        atlas = self._execute_step(steps, PipelineStep.COMPOSE, lambda: engine.compose(prepared))
        self._execute_step(steps, PipelineStep.SAVE,
                           lambda: atlas.save_atlas(output_path, self.config.compression_level))

        result = BuildResult(output_path, cell_size, gutter_size, atlas, steps=steps)

        if write_report:
            result.report_path = self._execute_step(
                steps, PipelineStep.REPORT,
                lambda: self.reporter.write_report(output_path, cell_size, gutter_size)
            )

        result.validation = self._execute_step(
            steps, PipelineStep.VALIDATE,
            lambda: self.validator.validate(output_path, gutter_size=gutter_size or None)
        )

        if result.validation.is_valid:
            self.logger.info(f"Atlas {output_path} built in {result.duration:.2f}s")
        else:
            self.logger.warning(f"Atlas {output_path} failed validation: {result.validation.errors}")

        return result

    def build_from_source(self, source: FaceSource, output_path: Union[str, Path],
                          cell_size: int = 128, gutter_size: int = 0) -> BuildResult:
        """Build an atlas from any configured face source."""
        validate_gutter(cell_size, gutter_size)
        faces: FaceSet = source.get_face_set()
        return self.build(faces, output_path, cell_size, gutter_size)

    def dice_source(self, cell_size: int, dots: bool = True) -> DiceFaceSource:
        """Create a die face source from the configured colours."""
        dice_config = {
            "size": cell_size,
            "style": DOTS if dots else NUMBERS,
            "background_color": self.config.dice_background_color,
            "dot_color": self.config.dice_dot_color,
            "special_color": self.config.dice_special_color,
            "dot_radius": self.config.dice_dot_radius,
        }
        source = DiceFaceSource(dice_config)
        source.configure(dice_config)
        return source

    def build_dice(self, output_dir: Union[str, Path], cell_size: int = 128,
                   dots: bool = True, gutter_size: int = 0) -> BuildResult:
        """
        Render the six die faces into ``output_dir`` and build
        ``dice_horizontal_cross.png`` from them.

        Raises:
            InvalidGutterError: Before any face file is written
        """
        validate_gutter(cell_size, gutter_size)

        output_dir = Path(output_dir)
        source = self.dice_source(cell_size, dots)
        face_paths = source.write_faces(output_dir)

        result = self.build(
            CubemapUtils.map_dice_faces(face_paths),
            output_dir / DICE_ATLAS_NAME,
            cell_size,
            gutter_size,
        )
        result.face_paths = face_paths
        return result
