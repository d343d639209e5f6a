"""
Command-line interface for the cube atlas pipeline.
Provides commands to build, inspect and validate horizontal-cross atlases.
"""

import sys
import os
from pathlib import Path
from typing import Optional, List
import typer
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__
from .config import AtlasConfig, DEFAULT_CONFIG_FILES, ENV_PREFIX
from .pipeline import CrossAtlasPipeline, BuildResult
from .providers import provider_registry, load_manifest, ProviderError
from .processing.atlas import AtlasGenerationError
from .processing.metadata import UVMappingReporter
from .processing.normalizer import InvalidGutterError, validate_gutter
from .processing.text import TextTextureGenerator, load_items, select_items
from .processing.trim import TrimProcessor, TrimConfig
from .processing.validator import AtlasValidator, ValidationResult
from .utils.cubemap import IncompleteFaceSetError
from .utils.image import ImageLoadError, ImageUtils

# Initialize typer app and rich console
app = typer.Typer(
    name="cube-atlas",
    help="Cube atlas pipeline - Compose six cube faces into a horizontal-cross texture atlas",
    add_completion=False,
    rich_markup_mode="rich",
    epilog="""
[bold]Examples:[/bold]
  [cyan]cube-atlas dice --size 256 --gutter[/cyan]                 Build a die atlas
  [cyan]cube-atlas from-files --input ./cube_faces[/cyan]          Build from local faces
  [cyan]cube-atlas validate horizontal_cross_atlas.png[/cyan]      Check an atlas
  [cyan]CUBE_ATLAS_GUTTER=true cube-atlas dice[/cyan]              Override configuration

[bold]Environment Variables:[/bold]
  Use [cyan]cube-atlas config --env-vars[/cyan] to see all available variables.
    """
)
console = Console()

ATLAS_ERRORS = (
    InvalidGutterError,
    IncompleteFaceSetError,
    ImageLoadError,
    AtlasGenerationError,
    ProviderError,
    OSError,
)


@app.command()
def dice(
    size: int = typer.Option(128, "--size", "-s", help="Face size in pixels"),
    output_dir: Path = typer.Option(Path("./generated_dice"), "--output", "-o", help="Output directory"),
    dots: bool = typer.Option(True, "--dots/--no-dots", help="Draw pips instead of numerals"),
    gutter: Optional[bool] = typer.Option(None, "--gutter/--no-gutter", help="Inset faces behind a transparent border"),
    gutter_size: Optional[int] = typer.Option(None, "--gutter-size", "--gutterSize", help="Gutter width in pixels"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Render six die faces and compose them into a horizontal cross."""
    console.print("[bold blue]Generating die atlas...[/bold blue]")

    config = _load_config(config_file)
    effective_gutter = _resolve_gutter(config, gutter, gutter_size)

    try:
        validate_gutter(size, effective_gutter)
        pipeline = CrossAtlasPipeline(config)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console
        ) as progress:
            task = progress.add_task("Rendering faces and composing atlas...", total=None)
            result = pipeline.build_dice(output_dir, size, dots=dots, gutter_size=effective_gutter)
            progress.update(task, description="✓ Die atlas composed")

    except ATLAS_ERRORS as e:
        console.print(f"[red]Error generating die atlas:[/red] {e}")
        raise typer.Exit(1)

    for path in result.face_paths:
        console.print(f"  • Face: {path}")
    _display_build_summary(result)

    if not result.validation.is_valid:
        raise typer.Exit(1)


@app.command("from-files")
def from_files(
    input_dir: Path = typer.Option(Path("./cube_faces"), "--input", "-i", help="Directory with the six face images"),
    output: Path = typer.Option(Path("./horizontal_cross_atlas.png"), "--output", "-o", help="Atlas output file"),
    size: int = typer.Option(256, "--size", "-s", help="Face size in pixels"),
    gutter: Optional[bool] = typer.Option(None, "--gutter/--no-gutter", help="Inset faces behind a transparent border"),
    gutter_size: Optional[int] = typer.Option(None, "--gutter-size", "--gutterSize", help="Gutter width in pixels"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Build an atlas from positive_x.png... or 1.png..6.png in a directory."""
    console.print(f"[bold blue]Building atlas from {input_dir}...[/bold blue]")

    config = _load_config(config_file)
    effective_gutter = _resolve_gutter(config, gutter, gutter_size)

    try:
        validate_gutter(size, effective_gutter)
        source = provider_registry.create_provider("directory", {"input_dir": str(input_dir)})
        pipeline = CrossAtlasPipeline(config)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console
        ) as progress:
            task = progress.add_task("Composing atlas...", total=None)
            result = pipeline.build_from_source(source, output, size, effective_gutter)
            progress.update(task, description="✓ Atlas composed")

    except ATLAS_ERRORS as e:
        console.print(f"[red]Error building atlas:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Using {source.convention} face files")
    _display_build_summary(result)

    if not result.validation.is_valid:
        raise typer.Exit(1)


@app.command("from-urls")
def from_urls(
    manifest: Path = typer.Argument(..., help="JSON file mapping faces (or die numbers 1-6) to URLs"),
    output: Path = typer.Option(Path("./horizontal_cross_atlas.png"), "--output", "-o", help="Atlas output file"),
    size: int = typer.Option(256, "--size", "-s", help="Face size in pixels"),
    gutter: Optional[bool] = typer.Option(None, "--gutter/--no-gutter", help="Inset faces behind a transparent border"),
    gutter_size: Optional[int] = typer.Option(None, "--gutter-size", "--gutterSize", help="Gutter width in pixels"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Download six faces and build an atlas from them."""
    console.print(f"[bold blue]Building atlas from {manifest}...[/bold blue]")

    config = _load_config(config_file)
    effective_gutter = _resolve_gutter(config, gutter, gutter_size)

    try:
        validate_gutter(size, effective_gutter)
        source = provider_registry.create_provider("url", {
            "manifest": load_manifest(manifest),
            "error_config": config.error_config(),
        })
        pipeline = CrossAtlasPipeline(config)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console
        ) as progress:
            task = progress.add_task("Downloading faces and composing atlas...", total=None)
            result = pipeline.build_from_source(source, output, size, effective_gutter)
            progress.update(task, description="✓ Atlas composed")

    except (ValueError, *ATLAS_ERRORS) as e:
        console.print(f"[red]Error building atlas:[/red] {e}")
        raise typer.Exit(1)

    _display_build_summary(result)

    if not result.validation.is_valid:
        raise typer.Exit(1)


@app.command()
def validate(
    atlas: Path = typer.Argument(..., help="Atlas image to check"),
    gutter_size: Optional[int] = typer.Option(None, "--gutter-size", "--gutterSize", min=0, help="Require a transparent gutter of this width"),
    tolerance: Optional[float] = typer.Option(None, "--tolerance", help="Allowed relative error from 4:3"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Validate a horizontal-cross atlas."""
    console.print(f"[bold blue]Validating {atlas}...[/bold blue]")

    config = _load_config(config_file)
    validation_config = config.validation_config()
    if tolerance is not None:
        validation_config.aspect_tolerance = tolerance

    try:
        result = AtlasValidator(validation_config).validate(atlas, gutter_size=gutter_size)
    except ImageLoadError as e:
        console.print(f"[red]Could not read atlas:[/red] {e}")
        raise typer.Exit(1)
    except InvalidGutterError as e:
        console.print(f"[red]Invalid gutter:[/red] {e}")
        raise typer.Exit(1)

    _display_validation(result)

    if not result.is_valid:
        raise typer.Exit(1)


@app.command()
def report(
    size: int = typer.Option(..., "--size", "-s", help="Face size in pixels"),
    atlas_name: str = typer.Option("horizontal_cross_atlas.png", "--atlas-name", help="Atlas file name recorded in the report"),
    gutter_size: int = typer.Option(0, "--gutter-size", "--gutterSize", help="Gutter width recorded in the report"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the report to this file")
):
    """Print or write the UV mapping report for a cell size."""
    try:
        data = UVMappingReporter().build_report(size, atlas_name, gutter_size)
    except ValueError as e:
        console.print(f"[red]Error building report:[/red] {e}")
        raise typer.Exit(1)

    if output:
        ImageUtils.save_json(data, output)
        console.print(f"[green]✓[/green] Report written to {output}")
    else:
        console.print_json(data=data)


@app.command()
def labels(
    manifest: Path = typer.Argument(..., help="JSON list of {name, category, description}"),
    output_dir: Path = typer.Option(Path("./generated_labels"), "--output", "-o", help="Output directory"),
    width: int = typer.Option(256, "--width", help="Texture width"),
    height: int = typer.Option(256, "--height", help="Texture height"),
    font_size: int = typer.Option(32, "--font-size", "--fontSize", help="Font size for text"),
    only: Optional[str] = typer.Option(None, "--only", help="Comma-separated item names to generate"),
    category: Optional[str] = typer.Option(None, "--category", help="Only generate items of this category")
):
    """Render placeholder label textures."""
    console.print("[bold blue]Rendering label textures...[/bold blue]")

    try:
        items = select_items(load_items(manifest), category=category)
        generator = TextTextureGenerator(width, height, font_size)
    except (OSError, ValueError, KeyError) as e:
        console.print(f"[red]Error reading manifest:[/red] {e}")
        raise typer.Exit(1)

    names: Optional[List[str]] = None
    if only:
        names = [name.strip() for name in only.split(",") if name.strip()]

    counts = generator.generate_batch(items, output_dir, only=names)
    console.print(f"[green]✓[/green] Rendered {counts['success']} labels into {output_dir}")

    if counts["failed"]:
        console.print(f"[red]✗[/red] {counts['failed']} labels failed")
        raise typer.Exit(1)


@app.command()
def process(
    input_dir: Path = typer.Option(Path("./input_data/actors"), "--input", "-i", help="Directory of PNG images"),
    output_dir: Optional[Path] = typer.Option(None, "--output", "-o", help="Output directory (default: <input>_processed)"),
    size: int = typer.Option(256, "--size", "-s", min=1, help="Edge length of the square output"),
    backup: bool = typer.Option(True, "--backup/--no-backup", help="Copy originals to <input>_backup first"),
    overwrite: bool = typer.Option(False, "--overwrite", "-w", help="Replace the originals (requires --backup)"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path")
):
    """Trim transparent edges and fit images into transparent squares."""
    console.print(f"[bold blue]Processing images in {input_dir}...[/bold blue]")

    config = _load_config(config_file)

    try:
        processor = TrimProcessor(TrimConfig(size, backup, overwrite, config.resample))

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console
        ) as progress:
            task = progress.add_task("Trimming and resizing...", total=None)
            report = processor.process_directory(input_dir, output_dir)
            progress.update(task, description="✓ Images processed")

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error processing images:[/red] {e}")
        raise typer.Exit(1)

    settings, summary = report["settings"], report["summary"]
    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Output", settings["outputDir"])
    table.add_row("Size", f"{size}×{size}")
    table.add_row("Processed", f"{summary['success']}/{summary['total']}")
    if settings["backupDir"]:
        table.add_row("Backup", settings["backupDir"])
    console.print(table)

    if summary["failed"]:
        console.print(f"[red]✗[/red] {summary['failed']} images failed")
        raise typer.Exit(1)


@app.command()
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    validate_config: bool = typer.Option(False, "--validate", help="Validate configuration file"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    env_vars: bool = typer.Option(False, "--env-vars", help="Show available environment variables")
):
    """Manage pipeline configuration."""
    if env_vars:
        _display_env_vars()
        return

    if not (show or validate_config):
        console.print("Use --show to display configuration, --validate to check it, or --env-vars to see environment variables.")
        return

    config = _load_config(config_file, validate=False)

    if show:
        _display_config(config)

    if validate_config:
        errors = config.validate()
        if errors:
            console.print("[red]Configuration validation errors:[/red]")
            for error in errors:
                console.print(f"  • {error}")
            raise typer.Exit(1)
        console.print("[green]✓ Configuration is valid[/green]")


@app.command()
def version():
    """Show cube atlas version information."""
    from importlib import metadata

    console.print("[bold]Cube Atlas Pipeline[/bold]")
    console.print(f"Version: {__version__}")
    console.print("Python: " + sys.version.split()[0])

    console.print("\n[bold]Dependencies:[/bold]")
    table = Table(show_header=False)
    table.add_column("Status", width=3)
    table.add_column("Package", style="cyan")
    table.add_column("Version", style="green")

    for name in ("Pillow", "numpy", "requests", "typer", "rich"):
        try:
            table.add_row("[green]✓[/green]", name, metadata.version(name))
        except metadata.PackageNotFoundError:
            table.add_row("[red]✗[/red]", name, "Not installed")

    console.print(table)


def _resolve_gutter(config: AtlasConfig, gutter: Optional[bool], gutter_size: Optional[int]) -> int:
    """Explicit flags win over configuration; a disabled gutter is width 0."""
    if gutter is None and gutter_size is None:
        return config.effective_gutter_size()

    enabled = config.gutter if gutter is None else gutter
    size = config.gutter_size if gutter_size is None else gutter_size
    return size if enabled else 0


def _load_config(config_file: Optional[Path], validate: bool = True) -> AtlasConfig:
    """
    Load configuration from file or use defaults with environment variable support.

    Exits with status 1 when the file cannot be read or, with ``validate``, when
    the merged settings are invalid.
    """
    config = None

    if config_file and not config_file.exists():
        console.print(f"[red]Configuration file not found:[/red] {config_file}")
        raise typer.Exit(1)

    try:
        if config_file:
            config = AtlasConfig.from_file(config_file)
            console.print(f"[dim]Using configuration: {config_file}[/dim]")
        else:
            for config_path in DEFAULT_CONFIG_FILES:
                if config_path.exists():
                    console.print(f"[dim]Using configuration: {config_path}[/dim]")
                    config = AtlasConfig.from_file(config_path)
                    break

        if config is None:
            config = AtlasConfig()

        config = AtlasConfig._apply_env_overrides(config)
    except (ValueError, OSError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(1)

    env_vars_used = [key for key in os.environ if key.startswith(ENV_PREFIX)]
    if env_vars_used:
        console.print(f"[dim]Environment overrides applied: {len(env_vars_used)} variables[/dim]")

    if validate:
        errors = config.validate()
        if errors:
            console.print("[red]Configuration validation errors:[/red]")
            for error in errors:
                console.print(f"  • {error}")
            raise typer.Exit(1)

    return config


def _display_build_summary(result: BuildResult) -> None:
    """Display the outcome of an atlas build."""
    width, height = result.atlas.atlas.size

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Atlas", str(result.atlas_path))
    table.add_row("Size", f"{width}×{height}")
    table.add_row("Cell size", str(result.cell_size))
    table.add_row("Gutter", str(result.gutter_size) if result.gutter_size else "off")
    if result.report_path:
        table.add_row("UV mapping", str(result.report_path))
    table.add_row("Total time", f"{result.duration:.2f}s")

    console.print(table)

    step_table = Table()
    step_table.add_column("Step", style="cyan")
    step_table.add_column("Status", width=8)
    step_table.add_column("Duration", style="yellow")

    for step, step_result in result.steps.items():
        status = "[green]✓[/green]" if step_result.success else "[red]✗[/red]"
        step_table.add_row(step.value, status, f"{step_result.duration:.2f}s")

    console.print(step_table)

    if result.validation is not None:
        _display_validation(result.validation)


def _display_validation(result: ValidationResult) -> None:
    """Display validation errors and warnings."""
    for error in result.errors:
        console.print(f"  [red]✗[/red] {error}")
    for warning in result.warnings:
        console.print(f"  [yellow]![/yellow] {warning}")

    if result.is_valid:
        console.print(f"[green]✓[/green] {result.asset_name} is a valid horizontal cross atlas")
    else:
        console.print(f"[red]✗[/red] {result.asset_name} failed validation")


def _display_config(config: AtlasConfig) -> None:
    """Display configuration in a formatted table."""
    table = Table(title="Cube Atlas Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Gutter", str(config.gutter))
    table.add_row("Gutter Size", str(config.gutter_size))
    table.add_row("Resample", config.resample)
    table.add_row("Max Workers", str(config.max_workers))
    table.add_row("Aspect Tolerance", str(config.aspect_tolerance))
    table.add_row("Compression Level", str(config.compression_level))

    table.add_row("Dice Background", config.dice_background_color)
    table.add_row("Dice Dot Color", config.dice_dot_color)
    table.add_row("Dice Special Color", config.dice_special_color)
    table.add_row("Dice Dot Radius", str(config.dice_dot_radius) if config.dice_dot_radius else "auto")

    table.add_row("Request Timeout", f"{config.request_timeout}s")
    table.add_row("Max Retries", str(config.max_retries))
    table.add_row("Retry Delay", f"{config.retry_delay}s")

    console.print(table)


def _display_env_vars() -> None:
    """Display available environment variables for configuration."""
    table = Table(title="Cube Atlas Environment Variables")
    table.add_column("Environment Variable", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Example", style="green")

    env_vars = [
        ("CUBE_ATLAS_GUTTER", "Enable the transparent gutter (true/false)", "true"),
        ("CUBE_ATLAS_GUTTER_SIZE", "Gutter width in pixels", "2"),
        ("CUBE_ATLAS_RESAMPLE", "Resampling filter", "lanczos"),
        ("CUBE_ATLAS_MAX_WORKERS", "Threads used to prepare faces", "6"),
        ("CUBE_ATLAS_ASPECT_TOLERANCE", "Allowed relative error from 4:3", "0.01"),
        ("CUBE_ATLAS_COMPRESSION_LEVEL", "PNG compression level (0-9)", "6"),
        ("CUBE_ATLAS_REQUEST_TIMEOUT", "Download timeout in seconds", "30"),
        ("CUBE_ATLAS_MAX_RETRIES", "Download retries", "3"),
        ("CUBE_ATLAS_RETRY_DELAY", "Initial retry delay in seconds", "1.0"),
    ]

    for var_name, description, example in env_vars:
        table.add_row(var_name, description, example)

    console.print(table)
    console.print("\n[dim]Set these environment variables to override configuration file settings.[/dim]")
    console.print("[dim]Example: export CUBE_ATLAS_GUTTER=true[/dim]")


if __name__ == "__main__":
    app()
