"""
Command-line interface for the resource packer.
"""

import importlib.metadata
import os
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import ENV_PREFIX, ENV_VARS, PackerConfig
from .errors import FlagError, PackerError
from .flags import classify, match, split_name
from .pipeline import PackingState, ResourcePacker
from .tasks import DEFAULT_TASKS
from .tasks.base import Severity

# Initialize typer app and rich console
app = typer.Typer(
    name="resource-packer",
    help="Resource packer - Turn a tree of raw resources into runtime-ready resources",
    add_completion=False,
    rich_markup_mode="rich",
    epilog="""
[bold]Examples:[/bold]
  [cyan]resource-packer pack raw/ packed/[/cyan]                        Pack a resource tree
  [cyan]resource-packer flags "Body.24.outline 2 000000.ttf"[/cyan]     Show how a name is read
  [cyan]resource-packer tasks[/cyan]                                    List the task order

[bold]Environment Variables:[/bold]
  Use [cyan]resource-packer config --env-vars[/cyan] to see all available variables.
    """
)
console = Console()

SEVERITY_STYLES = {
    Severity.DEBUG: "dim",
    Severity.INFO: "green",
    Severity.WARNING: "yellow",
    Severity.ERROR: "red",
}


@app.command()
def pack(
    input_dir: Path = typer.Argument(..., help="Directory with raw resources"),
    output_dir: Path = typer.Argument(..., help="Directory receiving packed resources"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    summary: bool = typer.Option(True, "--summary/--no-summary", help="Show run summary")
):
    """Pack a resource tree in one pass."""
    console.print(f"[bold blue]Packing {input_dir} into {output_dir}...[/bold blue]")

    if not input_dir.is_dir():
        console.print(f"[red]Input directory not found:[/red] {input_dir}")
        raise typer.Exit(1)

    config = _load_config(config_file)

    try:
        packer = ResourcePacker(config)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console
        ) as progress:
            step = progress.add_task("Running tasks...", total=None)
            state = packer.pack(input_dir, output_dir)
            progress.update(step, description=f"✓ Wrote {len(state.files_written)} files")
    except PackerError as e:
        console.print(f"[red]Packing failed:[/red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)

    if summary:
        _display_packing_summary(state)

    if state.errors:
        console.print(f"[yellow]Finished with {len(state.errors)} errors[/yellow]")
    else:
        console.print("[green]✓[/green] Packing complete")


@app.command()
def flags(
    name: str = typer.Argument(..., help="File or directory name to inspect"),
    directory: bool = typer.Option(False, "--directory", "-d", help="Read the name as a directory name")
):
    """Show how a resource name splits into base name, flags and extension."""
    parsed = split_name(name, is_directory=directory)

    console.print(f"[bold]Base name:[/bold] {parsed.base}")
    console.print(f"[bold]Extension:[/bold] {parsed.extension or '-'}")
    console.print(f"[bold]Output name:[/bold] {parsed.clean_name}")

    if not parsed.flags:
        console.print("[dim]No flags[/dim]")
        return

    table = Table(title="Flags")
    table.add_column("Token", style="cyan")
    table.add_column("Shape", style="white")
    table.add_column("Value", style="green")

    for token in parsed.flags:
        shapes = classify(token)
        if not shapes:
            table.add_row(token, "keyword", "-")
            continue
        for shape in shapes:
            try:
                value = str(match(shape, token))
            except FlagError as e:
                value = f"[red]{e}[/red]"
            table.add_row(token, shape.value, value)

    console.print(table)


@app.command()
def tasks():
    """List the built-in tasks in the order nodes are offered to them."""
    table = Table(title="Task Order")
    table.add_column("#", style="dim", width=3)
    table.add_column("Task", style="cyan")
    table.add_column("Expects", style="white")
    table.add_column("Produces", style="green")

    for index, task in enumerate(DEFAULT_TASKS, start=1):
        table.add_row(str(index), task.name, task.expects, task.produces)

    console.print(table)


@app.command()
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    validate_config: bool = typer.Option(False, "--validate", help="Validate configuration file"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    env_vars: bool = typer.Option(False, "--env-vars", help="Show available environment variables")
):
    """Manage packer configuration."""
    if env_vars:
        _display_env_vars()
        return

    if not (show or validate_config):
        console.print("Use --show to display configuration, --validate to check it, or --env-vars to see environment variables.")
        return

    config = _load_config(config_file)

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
    """Show resource packer version information."""
    console.print("[bold]Resource Packer[/bold]")
    console.print(f"Version: {__version__}")
    console.print("Python: " + sys.version.split()[0])

    table = Table(show_header=False)
    table.add_column("Status", width=3)
    table.add_column("Package", style="cyan")
    table.add_column("Version", style="green")

    for package in ("Pillow", "numpy", "Jinja2", "toml", "typer", "rich"):
        try:
            table.add_row("[green]✓[/green]", package, importlib.metadata.version(package))
        except importlib.metadata.PackageNotFoundError:
            table.add_row("[red]✗[/red]", package, "Not installed")

    console.print("\n[bold]Dependencies:[/bold]")
    console.print(table)


def _load_config(config_file: Optional[Path]) -> PackerConfig:
    """Load configuration from file or use defaults with environment variable support."""
    config = None

    try:
        if config_file:
            if not config_file.exists():
                console.print(f"[red]Configuration file not found:[/red] {config_file}")
                raise typer.Exit(1)
            config = PackerConfig.from_file(config_file)
            console.print(f"[dim]Using configuration: {config_file}[/dim]")
        else:
            for config_path in (Path("resource_packer.toml"), Path("resource_packer.json")):
                if config_path.exists():
                    console.print(f"[dim]Using configuration: {config_path}[/dim]")
                    config = PackerConfig.from_file(config_path)
                    break
    except (ValueError, OSError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(1)

    if config is None:
        console.print("[dim]Using default configuration[/dim]")
        config = PackerConfig()

    config = PackerConfig._apply_env_overrides(config)

    env_vars_used = [key for key in os.environ if key.startswith(ENV_PREFIX)]
    if env_vars_used:
        console.print(f"[dim]Environment overrides applied: {len(env_vars_used)} variables[/dim]")

    return config


def _display_packing_summary(state: PackingState) -> None:
    """Display packing run summary."""
    console.print("\n[bold]Packing Summary[/bold]")
    console.print("=" * 50)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Execution time", f"{state.duration:.2f}s")
    table.add_row("Nodes offered", str(state.nodes_offered))
    table.add_row("Unclaimed nodes", str(state.unclaimed))
    table.add_row("Files written", str(len(state.files_written)))
    table.add_row("Warnings", str(len(state.warnings)))
    table.add_row("Errors", str(len(state.errors)))
    console.print(table)

    if state.claims:
        claims = Table(title="Claims per Task")
        claims.add_column("Task", style="cyan")
        claims.add_column("Nodes", style="green")
        for task_name, count in state.claims.items():
            claims.add_row(task_name, str(count))
        console.print(claims)

    notable = state.warnings + state.errors
    if notable:
        diagnostics = Table(title="Diagnostics")
        diagnostics.add_column("Severity")
        diagnostics.add_column("Task", style="cyan")
        diagnostics.add_column("Node", style="white")
        diagnostics.add_column("Message")
        for diagnostic in notable:
            style = SEVERITY_STYLES[diagnostic.severity]
            diagnostics.add_row(
                f"[{style}]{diagnostic.severity.name}[/{style}]",
                diagnostic.task,
                diagnostic.node,
                diagnostic.message,
            )
        console.print(diagnostics)


def _display_config(config: PackerConfig) -> None:
    """Display configuration in a formatted table."""
    table = Table(title="Resource Packer Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Atlas Padding", str(config.atlas_padding))
    table.add_row("Atlas Max Size", f"{config.atlas_max_size[0]}×{config.atlas_max_size[1]}")
    table.add_row("Atlas Power of Two", str(config.atlas_power_of_two))
    table.add_row("Atlas Format", config.atlas_format)
    table.add_row("Font Page Size", f"{config.font_page_size[0]}×{config.font_page_size[1]}")
    table.add_row("Compression Level", str(config.compression_level))
    table.add_row("Skip Hidden", str(config.skip_hidden))
    table.add_row("Staging Directory", config.staging_dir or "(temporary)")
    table.add_row("Log Level", config.log_level)

    console.print(table)


def _display_env_vars() -> None:
    """Display available environment variables for configuration."""
    table = Table(title="Resource Packer Environment Variables")
    table.add_column("Environment Variable", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Example", style="green")

    for name, description, example in ENV_VARS:
        table.add_row(name, description, example)

    console.print(table)


if __name__ == "__main__":
    app()
