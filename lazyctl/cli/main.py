"""Main CLI application for lazyctl."""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from lazyctl import __version__
from lazyctl.config.parser import CONFIG_FILENAME, ConfigError, load_config, save_config
from lazyctl.config.schemas import SAMPLE_CONFIG, LazyVimConfig
from lazyctl.core import dispatcher
from lazyctl.core.driver import Driver, RetryPolicy, RunSummary
from lazyctl.core.unit import Outcome, UnitResult
from lazyctl.utils.platform import EditorPaths, get_editor_paths, get_env

# Create the main Typer app
app = typer.Typer(
    name="lazyctl",
    help="Install, update and delete a LazyVim starter and its plugins",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)

# Set up logger for the lazyctl package
logger = logging.getLogger("lazyctl")

LOG_LEVEL_ENV = "LAZYCTL_LOG"
LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level.

    Without -v flags the level comes from the LAZYCTL_LOG environment
    variable (debug, info, warning, error), defaulting to WARNING.

    Args:
        verbosity: 0=environment/WARNING, 1=INFO, 2+=DEBUG
    """
    if verbosity == 0:
        env_level = (get_env(LOG_LEVEL_ENV) or "").lower()
        level = LOG_LEVELS.get(env_level, logging.WARNING)
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logger.setLevel(level)

    # Only add handler if not already configured
    if not logger.handlers:
        handler = RichHandler(
            console=error_console,
            show_time=level <= logging.DEBUG,
            show_path=verbosity >= 3,
            rich_tracebacks=True,
        )
        handler.setLevel(level)
        logger.addHandler(handler)
    else:
        for h in logger.handlers:
            h.setLevel(level)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def get_config(path: Path | None = None) -> LazyVimConfig:
    """Load lazyvim.toml, exiting with status 1 if it is missing or invalid."""
    try:
        return load_config(path)
    except ConfigError as e:
        print_error(str(e))
        if e.path is None:
            print_error(f"Run 'lazyctl init' to create a {CONFIG_FILENAME}")
        raise typer.Exit(1) from e


def get_paths() -> EditorPaths:
    return get_editor_paths()


ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help=f"Path to {CONFIG_FILENAME} (searches the current directory, then its parent)",
    ),
]
JobsOption = Annotated[
    int | None,
    typer.Option("--jobs", "-j", min=1, help="Number of concurrent clones"),
]
MaxAttemptsOption = Annotated[
    int,
    typer.Option(
        "--max-attempts",
        min=0,
        help="Clone attempts per repository before giving up (0 retries forever)",
    ),
]
BackoffOption = Annotated[
    float,
    typer.Option("--backoff", min=0.0, help="Initial delay in seconds between retries"),
]


class _Progress:
    """Prints a live line for every clone attempt."""

    def __init__(self, total: int):
        self.total = total
        self.finished = 0

    def __call__(self, result: UnitResult) -> None:
        label = escape(result.name or result.unit.source_url)
        message = escape(result.message)
        if result.outcome is Outcome.FAILED_RETRYABLE:
            print_warning(f"{label}: attempt {result.attempts} failed, will retry\n  {message}")
            return

        self.finished += 1
        prefix = escape(f"[{self.finished}/{self.total}]")
        if result.outcome is Outcome.SUCCEEDED:
            print_success(f"{prefix} {message}")
        elif result.outcome is Outcome.SKIPPED:
            print_warning(f"{prefix} Skipped {label}: {message}")
        else:
            print_error(f"{prefix} Failed to install {label}: {message}")


def _run_install(
    run: Callable[..., RunSummary],
    verb: str,
    config_path: Path | None,
    jobs: int | None,
    max_attempts: int,
    backoff: float,
) -> None:
    config = get_config(config_path)
    paths = get_paths()

    retry = RetryPolicy(max_attempts=max_attempts or None, backoff=backoff)
    driver = Driver(jobs=jobs, retry=retry)

    total = 1 + len(config.plugins)
    console.print(f"{verb} {total} repositories...")

    try:
        summary = run(config, paths, driver, on_result=_Progress(total))
    except KeyboardInterrupt as e:
        print_error("Interrupted")
        raise typer.Exit(130) from e

    console.print(
        f"Finished: {summary.success_count} installed, "
        f"{summary.skipped_count} skipped, {summary.failure_count} failed"
    )
    if not summary.all_successful:
        raise typer.Exit(1)


@app.callback()
def callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v info, -vv debug)",
        ),
    ] = 0,
) -> None:
    """lazyctl - LazyVim starter and plugin installer.

    Uses git to download repositories; make sure git is installed.
    """
    setup_logging(verbose)


@app.command()
def version() -> None:
    """Show the lazyctl version."""
    console.print(f"lazyctl {__version__}")


@app.command()
def install(
    config: ConfigOption = None,
    jobs: JobsOption = None,
    max_attempts: MaxAttemptsOption = 5,
    backoff: BackoffOption = 1.0,
) -> None:
    """Install the starter and plugins.

    On Linux and macOS the starter goes under ~/.config/nvim and plugins
    under ~/.local/share/nvim/lazy. On Windows they go under
    ~/AppData/Local/nvim and ~/AppData/Local/nvim-data/lazy.
    Existing clones are removed first.
    """
    _run_install(dispatcher.install, "Installing", config, jobs, max_attempts, backoff)


@app.command()
def update(
    config: ConfigOption = None,
    jobs: JobsOption = None,
    max_attempts: MaxAttemptsOption = 5,
    backoff: BackoffOption = 1.0,
) -> None:
    """Update the starter and plugins by cloning them again."""
    _run_install(dispatcher.update, "Updating", config, jobs, max_attempts, backoff)


@app.command()
def delete() -> None:
    """Delete the starter, plugins, cache and state directories.

    Directories that do not exist are skipped. There is no confirmation.
    """
    results = dispatcher.delete(get_paths())

    for result in results:
        if result.error is not None:
            print_error(f"Failed to remove {result.path}: {result.error}")
        elif result.removed:
            print_success(f"Removed {result.path}")
        else:
            print_warning(f"Not present: {result.path}")


@app.command("list")
def list_units(config: ConfigOption = None) -> None:
    """List the configured starter and plugins."""
    loaded = get_config(config)
    units = dispatcher.build_units(loaded, get_paths())

    table = Table(title="Configured Repositories")
    table.add_column("Kind", style="dim", no_wrap=True)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Destination", style="green")
    table.add_column("Source", style="dim")

    for unit in units:
        destination = unit.destination
        table.add_row(
            unit.kind,
            unit.name or "[red]<none>[/red]",
            str(destination) if destination else "skipped",
            unit.source_url,
        )

    console.print(table)


@app.command()
def paths() -> None:
    """Show the editor directories used on this platform."""
    editor_paths = get_paths()
    console.print(f"Config:  {editor_paths.config_dir}")
    console.print(f"Data:    {editor_paths.data_dir}")
    console.print(f"Plugins: {editor_paths.plugin_root}")
    if editor_paths.cache_dir is not None:
        console.print(f"Cache:   {editor_paths.cache_dir}")
    if editor_paths.state_dir is not None:
        console.print(f"State:   {editor_paths.state_dir}")


@app.command()
def init(
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            "-p",
            help="Directory to create lazyvim.toml in (defaults to current directory)",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help=f"Overwrite an existing {CONFIG_FILENAME}"),
    ] = False,
) -> None:
    """Create a sample lazyvim.toml."""
    path = Path.cwd() if path is None else path.resolve()

    if not path.is_dir():
        print_error(f"Directory does not exist: {path}")
        raise typer.Exit(1)

    config_path = path / CONFIG_FILENAME
    if config_path.exists() and not force:
        print_error(f"{config_path} already exists")
        print_error("Use --force to overwrite it")
        raise typer.Exit(1)

    save_config(config_path, SAMPLE_CONFIG)
    print_success(f"Created {config_path}")


if __name__ == "__main__":
    app()
