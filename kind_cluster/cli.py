"""Main CLI entry point for kind cluster management."""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from kind_cluster.config import ControllerSettings
from kind_cluster.exceptions import KindClusterError
from kind_cluster.logging_config import get_logger, setup_logging
from kind_cluster.state import DEFAULT_STATE_DIR, StateStore

app = typer.Typer(
    name="kind-cluster",
    help="Provision and tear down ephemeral kind Kubernetes clusters",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: str | None = typer.Option(None, "--log-file", help="Path to log file"),
):
    """Global options for all commands."""
    log_path = Path(log_file) if log_file else None
    setup_logging(verbose=verbose, log_file=log_path)
    logger.debug("Logging initialized")


def _load_settings(settings_path: str | None) -> ControllerSettings:
    if not settings_path:
        return ControllerSettings()
    try:
        return ControllerSettings.load(settings_path)
    except FileNotFoundError:
        console.print(f"[red]Error:[/red] Settings file not found: {settings_path}")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"[red]Error:[/red] Invalid settings file {settings_path}: {e}")
        raise typer.Exit(code=1)


def _controller(settings: ControllerSettings):
    from kind_cluster.controller import ClusterController
    from kind_cluster.provisioner import KindProvisioner

    return ClusterController(KindProvisioner(settings), settings)


def _fail(error: KindClusterError) -> None:
    logger.error(f"{type(error).__name__}: {error.message}")
    console.print(f"[red]Error:[/red] {escape(error.message)}")
    if error.details:
        console.print(f"\n{escape(error.details)}")
    raise typer.Exit(code=1)


def _print_state(state) -> None:
    table = Table(title=f"Cluster {state.name}")
    table.add_column("Attribute", style="cyan")
    table.add_column("Value", style="magenta")
    for key, value in state.public_dict().items():
        table.add_row(key, str(value))
    console.print(table)


settings_option = typer.Option(None, "--settings", "-s", help="Path to controller settings YAML")
state_dir_option = typer.Option(
    DEFAULT_STATE_DIR, "--state-dir", help="Directory holding cluster state files"
)


@app.command()
def version() -> None:
    """Show version information."""
    from kind_cluster import __version__

    typer.echo(f"kind-cluster version {__version__}")


@app.command()
def render(
    resource_file: str = typer.Argument(..., help="Cluster resource definition (YAML)"),
) -> None:
    """
    Print the normalized kind configuration for a resource definition.

    Nothing is created; use this to check how kind_config will be interpreted.
    """
    from kind_cluster.attributes import parse_kind_config
    from kind_cluster.normalizer import check_containerd_patches
    from kind_cluster.resource import load_resource

    try:
        state, kind_config = load_resource(resource_file)
        cluster = parse_kind_config(kind_config)
    except KindClusterError as e:
        _fail(e)

    if cluster is None:
        console.print(f"[yellow]Cluster {state.name} has no kind_config; kind defaults apply[/yellow]")
        return

    for error in check_containerd_patches(cluster):
        console.print(f"[yellow]Warning:[/yellow] {escape(error.message)}")
    console.print(Syntax(cluster.to_yaml(), "yaml"))


@app.command()
def create(
    resource_file: str = typer.Argument(..., help="Cluster resource definition (YAML)"),
    state_dir: str = state_dir_option,
    settings_path: str | None = settings_option,
) -> None:
    """
    Create a kind cluster from a resource definition.

    Clusters cannot be changed in place: delete and re-create to apply changes.
    """
    from kind_cluster.resource import load_resource

    settings = _load_settings(settings_path)
    store = StateStore(state_dir)

    try:
        state, kind_config = load_resource(resource_file)
        if store.exists(state.name):
            console.print(f"[red]Error:[/red] Cluster '{state.name}' already exists")
            console.print("Delete it first; configuration changes require replacement")
            raise typer.Exit(code=1)

        with console.status(f"Creating cluster {state.name}..."):
            state = _controller(settings).create(state, kind_config)
        store.save(state)
    except KindClusterError as e:
        _fail(e)

    console.print(f"[green]✓[/green] Cluster '{state.name}' created")
    _print_state(state)


@app.command()
def refresh(
    name: str = typer.Argument(..., help="Cluster name"),
    state_dir: str = state_dir_option,
    settings_path: str | None = settings_option,
) -> None:
    """Re-read connection details of an existing cluster."""
    settings = _load_settings(settings_path)
    store = StateStore(state_dir)

    try:
        state = _controller(settings).read(store.load(name))
        store.save(state)
    except KindClusterError as e:
        _fail(e)

    console.print(f"[green]✓[/green] Cluster '{name}' refreshed")
    _print_state(state)


@app.command()
def show(
    name: str = typer.Argument(..., help="Cluster name"),
    state_dir: str = state_dir_option,
) -> None:
    """Show the recorded state of a cluster (sensitive values masked)."""
    try:
        state = StateStore(state_dir).load(name)
    except KindClusterError as e:
        _fail(e)
    _print_state(state)


@app.command("list")
def list_clusters(state_dir: str = state_dir_option) -> None:
    """List clusters with recorded state."""
    names = StateStore(state_dir).list_names()
    if not names:
        console.print("[yellow]No clusters recorded[/yellow]")
        return
    for name in names:
        console.print(name)


@app.command()
def delete(
    name: str = typer.Argument(..., help="Cluster name"),
    state_dir: str = state_dir_option,
    settings_path: str | None = settings_option,
) -> None:
    """Delete a cluster and remove its kubeconfig contexts."""
    settings = _load_settings(settings_path)
    store = StateStore(state_dir)

    try:
        state = store.load(name)
        with console.status(f"Deleting cluster {name}..."):
            _controller(settings).delete(state)
        store.remove(name)
    except KindClusterError as e:
        _fail(e)

    console.print(f"[green]✓[/green] Cluster '{name}' deleted")


@app.command("fmt-toml")
def fmt_toml(
    toml_file: str = typer.Argument(..., help="TOML document, e.g. a containerd patch"),
) -> None:
    """Print a TOML document in canonical form."""
    from kind_cluster.normalizer import normalize_toml

    path = Path(toml_file)
    if not path.exists():
        console.print(f"[red]Error:[/red] File not found: {toml_file}")
        raise typer.Exit(code=1)

    text, error = normalize_toml(path.read_text())
    if error is not None:
        console.print(f"[yellow]Warning:[/yellow] {escape(error.message)}: {escape(error.details or '')}")
    typer.echo(text, nl=False)
    if error is not None:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
