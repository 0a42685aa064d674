"""
procdriver Command Line Interface (CLI)

Operator diagnostics over the `Driver`: query container state, read inspection
records, stream a build, remove containers and images, and look up the bridge
address. Every command can target another host with ``--ssh-host``.
"""

import json
import logging
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from procdriver.driver import Driver
from procdriver.errors import DriverError
from procdriver.executors import LocalExecutor, SSHExecutor
from procdriver.models import ContainerState

app = typer.Typer(rich_markup_mode="markdown")
console = Console()

_STATE_STYLES = {
    ContainerState.RUNNING: "green",
    ContainerState.STOPPED: "yellow",
    ContainerState.NOT_CREATED: "red",
}


def output_json(data: Any) -> None:
    """Helper to output data as JSON."""
    print(json.dumps(data, default=str, indent=2))


def get_driver(ssh_host: Optional[str] = None) -> Driver:
    """Initializes a Driver running commands locally or on ``ssh_host``."""
    executor = SSHExecutor(ssh_host) if ssh_host else LocalExecutor()
    return Driver(executor=executor)


def _fail(error: DriverError) -> NoReturn:
    console.print(str(error), style="red", markup=False)
    raise typer.Exit(1)


SSH_HOST_OPTION = typer.Option(
    None, "--ssh-host", help="Run runtime commands on this host over ssh."
)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log every command that is executed."
    ),
) -> None:
    """Inspect and drive a container runtime from the command line."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )


@app.command()
def state(
    container_id: str = typer.Argument(..., help="Container id to look up."),
    ssh_host: Optional[str] = SSH_HOST_OPTION,
) -> None:
    """Shows whether a container is running, stopped, or not created."""
    driver = get_driver(ssh_host)
    try:
        current = driver.state(container_id)
    except DriverError as e:
        _fail(e)
    style = _STATE_STYLES[current]
    console.print(f"{container_id}: [{style}]{current.value}[/{style}]")


@app.command()
def inspect(
    container_id: str = typer.Argument(..., help="Container id to inspect."),
    json_output: bool = typer.Option(
        False, "--json", help="Print the full inspection record as JSON."
    ),
    ssh_host: Optional[str] = SSH_HOST_OPTION,
) -> None:
    """Displays the inspection record of a container."""
    driver = get_driver(ssh_host)
    try:
        record = driver.inspect(container_id)
    except DriverError as e:
        _fail(e)

    if json_output:
        output_json(record)
        return

    host_config = record.get("HostConfig") or {}
    run_state = record.get("State") or {}
    info = Table(show_header=False, box=None)
    info.add_column(style="bold")
    info.add_column()
    info.add_row("ID", str(record.get("Id", container_id)))
    info.add_row("Name", str(record.get("Name", "")).lstrip("/"))
    info.add_row("Image", str(record.get("Image", "")))
    info.add_row("Status", str(run_state.get("Status", "unknown")))
    info.add_row("Privileged", str(bool(host_config.get("Privileged"))))
    console.print(Panel(info, title="Container Details", border_style="cyan"))


@app.command()
def containers(ssh_host: Optional[str] = SSH_HOST_OPTION) -> None:
    """Lists the ids of all containers, running or not."""
    driver = get_driver(ssh_host)
    try:
        ids = driver.list_containers()
    except DriverError as e:
        _fail(e)

    if not ids:
        console.print("[yellow]No containers found.[/yellow]")
        return
    table = Table(title="Containers")
    table.add_column("ID", style="cyan")
    for container_id in ids:
        table.add_row(container_id)
    console.print(table)


@app.command()
def build(
    context_dir: str = typer.Argument(..., help="Build context directory."),
    tag: Optional[str] = typer.Option(None, "--tag", "-t", help="Image tag."),
    ssh_host: Optional[str] = SSH_HOST_OPTION,
) -> None:
    """Builds an image, streaming the runtime's output as it arrives."""
    driver = get_driver(ssh_host)

    def _echo(line: str) -> None:
        console.print(line, style="dim", markup=False)

    try:
        image_id = driver.build(context_dir, on_output_line=_echo, tag=tag)
    except DriverError as e:
        _fail(e)
    console.print(f"[green]Built image {image_id}[/green]")


@app.command()
def rm(
    container_id: str = typer.Argument(..., help="Container id to remove."),
    ssh_host: Optional[str] = SSH_HOST_OPTION,
) -> None:
    """Stops (if running) and removes a container with its anonymous volumes."""
    driver = get_driver(ssh_host)
    try:
        driver.stop(container_id)
        driver.remove(container_id)
    except DriverError as e:
        _fail(e)
    console.print(f"[green]Removed {container_id}[/green]")


@app.command()
def rmi(
    image_id: str = typer.Argument(..., help="Image id to remove."),
    ssh_host: Optional[str] = SSH_HOST_OPTION,
) -> None:
    """Removes an image unless a container still uses it."""
    driver = get_driver(ssh_host)
    try:
        removed = driver.remove_image(image_id)
    except DriverError as e:
        _fail(e)
    if not removed:
        console.print(f"[yellow]Image {image_id} is still in use.[/yellow]")
        raise typer.Exit(1)
    console.print(f"[green]Image {image_id} removed.[/green]")


@app.command("bridge-ip")
def bridge_ip(ssh_host: Optional[str] = SSH_HOST_OPTION) -> None:
    """Prints the host's IPv4 address on the runtime bridge interface."""
    driver = get_driver(ssh_host)
    try:
        address = driver.bridge_network_address()
    except DriverError as e:
        _fail(e)
    print(address)


if __name__ == "__main__":
    app()
