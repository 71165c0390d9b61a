"""CLI commands for inspecting and checking network descriptions."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from pneumasim.cli.run_cmd import load_network
from pneumasim.core.network import Button, Cylinder, terminal_ref
from pneumasim.core.topology import tubes_at_terminal
from pneumasim.utils.validation import Severity, validate_config, validate_network

_SEVERITY_STYLE = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFO: "dim",
}


@click.command("info")
@click.argument("network_file", type=click.Path(exists=True), required=False)
@click.option("--demo", is_flag=True, help="Inspect the built-in demo bench.")
@click.pass_context
def info(ctx: click.Context, network_file: str | None, demo: bool) -> None:
    """Display a network as a tree of components, terminals and tubes."""
    console: Console = ctx.obj.get("console", Console())
    network, config = load_network(network_file, demo)

    tree = Tree(f"[bold]{network.name}[/bold]")
    cfg = tree.add("[cyan]Config[/cyan]")
    cfg.add(f"Diffusion coefficient: {config.diffusion_coefficient}")
    cfg.add(f"Supply pressure: {config.supply_pressure}")
    cfg.add(f"Full-stroke pressure: {config.full_stroke_pressure}")

    comps = tree.add(f"[cyan]Components[/cyan] ({len(network.components)})")
    for component in network.components:
        node = comps.add(f"{component.id} [yellow]{component.kind.value}[/yellow]")
        if isinstance(component, Button):
            node.add(f"Left pressed: {component.left_pressed}")
            node.add(f"Right pressed: {component.right_pressed}")
        elif isinstance(component, Cylinder):
            node.add(f"Expansion: {component.expansion}")
        for terminal in component.terminals:
            attached = tubes_at_terminal(component.id, terminal, network.tubes)
            label = ", ".join(t.id for t in attached) or "[dim]—[/dim]"
            node.add(f"{terminal_ref(component.id, terminal)} ← {label}")

    tubes = tree.add(f"[cyan]Tubes[/cyan] ({len(network.tubes)})")
    for tube in network.tubes:
        tubes.add(f"{tube.id}: {tube.from_} → {tube.to} (mass {tube.residual_mass})")

    console.print(tree)


@click.command("check")
@click.argument("network_file", type=click.Path(exists=True), required=False)
@click.option("--demo", is_flag=True, help="Check the built-in demo bench.")
@click.pass_context
def check(ctx: click.Context, network_file: str | None, demo: bool) -> None:
    """Check network wiring and configuration.

    Exits with status 1 when errors are found.
    """
    console: Console = ctx.obj.get("console", Console())
    network, config = load_network(network_file, demo)

    result = validate_network(network)
    result.merge(validate_config(config))

    if result.messages:
        table = Table(title=f"Checks — {network.name}")
        table.add_column("Severity")
        table.add_column("Where", style="cyan")
        table.add_column("Message")
        for msg in result.messages:
            style = _SEVERITY_STYLE[msg.severity]
            table.add_row(f"[{style}]{msg.severity.value}[/{style}]", msg.parameter, msg.message)
        console.print(table)

    if result.is_valid:
        console.print(f"[green]OK[/green] ({len(result.warnings)} warnings)")
    else:
        console.print(f"[bold red]{len(result.errors)} errors[/bold red]")
        ctx.exit(1)
