"""CLI command for running a network simulation."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.table import Table

from pneumasim.core.config import SimulationConfig, load_network_json, network_to_dict
from pneumasim.core.network import Button, Cylinder, PneumaticNetwork, demo_network
from pneumasim.core.pressure import pressure_of, stroke_fraction
from pneumasim.core.trace import simulate

_SIDES = ("left", "right")


def load_network(path: str | None, demo: bool) -> tuple[PneumaticNetwork, SimulationConfig]:
    """Load a network file or the demo bench for a CLI command."""
    if demo:
        return demo_network(), SimulationConfig()
    if path is None:
        raise click.UsageError("Provide a network file or use --demo.")
    try:
        return load_network_json(path)
    except (ValueError, KeyError) as e:
        raise click.ClickException(str(e)) from e


def _apply_press(network: PneumaticNetwork, press: str) -> None:
    """Press a button gate: ``left``/``right`` for every button, or ``ID:side``."""
    component_id, _, side = press.rpartition(":")
    side = side.lower()
    if side not in _SIDES:
        raise click.BadParameter(f"'{press}' must end in one of {_SIDES}", param_hint="--press")

    if component_id:
        try:
            buttons = [network.component(component_id)]
        except KeyError as e:
            raise click.BadParameter(str(e), param_hint="--press") from e
        if not isinstance(buttons[0], Button):
            raise click.BadParameter(f"'{component_id}' is not a button", param_hint="--press")
    else:
        buttons = [c for c in network.components if isinstance(c, Button)]

    for button in buttons:
        if side == "left":
            button.left_pressed = True
        else:
            button.right_pressed = True


def _print_tables(console: Console, network: PneumaticNetwork) -> None:
    tubes = Table(title="Tubes")
    tubes.add_column("Tube", style="cyan")
    tubes.add_column("From", style="dim")
    tubes.add_column("To", style="dim")
    tubes.add_column("Residual Mass", style="green", justify="right")
    tubes.add_column("Pressure", style="green", justify="right")
    for tube in network.tubes:
        tubes.add_row(
            tube.id,
            tube.from_,
            tube.to,
            f"{tube.residual_mass:.4f}",
            f"{pressure_of(tube):.4f}",
        )
    console.print(tubes)

    components = Table(title="Components")
    components.add_column("Component", style="cyan")
    components.add_column("Kind", style="yellow")
    components.add_column("Terminal Pressures", justify="right")
    components.add_column("State", style="dim")
    components.add_column("Alert", style="red")
    for component in network.components:
        pressures = "  ".join(
            f"{t}: {p:.3f}" for t, p in sorted(component.terminal_pressures.items())
        )
        if isinstance(component, Button):
            state = f"L={'on' if component.left_pressed else 'off'} R={'on' if component.right_pressed else 'off'}"
        elif isinstance(component, Cylinder):
            state = f"expansion {component.expansion:.3f} ({stroke_fraction(component):.0%} stroke)"
        else:
            state = "—"
        components.add_row(
            component.id, component.kind.value, pressures, state, component.alert or ""
        )
    console.print(components)


@click.command("run")
@click.argument("network_file", type=click.Path(exists=True), required=False)
@click.option("--demo", is_flag=True, help="Run the built-in compressor/valve/cylinder bench.")
@click.option("--steps", "-n", type=int, default=30, show_default=True, help="Number of steps.")
@click.option(
    "--press",
    multiple=True,
    help="Hold a button gate: 'left', 'right' (all buttons) or 'ID:left'.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the final state as JSON.")
@click.pass_context
def run(
    ctx: click.Context,
    network_file: str | None,
    demo: bool,
    steps: int,
    press: tuple[str, ...],
    as_json: bool,
) -> None:
    """Run a pneumatic network for a number of steps."""
    console: Console = ctx.obj.get("console", Console())

    if steps < 0:
        raise click.BadParameter("must be non-negative", param_hint="--steps")

    network, config = load_network(network_file, demo)
    for p in press:
        _apply_press(network, p)

    trace = simulate(network, steps, config)

    if as_json:
        click.echo(json.dumps(network_to_dict(network, config), indent=2))
        return

    console.print(f"\n[bold]PneumaSim — {network.name} ({steps} steps)[/bold]\n")
    _print_tables(console, network)

    settled = trace.settled_step()
    if settled is None:
        console.print("\n[dim]Network still changing at end of run[/dim]")
    else:
        console.print(f"\n[dim]Settled after step {settled}[/dim]")
