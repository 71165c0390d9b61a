"""Pressure relaxation engine for PneumaSim.

One call to :func:`step` performs a single discrete update of a pneumatic
network:

1. Every tube with an atmosphere end is emptied.
2. Components are visited in collection order.  Each terminal is resolved
   to a tube index; the component's rule then reads pressures and adds
   proportional transfers straight into the tubes.

Tubes are shared between components and mutated in place, so a component
visited later in the pass sees the transfers already made by earlier ones.
The diffusion coefficient is applied once per step with no time scaling.

Wiring problems never raise.  They are reported through the component's
``alert``, which is rewritten every step:

- no tube at a terminal: alert is set, the terminal reads 0 and any
  transfer into it is dropped;
- several tubes at a terminal: alert is set and the component is skipped
  for the rest of the step.
"""

from __future__ import annotations

import logging

from pneumasim.core.config import SimulationConfig
from pneumasim.core.network import (
    Button,
    ComponentKind,
    Cylinder,
    PneumaticComponent,
    Tube,
)
from pneumasim.core.pressure import residual_mass_to_pressure
from pneumasim.core.topology import tube_indices_at_terminal

logger = logging.getLogger(__name__)

# Slot of a terminal with no tube: reads as atmosphere, swallows transfers.
_OPEN = None

Slots = dict[int, "int | None"]


def step(
    components: list[PneumaticComponent],
    tubes: list[Tube],
    config: SimulationConfig | None = None,
) -> None:
    """Advance the network by one relaxation step, in place.

    Args:
        components: Components, updated in this order.
        tubes: All tubes of the network.
        config: Relaxation constants (defaults if omitted).

    Raises:
        ValueError: If a component has an unknown kind.
    """
    config = config or SimulationConfig()

    vented = 0
    for tube in tubes:
        if tube.is_vented:
            tube.residual_mass = 0.0
            vented += 1

    for component in components:
        slots = _resolve_terminals(component, tubes)
        if slots is None:
            continue

        kind = component.kind
        if kind == ComponentKind.COMPRESSOR:
            _update_compressor(component, slots, tubes, config)
        elif kind == ComponentKind.BUTTON:
            _update_button(component, slots, tubes, config)
        elif kind == ComponentKind.CYLINDER:
            _update_cylinder(component, slots, tubes, config)
        elif kind == ComponentKind.SPLITTER:
            _update_splitter(component, slots, tubes, config)
        else:
            raise ValueError(f"Unknown component kind: {kind}")

    logger.debug(
        "Step done: %d components, %d tubes (%d vented)",
        len(components),
        len(tubes),
        vented,
    )


def _resolve_terminals(component: PneumaticComponent, tubes: list[Tube]) -> Slots | None:
    """Map each terminal to its tube index, setting the component alert.

    Returns None when a terminal carries more than one tube; the component
    must then be left untouched for this step.
    """
    component.alert = None
    slots: Slots = {}

    for terminal in component.terminals:
        found = tube_indices_at_terminal(component.id, terminal, tubes)
        if len(found) > 1:
            component.alert = f"Multiple tubes connected to terminal {terminal}"
            logger.debug("%s: %s", component.id, component.alert)
            return None
        if not found:
            component.alert = f"No tubes connected to terminal {terminal}"
            logger.debug("%s: %s", component.id, component.alert)
            slots[terminal] = _OPEN
        else:
            slots[terminal] = found[0]

    return slots


def _pressure(tubes: list[Tube], slot: int | None) -> float:
    if slot is _OPEN:
        return 0.0
    return residual_mass_to_pressure(tubes[slot].residual_mass)


def _add(tubes: list[Tube], slot: int | None, delta: float) -> None:
    if slot is not _OPEN:
        tubes[slot].residual_mass += delta


def _read_pressures(component: PneumaticComponent, slots: Slots, tubes: list[Tube]) -> dict[int, float]:
    """Read every terminal pressure and record it on the component."""
    pressures = {t: _pressure(tubes, slot) for t, slot in slots.items()}
    component.terminal_pressures.update(pressures)
    return pressures


def _transfer(tubes: list[Tube], slots: Slots, a: int, b: int, diff: float, k: float) -> None:
    """Move ``diff * k`` from terminal a's tube to terminal b's tube."""
    _add(tubes, slots[a], -diff * k)
    _add(tubes, slots[b], diff * k)


# --- Kind rules ---


def _update_compressor(
    component: PneumaticComponent, slots: Slots, tubes: list[Tube], config: SimulationConfig
) -> None:
    """Push terminal 1 up toward supply pressure; never pulls down."""
    p = _read_pressures(component, slots, tubes)
    diff = config.supply_pressure - p[1]
    if diff > 0:
        _add(tubes, slots[1], diff * config.diffusion_coefficient)


def _update_button(
    component: Button, slots: Slots, tubes: list[Tube], config: SimulationConfig
) -> None:
    """Pass 1→2 and 3→4 through open gates; vent closed outputs."""
    k = config.diffusion_coefficient
    p = _read_pressures(component, slots, tubes)

    for inlet, outlet, pressed in ((1, 2, component.left_pressed), (3, 4, component.right_pressed)):
        if pressed:
            _transfer(tubes, slots, inlet, outlet, p[inlet] - p[outlet], k)
        else:
            _add(tubes, slots[outlet], -p[outlet] * k)


def _update_cylinder(
    component: Cylinder, slots: Slots, tubes: list[Tube], config: SimulationConfig
) -> None:
    p = _read_pressures(component, slots, tubes)
    component.expansion = p[1] / config.full_stroke_pressure


def _update_splitter(
    component: PneumaticComponent, slots: Slots, tubes: list[Tube], config: SimulationConfig
) -> None:
    """Equalise each terminal pair independently from the same readings."""
    k = config.diffusion_coefficient
    p = _read_pressures(component, slots, tubes)

    for a, b in ((1, 2), (2, 3), (1, 3)):
        _transfer(tubes, slots, a, b, p[a] - p[b], k)
