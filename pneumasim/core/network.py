"""Pneumatic network model.

Defines the closed set of component variants (compressor, push-button
valve, single-acting cylinder, splitter), the tubes that join their
terminals, and a container holding both in a fixed order.

Components and tubes are plain mutable dataclasses.  The relaxation
engine reads and writes their numeric and alert fields in place; it never
creates or removes them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, ClassVar

from pneumasim.utils.constants import (
    ATMOSPHERE,
    BUTTON_TERMINALS,
    COMPRESSOR_TERMINALS,
    CYLINDER_TERMINALS,
    SPLITTER_TERMINALS,
    TERMINAL_SEPARATOR,
)

if TYPE_CHECKING:
    from pneumasim.core.config import SimulationConfig


class ComponentKind(Enum):
    """Pneumatic component kind."""

    COMPRESSOR = "compressor"
    BUTTON = "button"
    CYLINDER = "cylinder"
    SPLITTER = "splitter"


def terminal_ref(component_id: str, terminal: int | str) -> str:
    """Build the endpoint reference ``"<componentId>/<terminalId>"``."""
    return f"{component_id}{TERMINAL_SEPARATOR}{terminal}"


def parse_terminal_ref(ref: str) -> tuple[str, int] | None:
    """Split an endpoint reference into (component id, terminal).

    Returns None for the atmosphere sentinel and for strings that do not
    end in an integer terminal id.
    """
    if ref == ATMOSPHERE or TERMINAL_SEPARATOR not in ref:
        return None
    component_id, _, terminal = ref.rpartition(TERMINAL_SEPARATOR)
    try:
        return component_id, int(terminal)
    except ValueError:
        return None


@dataclass
class PneumaticComponent:
    """Common state of every pneumatic component.

    ``terminal_pressures`` maps terminal index (1..n) to the pressure
    read at that terminal during the last step.  ``alert`` holds the
    wiring diagnostic of the last step, or None.
    """

    kind: ClassVar[ComponentKind]
    terminal_count: ClassVar[int]

    id: str
    terminal_pressures: dict[int, float] = field(default_factory=dict)
    alert: str | None = None

    def __post_init__(self) -> None:
        if not self.terminal_pressures:
            self.terminal_pressures = {t: 0.0 for t in self.terminals}

    @property
    def terminals(self) -> range:
        return range(1, self.terminal_count + 1)


@dataclass
class Compressor(PneumaticComponent):
    """Pressure source pushing its single terminal toward supply pressure."""

    kind: ClassVar[ComponentKind] = ComponentKind.COMPRESSOR
    terminal_count: ClassVar[int] = COMPRESSOR_TERMINALS


@dataclass
class Button(PneumaticComponent):
    """Push-button valve with two independent gates.

    The left gate joins terminals 1 and 2, the right gate joins 3 and 4.
    A released gate vents its output terminal (2 or 4) to atmosphere.
    """

    kind: ClassVar[ComponentKind] = ComponentKind.BUTTON
    terminal_count: ClassVar[int] = BUTTON_TERMINALS

    left_pressed: bool = False
    right_pressed: bool = False

    def toggle_left(self) -> bool:
        self.left_pressed = not self.left_pressed
        return self.left_pressed

    def toggle_right(self) -> bool:
        self.right_pressed = not self.right_pressed
        return self.right_pressed


@dataclass
class Cylinder(PneumaticComponent):
    """Spring-loaded single-acting cylinder.

    ``expansion`` is derived from terminal pressure every step and is not
    clamped; 1.0 means full stroke.
    """

    kind: ClassVar[ComponentKind] = ComponentKind.CYLINDER
    terminal_count: ClassVar[int] = CYLINDER_TERMINALS

    expansion: float = 0.0


@dataclass
class Splitter(PneumaticComponent):
    """Three-way junction equalising pressure between its terminals."""

    kind: ClassVar[ComponentKind] = ComponentKind.SPLITTER
    terminal_count: ClassVar[int] = SPLITTER_TERMINALS


COMPONENT_TYPES: dict[ComponentKind, type[PneumaticComponent]] = {
    ComponentKind.COMPRESSOR: Compressor,
    ComponentKind.BUTTON: Button,
    ComponentKind.CYLINDER: Cylinder,
    ComponentKind.SPLITTER: Splitter,
}


def make_component(kind: ComponentKind | str, component_id: str, **kwargs) -> PneumaticComponent:
    """Create a component of the given kind.

    Raises:
        ValueError: If the kind is unknown.
    """
    try:
        kind = ComponentKind(kind)
    except ValueError:
        raise ValueError(f"Unknown component kind: {kind}") from None
    return COMPONENT_TYPES[kind](id=component_id, **kwargs)


@dataclass
class Tube:
    """Flexible tube between two endpoints.

    Each end is either ``"atmosphere"`` or ``"<componentId>/<terminalId>"``.
    ``residual_mass`` is the stored pressure-equivalent quantity; it may go
    negative transiently, only its conversion to pressure is clamped.
    """

    id: str
    from_: str = ATMOSPHERE
    to: str = ATMOSPHERE
    residual_mass: float = 0.0

    @property
    def is_vented(self) -> bool:
        """True if either end is open to atmosphere."""
        return self.from_ == ATMOSPHERE or self.to == ATMOSPHERE


_TUBE_ENDS = ("from", "to")


@dataclass
class PneumaticNetwork:
    """Fixed-order collections of components and tubes.

    The lists are the arena the engine indexes into; their order is the
    order components are updated in and tubes are scanned in.
    """

    components: list[PneumaticComponent] = field(default_factory=list)
    tubes: list[Tube] = field(default_factory=list)
    name: str = "Untitled"

    def step(self, config: SimulationConfig | None = None) -> None:
        """Advance the network by one relaxation step."""
        from pneumasim.core.engine import step

        step(self.components, self.tubes, config)

    def component(self, component_id: str) -> PneumaticComponent:
        for component in self.components:
            if component.id == component_id:
                return component
        raise KeyError(f"Component '{component_id}' not found")

    def tube(self, tube_id: str) -> Tube:
        for tube in self.tubes:
            if tube.id == tube_id:
                return tube
        raise KeyError(f"Tube '{tube_id}' not found")

    def attach(self, tube_id: str, end: str, ref: str | None) -> Tube:
        """Plug one end of a tube into a terminal reference.

        Args:
            tube_id: Tube to rewire.
            end: ``"from"`` or ``"to"``.
            ref: Endpoint reference; None drops the end to atmosphere.

        Raises:
            KeyError: If the tube does not exist.
            ValueError: If ``end`` is not a tube end name.
        """
        if end not in _TUBE_ENDS:
            raise ValueError(f"Tube end must be one of {_TUBE_ENDS}, got '{end}'")
        tube = self.tube(tube_id)
        if end == "from":
            tube.from_ = ref or ATMOSPHERE
        else:
            tube.to = ref or ATMOSPHERE
        return tube

    def detach(self, tube_id: str, end: str) -> Tube:
        return self.attach(tube_id, end, None)

    def connect(self, tube_id: str, from_ref: str | None, to_ref: str | None) -> Tube:
        """Rewire both ends of a tube."""
        self.attach(tube_id, "from", from_ref)
        return self.attach(tube_id, "to", to_ref)


def demo_network() -> PneumaticNetwork:
    """Compressor → push-button valve → cylinder training bench.

    Six tubes are available; the first two are wired so that pressing the
    left button extends the cylinder.  The rest hang open to atmosphere.
    """
    compressor = Compressor(id="Pressure source 1")
    button = Button(id="Valve with push button 1")
    cylinder = Cylinder(id="Spring loaded Single acting cylinder 1")

    tubes = [Tube(id=f"tube{i}") for i in range(1, 7)]
    tubes[0].from_ = terminal_ref(compressor.id, 1)
    tubes[0].to = terminal_ref(button.id, 1)
    tubes[1].from_ = terminal_ref(button.id, 2)
    tubes[1].to = terminal_ref(cylinder.id, 1)

    return PneumaticNetwork(
        components=[compressor, button, cylinder],
        tubes=tubes,
        name="Demo bench",
    )
