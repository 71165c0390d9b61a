"""Wiring and configuration checks for PneumaSim networks.

The engine itself never validates: it reports wiring faults as component
alerts while it runs.  These checks give the same picture up front, plus
problems the engine silently tolerates (dangling endpoints, duplicate ids).
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from pneumasim.utils.constants import ATMOSPHERE

if TYPE_CHECKING:
    from pneumasim.core.config import SimulationConfig
    from pneumasim.core.network import PneumaticNetwork


class Severity(Enum):
    """Severity level for validation messages."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class ValidationMessage:
    """A single validation finding."""

    severity: Severity
    parameter: str
    message: str
    value: Any = None


@dataclass
class ValidationResult:
    """Aggregated validation result."""

    messages: list[ValidationMessage] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not any(m.severity == Severity.ERROR for m in self.messages)

    @property
    def has_warnings(self) -> bool:
        return any(m.severity == Severity.WARNING for m in self.messages)

    @property
    def errors(self) -> list[ValidationMessage]:
        return [m for m in self.messages if m.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationMessage]:
        return [m for m in self.messages if m.severity == Severity.WARNING]

    def add(self, severity: Severity, parameter: str, message: str, **kwargs: Any) -> None:
        self.messages.append(
            ValidationMessage(severity=severity, parameter=parameter, message=message, **kwargs)
        )

    def error(self, parameter: str, message: str, **kwargs: Any) -> None:
        self.add(Severity.ERROR, parameter, message, **kwargs)

    def warning(self, parameter: str, message: str, **kwargs: Any) -> None:
        self.add(Severity.WARNING, parameter, message, **kwargs)

    def info(self, parameter: str, message: str, **kwargs: Any) -> None:
        self.add(Severity.INFO, parameter, message, **kwargs)

    def merge(self, other: ValidationResult) -> None:
        self.messages.extend(other.messages)


def validate_positive(name: str, value: float, result: ValidationResult) -> None:
    """Validate that a value is strictly positive."""
    if value <= 0:
        result.error(name, f"{name} must be positive, got {value}", value=value)


def validate_range(
    name: str,
    value: float,
    low: float,
    high: float,
    result: ValidationResult,
    severity: Severity = Severity.ERROR,
) -> None:
    """Validate that a value falls within [low, high]."""
    if value < low or value > high:
        result.add(severity, name, f"{name} = {value} is outside [{low}, {high}]", value=value)


def validate_config(config: SimulationConfig) -> ValidationResult:
    """Check relaxation constants.

    A coefficient above 0.5 lets a pair of tubes overshoot each other in
    one step, so the network oscillates instead of settling.
    """
    result = ValidationResult()
    validate_positive("diffusion_coefficient", config.diffusion_coefficient, result)
    validate_range(
        "diffusion_coefficient", config.diffusion_coefficient, 0.0, 0.5, result, Severity.WARNING
    )
    validate_positive("supply_pressure", config.supply_pressure, result)
    validate_positive("full_stroke_pressure", config.full_stroke_pressure, result)
    return result


def validate_network(network: PneumaticNetwork) -> ValidationResult:
    """Run wiring checks on a network.

    Errors: duplicate component or tube ids.
    Warnings: endpoints naming no known terminal, terminals with more than
    one tube, terminal maps that do not match the component kind.
    Info: terminals with no tube.
    """
    from pneumasim.core.network import parse_terminal_ref
    from pneumasim.core.topology import tubes_at_terminal

    result = ValidationResult()

    for cid, n in Counter(c.id for c in network.components).items():
        if n > 1:
            result.error("components", f"Component id '{cid}' is used {n} times", value=cid)
    for tid, n in Counter(t.id for t in network.tubes).items():
        if n > 1:
            result.error("tubes", f"Tube id '{tid}' is used {n} times", value=tid)

    terminals = {c.id: c.terminal_count for c in network.components}

    for tube in network.tubes:
        for end, ref in (("from", tube.from_), ("to", tube.to)):
            if ref == ATMOSPHERE:
                continue
            parsed = parse_terminal_ref(ref)
            if parsed is None or parsed[0] not in terminals or not (
                1 <= parsed[1] <= terminals[parsed[0]]
            ):
                result.warning(
                    f"{tube.id}.{end}",
                    f"Endpoint '{ref}' matches no terminal and is treated as unconnected",
                    value=ref,
                )

    for component in network.components:
        if set(component.terminal_pressures) != set(component.terminals):
            result.warning(
                component.id,
                f"Terminal map {sorted(component.terminal_pressures)} does not match "
                f"{component.kind.value} terminals {list(component.terminals)}",
            )
        for terminal in component.terminals:
            attached = tubes_at_terminal(component.id, terminal, network.tubes)
            if len(attached) > 1:
                result.warning(
                    component.id,
                    f"Terminal {terminal} has {len(attached)} tubes; "
                    "the component will not update",
                    value=[t.id for t in attached],
                )
            elif not attached:
                result.info(component.id, f"Terminal {terminal} is not connected")

    return result
