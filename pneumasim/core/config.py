"""Simulation configuration and network descriptions for PneumaSim.

Handles the relaxation constants and loading networks from JSON
description files.  A description is input only: the simulation state
itself lives in memory for the lifetime of a session.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from pneumasim.core.network import (
    Button,
    Cylinder,
    PneumaticComponent,
    PneumaticNetwork,
    Tube,
    make_component,
)
from pneumasim.utils.constants import (
    ATMOSPHERE,
    DIFFUSION_COEFFICIENT,
    FULL_STROKE_PRESSURE,
    SUPPLY_PRESSURE,
)

logger = logging.getLogger(__name__)


@dataclass
class SimulationConfig:
    """Relaxation constants.

    The coefficient is applied once per step with no notion of elapsed
    time, so the simulated rate follows the caller's step rate.
    """

    diffusion_coefficient: float = DIFFUSION_COEFFICIENT
    supply_pressure: float = SUPPLY_PRESSURE
    full_stroke_pressure: float = FULL_STROKE_PRESSURE


def config_from_dict(data: dict[str, Any]) -> SimulationConfig:
    """Build a SimulationConfig, ignoring unknown keys.

    Raises:
        ValueError: If ``data`` is not a mapping or a value is not numeric.
    """
    data = _require_mapping(data, "config")
    known = {f.name for f in fields(SimulationConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
    return SimulationConfig(
        **{k: _number(v, f"config.{k}") for k, v in data.items() if k in known}
    )


def config_to_dict(config: SimulationConfig) -> dict[str, float]:
    return asdict(config)


# --- Network descriptions ---


def _require_mapping(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be an object, got {type(value).__name__}")
    return value


def _require_list(value: Any, what: str) -> list[Any]:
    if not isinstance(value, list):
        raise ValueError(f"{what} must be a list, got {type(value).__name__}")
    return value


def _number(value: Any, what: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{what} must be a number, got {value!r}") from None


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present, accepting the view layer's aliases."""
    for key in keys:
        if key in data:
            return data[key]
    return default


def component_from_dict(data: dict[str, Any]) -> PneumaticComponent:
    """Build a component from its description.

    Raises:
        ValueError: If the description is not an object, id or kind is
            missing, the kind is unknown or a value has the wrong type.
    """
    data = _require_mapping(data, "component")
    component_id = _pick(data, "id", "_id")
    kind = _pick(data, "kind", "_kind")
    if component_id is None or kind is None:
        raise ValueError(f"Component description needs 'id' and 'kind': {data}")

    component = make_component(kind, str(component_id))
    pressures = _require_mapping(
        _pick(data, "terminal_pressures", "terminalPressures", default={}),
        f"{component.id}: terminal_pressures",
    )
    for terminal, pressure in pressures.items():
        try:
            terminal_id = int(terminal)
        except ValueError:
            raise ValueError(
                f"{component.id}: terminal id must be an integer, got {terminal!r}"
            ) from None
        component.terminal_pressures[terminal_id] = _number(
            pressure, f"{component.id}: terminal {terminal_id} pressure"
        )
    component.alert = data.get("alert")

    if isinstance(component, Button):
        component.left_pressed = bool(_pick(data, "left_pressed", "leftPressed", default=False))
        component.right_pressed = bool(_pick(data, "right_pressed", "rightPressed", default=False))
    elif isinstance(component, Cylinder):
        component.expansion = _number(data.get("expansion", 0.0), f"{component.id}: expansion")
    return component


def tube_from_dict(data: dict[str, Any]) -> Tube:
    """Build a tube from its description.

    Raises:
        ValueError: If the description is not an object, has no id or has a
            non-numeric residual mass.
    """
    data = _require_mapping(data, "tube")
    if "id" not in data:
        raise ValueError(f"Tube description needs 'id': {data}")
    return Tube(
        id=str(data["id"]),
        from_=data.get("from") or ATMOSPHERE,
        to=data.get("to") or ATMOSPHERE,
        residual_mass=_number(
            _pick(data, "residual_mass", "residualMass", default=0.0),
            f"{data['id']}: residual_mass",
        ),
    )


def network_from_dict(data: dict[str, Any]) -> tuple[PneumaticNetwork, SimulationConfig]:
    """Build a network and its configuration from a description dict.

    Sections set to null read as absent.

    Raises:
        ValueError: If the description or one of its sections has the wrong
            shape, or a component or tube is invalid.
    """
    data = _require_mapping(data, "network description")
    components = _require_list(data.get("components") or [], "components")
    tubes = _require_list(data.get("tubes") or [], "tubes")
    network = PneumaticNetwork(
        components=[component_from_dict(c) for c in components],
        tubes=[tube_from_dict(t) for t in tubes],
        name=str(data.get("name") or "Untitled"),
    )
    config = config_from_dict(data.get("config") or {})
    return network, config


def component_to_dict(component: PneumaticComponent) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": component.id,
        "kind": component.kind.value,
        "terminal_pressures": {str(t): p for t, p in component.terminal_pressures.items()},
        "alert": component.alert,
    }
    if isinstance(component, Button):
        d["left_pressed"] = component.left_pressed
        d["right_pressed"] = component.right_pressed
    elif isinstance(component, Cylinder):
        d["expansion"] = component.expansion
    return d


def network_to_dict(
    network: PneumaticNetwork, config: SimulationConfig | None = None
) -> dict[str, Any]:
    """Snapshot a network as a description dict."""
    data: dict[str, Any] = {
        "name": network.name,
        "components": [component_to_dict(c) for c in network.components],
        "tubes": [
            {"id": t.id, "from": t.from_, "to": t.to, "residual_mass": t.residual_mass}
            for t in network.tubes
        ],
    }
    if config is not None:
        data["config"] = config_to_dict(config)
    return data


def load_network_json(path: str | Path) -> tuple[PneumaticNetwork, SimulationConfig]:
    """Load a network description from a JSON file.

    Raises:
        ValueError: If the file is not valid JSON or describes an invalid
            network.
    """
    path = Path(path)
    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid network description {path}: {e}") from e

    network, config = network_from_dict(data)
    logger.info(
        "Loaded network '%s' from %s (%d components, %d tubes)",
        network.name,
        path,
        len(network.components),
        len(network.tubes),
    )
    return network, config
