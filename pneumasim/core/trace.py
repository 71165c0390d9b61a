"""Multi-step simulation runs recorded as numpy arrays.

Runs the relaxation engine repeatedly over a network and keeps the
residual mass of every tube and the terminal pressures of every component
after each step, for tabulation and plotting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from pneumasim.core.config import SimulationConfig
from pneumasim.core.engine import step
from pneumasim.core.network import Cylinder, PneumaticNetwork

logger = logging.getLogger(__name__)


@dataclass
class SimulationTrace:
    """History of a multi-step run.

    Row 0 of every array is the state before the first step; row i is
    the state after step i.
    """

    tube_ids: list[str] = field(default_factory=list)
    residual_mass: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    terminal_pressures: dict[str, np.ndarray] = field(default_factory=dict)
    expansion: dict[str, np.ndarray] = field(default_factory=dict)
    alerts: dict[str, str | None] = field(default_factory=dict)

    @property
    def steps(self) -> int:
        return max(0, self.residual_mass.shape[0] - 1)

    def tube_history(self, tube_id: str) -> np.ndarray:
        """Residual mass of one tube across the run."""
        try:
            col = self.tube_ids.index(tube_id)
        except ValueError:
            raise KeyError(f"Tube '{tube_id}' not in trace") from None
        return self.residual_mass[:, col]

    def settled_step(self, tol: float = 1e-6) -> int | None:
        """First step after which no tube moves by more than ``tol``.

        Returns None if the network is still moving at the end of the run.
        """
        if self.steps == 0:
            return None
        change = np.abs(np.diff(self.residual_mass, axis=0)).max(axis=1, initial=0.0)
        moving = np.nonzero(change > tol)[0]
        if moving.size == 0:
            return 0
        last = int(moving[-1]) + 1
        return last if last < self.steps else None


def _record_row(network: PneumaticNetwork) -> tuple[list[float], dict[str, list[float]]]:
    masses = [t.residual_mass for t in network.tubes]
    pressures = {
        c.id: [c.terminal_pressures.get(t, 0.0) for t in c.terminals] for c in network.components
    }
    return masses, pressures


def simulate(
    network: PneumaticNetwork,
    steps: int,
    config: SimulationConfig | None = None,
) -> SimulationTrace:
    """Run ``steps`` relaxation steps and record the history.

    The network is mutated exactly as repeated calls to
    :func:`pneumasim.core.engine.step` would.

    Raises:
        ValueError: If ``steps`` is negative.
    """
    if steps < 0:
        raise ValueError(f"Number of steps must be non-negative, got {steps}")

    cylinders = [c for c in network.components if isinstance(c, Cylinder)]
    mass_rows: list[list[float]] = []
    pressure_rows: dict[str, list[list[float]]] = {c.id: [] for c in network.components}
    expansion_rows: dict[str, list[float]] = {c.id: [] for c in cylinders}

    for i in range(steps + 1):
        if i > 0:
            step(network.components, network.tubes, config)
        masses, pressures = _record_row(network)
        mass_rows.append(masses)
        for cid, row in pressures.items():
            pressure_rows[cid].append(row)
        for cylinder in cylinders:
            expansion_rows[cylinder.id].append(cylinder.expansion)

    logger.info("Simulated %d steps over %d tubes", steps, len(network.tubes))

    return SimulationTrace(
        tube_ids=[t.id for t in network.tubes],
        residual_mass=np.asarray(mass_rows, dtype=float).reshape(steps + 1, len(network.tubes)),
        terminal_pressures={cid: np.asarray(rows, dtype=float) for cid, rows in pressure_rows.items()},
        expansion={cid: np.asarray(rows, dtype=float) for cid, rows in expansion_rows.items()},
        alerts={c.id: c.alert for c in network.components},
    )
