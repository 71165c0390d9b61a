"""Residual mass to pressure conversion."""

from __future__ import annotations

from pneumasim.core.network import Cylinder, Tube
from pneumasim.utils.constants import PRESSURISED_THRESHOLD


def residual_mass_to_pressure(residual_mass: float) -> float:
    """Observable pressure of a stored residual mass (negative clamps to 0)."""
    return max(0.0, residual_mass)


def pressure_of(tube: Tube) -> float:
    return residual_mass_to_pressure(tube.residual_mass)


def is_pressurised(tube: Tube, threshold: float = PRESSURISED_THRESHOLD) -> bool:
    """Whether a tube holds enough mass to be shown as live."""
    return tube.residual_mass > threshold


def stroke_fraction(cylinder: Cylinder) -> float:
    """Cylinder expansion clamped to [0, 1] for display.

    The engine leaves ``expansion`` unclamped; this is the view's reading
    of it.
    """
    return min(1.0, max(0.0, cylinder.expansion))
