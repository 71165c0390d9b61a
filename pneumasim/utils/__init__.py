"""Utility modules for PneumaSim."""

from pneumasim.utils.constants import ATMOSPHERE, DIFFUSION_COEFFICIENT, SUPPLY_PRESSURE

__all__ = ["ATMOSPHERE", "DIFFUSION_COEFFICIENT", "SUPPLY_PRESSURE"]
