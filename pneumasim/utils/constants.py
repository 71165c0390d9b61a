"""Simulation constants used throughout PneumaSim.

Pressures are in the simulation's own pressure-equivalent units; there is
no physical unit attached.
"""

# Topology
ATMOSPHERE = "atmosphere"  # sentinel endpoint, fixed zero pressure
TERMINAL_SEPARATOR = "/"  # "<componentId>/<terminalId>"

# Relaxation
DIFFUSION_COEFFICIENT = 0.3  # fraction of a pressure difference moved per step
SUPPLY_PRESSURE = 3.0  # compressor outlet target
FULL_STROKE_PRESSURE = 1.5  # cylinder pressure giving expansion == 1

# Display
PRESSURISED_THRESHOLD = 0.5  # residual mass above which a tube reads as live

# Terminal counts per component kind
COMPRESSOR_TERMINALS = 1
BUTTON_TERMINALS = 4
CYLINDER_TERMINALS = 1
SPLITTER_TERMINALS = 3
