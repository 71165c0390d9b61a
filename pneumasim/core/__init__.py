"""Core simulation modules for PneumaSim.

This package contains the pressure network model and its update step:
- network: Component variants, tubes and the network container
- topology: Terminal-to-tube resolution
- pressure: Residual mass to pressure conversion
- engine: One discrete relaxation step over a network
- trace: Multi-step runs recorded as numpy arrays
- config: Simulation constants and JSON network descriptions
"""
