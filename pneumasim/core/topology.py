"""Terminal-to-tube resolution.

A tube is attached to a terminal when either of its ends equals the
terminal's reference string.  Endpoints that name no existing component
or terminal simply never match, so they read as "not connected".
"""

from __future__ import annotations

from pneumasim.core.network import Tube, terminal_ref


def tube_indices_at_terminal(
    component_id: str, terminal: int | str, tubes: list[Tube]
) -> list[int]:
    """Indices of tubes attached to a terminal, in collection order.

    A tube with both ends on the same terminal is listed twice.
    """
    ref = terminal_ref(component_id, terminal)
    indices: list[int] = []
    for i, tube in enumerate(tubes):
        if tube.from_ == ref:
            indices.append(i)
        if tube.to == ref:
            indices.append(i)
    return indices


def tubes_at_terminal(component_id: str, terminal: int | str, tubes: list[Tube]) -> list[Tube]:
    """Tubes attached to a terminal, in collection order."""
    return [tubes[i] for i in tube_indices_at_terminal(component_id, terminal, tubes)]
