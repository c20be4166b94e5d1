from __future__ import annotations


class SimError(Exception):
    """Base class for errors that end a simulation run with a failure status."""


class InvalidInput(SimError, ValueError):
    """Negative, malformed or inconsistent input (coordinates, config, grid)."""


class NoPathFound(SimError, ValueError):
    """Start/end outside the grid, or no connected route between them."""


class EmptySensorPanel(SimError, RuntimeError):
    """Diagnostics are required but no sensor was registered."""


class SensorFailure(SimError, RuntimeError):
    """A distance source could not produce a reading for this poll."""

    def __init__(self, label: str, msg: str = "reading unavailable") -> None:
        super().__init__(f"{label}: {msg}")
        self.label = label
