from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Tuple

# Grid frame: x = column, y = row, unit cells. Distances are Euclidean in cells.

Coordinate = Tuple[int, int]
Path = Tuple[Coordinate, ...]  # immutable waypoint list, start first


class VehicleStatus(Enum):
    CRUISING = "cruising"
    SLOWED = "slowed"
    STOPPED = "stopped"


class StopReason(Enum):
    EMERGENCY = "emergency"  # obstacle inside stop distance
    COMPLETED = "completed"  # reached the final waypoint


@dataclass
class VehicleState:
    position: Coordinate
    speed: float
    status: VehicleStatus = VehicleStatus.CRUISING
    stop_reason: Optional[StopReason] = None

    @property
    def stopped(self) -> bool:
        return self.status is VehicleStatus.STOPPED


@dataclass(frozen=True)
class SensorReading:
    source_label: str
    distance: float


ObstacleField = FrozenSet[Coordinate]  # hazards; never contains start or end
