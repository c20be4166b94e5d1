from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from shared.errors import InvalidInput, SensorFailure
from shared.types import Coordinate, SensorReading, StopReason, VehicleState, VehicleStatus
from sim.sensors import SensorPanel


@dataclass
class ReactiveConfig:
    stop_distance: float = 3.0  # d < stop -> emergency stop
    slow_distance: float = 6.0  # stop <= d < slow -> slow down
    slow_factor: float = 0.5  # speed multiplier when slowing
    accel_step: float = 5.0  # speed added when the way is clear

    def validate(self) -> None:
        for name in ("stop_distance", "slow_distance", "slow_factor", "accel_step"):
            if not math.isfinite(getattr(self, name)):
                raise InvalidInput(f"{name} must be finite, got {getattr(self, name)}")
        if self.stop_distance < 0.0 or self.slow_distance < self.stop_distance:
            raise InvalidInput(
                f"need 0 <= stop_distance <= slow_distance, got "
                f"{self.stop_distance}/{self.slow_distance}"
            )
        if not 0.0 <= self.slow_factor <= 1.0:
            raise InvalidInput(f"slow_factor must be in [0, 1], got {self.slow_factor}")
        if self.accel_step < 0.0:
            raise InvalidInput(f"accel_step must be >= 0, got {self.accel_step}")


@dataclass
class StepResult:
    index: int
    position: Coordinate
    speed: float
    status: VehicleStatus
    nearest: Optional[Coordinate] = None
    distance: Optional[float] = None
    readings: List[SensorReading] = field(default_factory=list)
    sensor_failures: List[SensorFailure] = field(default_factory=list)

    @property
    def emergency_stop(self) -> bool:
        return self.status is VehicleStatus.STOPPED

    @property
    def event(self) -> str:
        if self.status is VehicleStatus.STOPPED:
            return "emergency_stop"
        if self.status is VehicleStatus.SLOWED:
            return "slow_down"
        return "accelerate"


def nearest_obstacle(
    position: Coordinate, obstacles: Iterable[Coordinate]
) -> Optional[Tuple[Coordinate, float]]:
    """Closest obstacle by Euclidean distance, or None for an empty field.

    Which of several equally close obstacles is returned is unspecified.
    """
    px, py = position
    best: Optional[Tuple[Coordinate, float]] = None
    for o in obstacles:
        d = math.hypot(o[0] - px, o[1] - py)
        if best is None or d < best[1]:
            best = (o, d)
    return best


class ReactiveController:
    """Distance-threshold speed controller, one decision per waypoint.

    The decision uses only the ground-truth obstacle distance. Sensors are
    polled for diagnostics on slow-down and stop, and their readings never
    feed back into the decision.
    """

    def __init__(self, cfg: ReactiveConfig | None = None) -> None:
        self.cfg = cfg or ReactiveConfig()
        self.cfg.validate()
        self.steps = 0

    def decide(self, speed: float, distance: Optional[float]) -> Tuple[float, VehicleStatus]:
        if distance is not None and distance < self.cfg.stop_distance:
            return 0.0, VehicleStatus.STOPPED
        if distance is not None and distance < self.cfg.slow_distance:
            return speed * self.cfg.slow_factor, VehicleStatus.SLOWED
        return speed + self.cfg.accel_step, VehicleStatus.CRUISING

    def step(
        self,
        vehicle: VehicleState,
        obstacles: Iterable[Coordinate],
        panel: SensorPanel,
        next_waypoint: Coordinate,
    ) -> StepResult:
        if vehicle.stopped:
            raise InvalidInput("vehicle is stopped; no further steps allowed")

        vehicle.position = next_waypoint
        hit = nearest_obstacle(vehicle.position, obstacles)
        nearest, distance = hit if hit is not None else (None, None)

        vehicle.speed, vehicle.status = self.decide(vehicle.speed, distance)
        if vehicle.status is VehicleStatus.STOPPED:
            vehicle.stop_reason = StopReason.EMERGENCY

        res = StepResult(
            index=self.steps,
            position=vehicle.position,
            speed=vehicle.speed,
            status=vehicle.status,
            nearest=nearest,
            distance=distance,
        )
        if vehicle.status is not VehicleStatus.CRUISING:
            res.readings, res.sensor_failures = panel.poll()
        self.steps += 1
        return res
