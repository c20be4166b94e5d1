#!/usr/bin/env python3
from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from control.reactive import ReactiveConfig, ReactiveController, StepResult
from planners.dijkstra import plan_on_grid
from shared.errors import InvalidInput
from shared.types import (
    Coordinate,
    ObstacleField,
    Path,
    StopReason,
    VehicleState,
    VehicleStatus,
)
from sim.obstacles import generate_obstacles
from sim.sensors import SensorPanel, build_panel
from src.domain.grid import GridModel, grid_for_endpoints

DEFAULT_SENSORS = [{"kind": "uniform", "label": "ultrasonic", "lo": 0.0, "hi": 10.0}]


@dataclass
class SimConfig:
    initial_speed: float = 10.0
    obstacle_count: Tuple[int, int] = (5, 15)
    require_sensors: bool = True
    controller: ReactiveConfig = field(default_factory=ReactiveConfig)


@dataclass
class SimResult:
    path: Path
    obstacles: ObstacleField
    steps: List[StepResult]
    final_state: VehicleState

    @property
    def emergency_stop(self) -> bool:
        return self.final_state.stop_reason is StopReason.EMERGENCY

    @property
    def outcome(self) -> str:
        return "emergency_stop" if self.emergency_stop else "completed"

    @property
    def stopped_at(self) -> Coordinate:
        return self.final_state.position

    def speeds(self) -> List[float]:
        return [s.speed for s in self.steps]


def run_simulation(
    grid: GridModel,
    start: Coordinate,
    end: Coordinate,
    obstacles: Iterable[Coordinate],
    panel: SensorPanel,
    cfg: SimConfig | None = None,
) -> SimResult:
    """Plan start->end, then step the reactive controller along the path.

    Ends at the first emergency stop, or with a normal stop on the final
    waypoint. Neither is an error; both come back in the result.
    """
    cfg = cfg or SimConfig()
    if not math.isfinite(cfg.initial_speed) or cfg.initial_speed < 0.0:
        raise InvalidInput(f"initial speed must be finite and >= 0, got {cfg.initial_speed}")
    hazards = frozenset(obstacles)
    if start in hazards or end in hazards:
        raise InvalidInput("obstacle field must not contain start or end")
    if cfg.require_sensors:
        panel.require_nonempty()

    path: Path = tuple(plan_on_grid(grid, start, end))
    ctrl = ReactiveController(cfg.controller)
    vehicle = VehicleState(position=start, speed=float(cfg.initial_speed))
    steps: List[StepResult] = []

    for wp in path[1:]:
        res = ctrl.step(vehicle, hazards, panel, wp)
        steps.append(res)
        if res.emergency_stop:
            break

    if not vehicle.stopped:
        # normal stop on the final waypoint
        vehicle.speed = 0.0
        vehicle.status = VehicleStatus.STOPPED
        vehicle.stop_reason = StopReason.COMPLETED

    return SimResult(path=path, obstacles=hazards, steps=steps, final_state=vehicle)


def simulate(
    start: Coordinate,
    end: Coordinate,
    seed: Optional[int] = None,
    cfg: SimConfig | None = None,
    sensors: Optional[List[dict]] = None,
    with_obstacles: bool = True,
) -> SimResult:
    """Full pipeline from endpoints: grid, seeded obstacles and sensors, run.

    One ``random.Random(seed)`` feeds both obstacle placement and sensor
    readings, so a fixed seed reproduces the whole run.
    """
    cfg = cfg or SimConfig()
    rng = random.Random(seed)
    grid = grid_for_endpoints(start, end)
    if with_obstacles:
        obstacles = generate_obstacles(
            grid.width, grid.height, start, end, rng, count_range=cfg.obstacle_count
        )
    else:
        obstacles = frozenset()
    panel = build_panel(DEFAULT_SENSORS if sensors is None else sensors, rng)
    return run_simulation(grid, start, end, obstacles, panel, cfg)


def format_step(res: StepResult) -> str:
    x, y = res.position
    line = f"step {res.index + 1}: pos=({x},{y}) speed={res.speed:.2f} status={res.status.value}"
    if res.distance is not None:
        line += f" nearest={res.nearest} d={res.distance:.2f}"
    if res.status is VehicleStatus.SLOWED:
        line += " | SLOW DOWN"
    elif res.status is VehicleStatus.STOPPED:
        line += " | EMERGENCY STOP"
    if res.readings:
        line += " | sensors: " + ", ".join(
            f"{r.source_label}={r.distance:.2f}" for r in res.readings
        )
    for f in res.sensor_failures:
        line += f" | sensor failure: {f}"
    return line


def format_final(result: SimResult) -> str:
    x, y = result.stopped_at
    if result.emergency_stop:
        return f"EMERGENCY STOP at ({x},{y}) after {len(result.steps)} step(s)"
    return f"Reached destination ({x},{y}); vehicle stopped normally"
