import random

import pytest

from shared.errors import EmptySensorPanel, InvalidInput, NoPathFound
from shared.types import StopReason, VehicleStatus
from sim.sensors import FlakyRangeSensor, SensorPanel, UniformRangeSensor
from sim.vehicle_sim import SimConfig, format_final, format_step, run_simulation, simulate
from src.domain.grid import GridModel


def _panel(seed=0):
    return SensorPanel([UniformRangeSensor("ultrasonic", random.Random(seed))])


def test_clear_run_accelerates_then_stops_normally():
    grid = GridModel.uniform(4, 1)
    res = run_simulation(grid, (0, 0), (3, 0), frozenset(), _panel(), SimConfig(initial_speed=10.0))
    assert list(res.path) == [(0, 0), (1, 0), (2, 0), (3, 0)]
    assert res.speeds() == [15.0, 20.0, 25.0]
    assert all(s.status is VehicleStatus.CRUISING for s in res.steps)
    assert res.final_state.status is VehicleStatus.STOPPED
    assert res.final_state.stop_reason is StopReason.COMPLETED
    assert res.final_state.speed == 0.0
    assert not res.emergency_stop
    assert res.outcome == "completed"
    assert res.stopped_at == (3, 0)


def test_close_obstacle_ends_run_early():
    grid = GridModel.uniform(4, 1)
    # (3, 1) is sqrt(5) ~ 2.24 from the second waypoint (1, 0)
    res = run_simulation(grid, (0, 0), (3, 0), {(3, 1)}, _panel(), SimConfig(initial_speed=10.0))
    assert len(res.steps) == 1
    assert res.steps[0].emergency_stop
    assert res.final_state.speed == 0.0
    assert res.final_state.stop_reason is StopReason.EMERGENCY
    assert res.stopped_at == (1, 0)
    assert res.outcome == "emergency_stop"
    assert len(res.steps[0].readings) == 1
    line = format_step(res.steps[0])
    assert line.startswith("step 1: pos=(1,0) speed=0.00 status=stopped")
    assert "EMERGENCY STOP" in line
    r = res.steps[0].readings[0]
    assert line.endswith(f" | sensors: ultrasonic={r.distance:.2f}")
    assert "EMERGENCY STOP" in format_final(res)


def test_slow_down_then_recover():
    grid = GridModel.uniform(4, 1)
    # behind the start: d = 5, 6, 7 along the route
    res = run_simulation(grid, (0, 0), (3, 0), {(-4, 0)}, _panel(), SimConfig(initial_speed=10.0))
    assert res.speeds() == [5.0, 10.0, 15.0]
    assert [s.status for s in res.steps] == [
        VehicleStatus.SLOWED,
        VehicleStatus.CRUISING,
        VehicleStatus.CRUISING,
    ]
    assert res.steps[0].readings and not res.steps[1].readings
    assert "SLOW DOWN" in format_step(res.steps[0])
    assert res.final_state.stop_reason is StopReason.COMPLETED


def test_seeded_pipeline_is_deterministic():
    a = simulate((0, 0), (9, 9), seed=42)
    b = simulate((0, 0), (9, 9), seed=42)
    assert a.obstacles == b.obstacles
    assert a.path == b.path
    assert a.speeds() == b.speeds()
    assert [s.readings for s in a.steps] == [s.readings for s in b.steps]
    assert (0, 0) not in a.obstacles and (9, 9) not in a.obstacles


def test_simulate_without_obstacles_matches_manual_run():
    res = simulate((0, 0), (3, 0), seed=1, with_obstacles=False)
    assert res.speeds() == [15.0, 20.0, 25.0]
    assert res.outcome == "completed"


def test_empty_sensor_panel_is_an_error():
    with pytest.raises(EmptySensorPanel):
        simulate((0, 0), (3, 0), seed=1, sensors=[])
    # allowed when diagnostics are optional
    res = simulate((0, 0), (3, 0), seed=1, sensors=[], cfg=SimConfig(require_sensors=False))
    assert res.outcome == "completed"


def test_input_errors():
    grid = GridModel.uniform(4, 1)
    with pytest.raises(NoPathFound):
        run_simulation(grid, (0, 0), (5, 0), frozenset(), _panel())
    with pytest.raises(InvalidInput):
        run_simulation(grid, (0, 0), (3, 0), {(3, 0)}, _panel())
    with pytest.raises(InvalidInput):
        run_simulation(grid, (0, 0), (3, 0), frozenset(), _panel(), SimConfig(initial_speed=-1.0))
    with pytest.raises(InvalidInput):
        run_simulation(
            grid, (0, 0), (3, 0), frozenset(), _panel(), SimConfig(initial_speed=float("nan"))
        )


def test_failed_sensor_is_reported_not_raised():
    grid = GridModel.uniform(4, 1)
    panel = SensorPanel([FlakyRangeSensor("lidar", random.Random(0), failure_rate=1.0)])
    res = run_simulation(grid, (0, 0), (3, 0), {(3, 1)}, panel, SimConfig(initial_speed=10.0))
    step = res.steps[0]
    assert step.emergency_stop
    assert step.readings == []
    assert [f.label for f in step.sensor_failures] == ["lidar"]
    line = format_step(step)
    assert "| sensors:" not in line
    assert line.endswith(" | EMERGENCY STOP | sensor failure: lidar: reading unavailable")
