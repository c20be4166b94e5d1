#!/usr/bin/env python3
from __future__ import annotations

import argparse
import csv
import json
import os
import sys
from dataclasses import asdict
from typing import Optional

import yaml

from control.reactive import ReactiveConfig
from shared.errors import InvalidInput, SimError
from shared.types import Coordinate
from sim.vehicle_sim import (
    DEFAULT_SENSORS,
    SimConfig,
    SimResult,
    format_final,
    format_step,
    simulate,
)

CSV_COLUMNS = ["step", "x", "y", "speed", "status", "distance", "event", "readings"]


def parse_coord(text: str) -> Coordinate:
    """Parse ``"x,y"`` into a non-negative integer cell."""
    parts = [p.strip() for p in str(text).split(",")]
    if len(parts) != 2:
        raise InvalidInput(f"expected 'x,y', got {text!r}")
    try:
        x, y = int(parts[0]), int(parts[1])
    except ValueError as e:
        raise InvalidInput(f"coordinates must be integers, got {text!r}") from e
    if x < 0 or y < 0:
        raise InvalidInput(f"coordinates must be non-negative, got {text!r}")
    return x, y


def load_config(path: str | None) -> dict:
    if not path or not os.path.exists(path):
        return {}
    with open(path, "r") as f:
        try:
            cfg = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise InvalidInput(f"cannot parse config {path}: {e}") from e
    if not isinstance(cfg, dict):
        raise InvalidInput(f"config {path} must be a mapping")
    return cfg


def build_sim_config(cfg: dict, initial_speed: Optional[float]) -> SimConfig:
    ctl = cfg.get("controller") or {}
    obs = cfg.get("obstacles") or {}
    if not isinstance(ctl, dict) or not isinstance(obs, dict):
        raise InvalidInput("config 'controller' and 'obstacles' must be mappings")
    try:
        controller = ReactiveConfig(
            stop_distance=float(ctl.get("stop_distance", 3.0)),
            slow_distance=float(ctl.get("slow_distance", 6.0)),
            slow_factor=float(ctl.get("slow_factor", 0.5)),
            accel_step=float(ctl.get("accel_step", 5.0)),
        )
        speed = float(cfg.get("initial_speed", 10.0)) if initial_speed is None else initial_speed
        count = (int(obs.get("count_min", 5)), int(obs.get("count_max", 15)))
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"bad config value: {e}") from e
    return SimConfig(initial_speed=speed, obstacle_count=count, controller=controller)


def write_csv(path: str, result: SimResult) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", newline="") as f:
        w = csv.writer(f)
        w.writerow(CSV_COLUMNS)
        for s in result.steps:
            readings = ";".join(f"{r.source_label}={r.distance:.3f}" for r in s.readings)
            w.writerow(
                [
                    s.index + 1,
                    s.position[0],
                    s.position[1],
                    s.speed,
                    s.status.value,
                    "" if s.distance is None else s.distance,
                    s.event,
                    readings,
                ]
            )


def summary(
    result: SimResult,
    start: Coordinate,
    end: Coordinate,
    seed: Optional[int],
    cfg: SimConfig,
) -> dict:
    return {
        "seed": seed,
        "initial_speed": cfg.initial_speed,
        "controller": asdict(cfg.controller),
        "start": list(start),
        "end": list(end),
        "path": [list(c) for c in result.path],
        "obstacles": sorted(list(c) for c in result.obstacles),
        "speeds": result.speeds(),
        "outcome": result.outcome,
        "stopped_at": list(result.stopped_at),
        "steps": len(result.steps),
    }


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Grid vehicle demo: Dijkstra -> reactive speed control")
    ap.add_argument("--start", default="0,0", help="start cell 'x,y'")
    ap.add_argument("--end", default="9,9", help="end cell 'x,y'")
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--initial-speed", type=float, default=None)
    ap.add_argument("--config", default="configs/vehicle_sim.yaml")
    ap.add_argument("--no-obstacles", action="store_true")
    ap.add_argument("--csv-out", default="artifacts/vehicle_run.csv")
    ap.add_argument("--json-out", default="artifacts/vehicle_summary.json")
    args = ap.parse_args(argv)

    try:
        start = parse_coord(args.start)
        end = parse_coord(args.end)
        cfg = load_config(args.config)
        sim_cfg = build_sim_config(cfg, args.initial_speed)
        sensors = cfg.get("sensors")
        if sensors is None:
            sensors = DEFAULT_SENSORS
        elif not isinstance(sensors, list):
            raise InvalidInput("config 'sensors' must be a list")
        result = simulate(
            start,
            end,
            seed=args.seed,
            cfg=sim_cfg,
            sensors=sensors,
            with_obstacles=not args.no_obstacles,
        )
    except SimError as e:
        print(f"[sim] error: {e}", file=sys.stderr)
        return 2

    print(f"[sim] path ({len(result.path)} waypoints): {list(result.path)}")
    print(f"[sim] obstacles ({len(result.obstacles)}): {sorted(result.obstacles)}")
    for s in result.steps:
        print(f"[sim] {format_step(s)}")
    print(f"[sim] {format_final(result)}")

    write_csv(args.csv_out, result)
    os.makedirs(os.path.dirname(args.json_out) or ".", exist_ok=True)
    with open(args.json_out, "w") as f:
        json.dump(summary(result, start, end, args.seed, sim_cfg), f, indent=2)
    print(f"Wrote: {args.csv_out} and {args.json_out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
