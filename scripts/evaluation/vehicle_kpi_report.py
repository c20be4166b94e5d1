from __future__ import annotations

import argparse
import json
import os
from pathlib import Path

import numpy as np
import pandas as pd


def compute_kpis_df(
    df: pd.DataFrame, stop_distance: float = 3.0, slow_distance: float = 6.0
) -> dict:
    required = ["step", "x", "y", "speed", "status", "distance", "event"]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"missing columns: {missing}")

    speed = df["speed"].astype(float).to_numpy()
    dist = pd.to_numeric(df["distance"], errors="coerce").to_numpy()
    dist = dist[~np.isnan(dist)]
    events = df["event"].astype(str).to_numpy()
    stop_rows = np.flatnonzero(events == "emergency_stop")
    emergency = len(stop_rows) > 0

    k = {
        "steps": int(len(df)),
        # the waypoint where an emergency stop fires does not count as reached
        "waypoints_reached": int(stop_rows[0]) if emergency else int(len(df)),
        "max_speed": float(speed.max()) if len(speed) else 0.0,
        "mean_speed": float(speed.mean()) if len(speed) else 0.0,
        "slow_downs": int((events == "slow_down").sum()),
        "min_obstacle_distance": float(dist.min()) if len(dist) else None,
        "outcome": "emergency_stop" if emergency else "completed",
        "stop_distance": float(stop_distance),
        "slow_distance": float(slow_distance),
    }
    if len(df):
        k["final_x"] = int(df["x"].iloc[-1])
        k["final_y"] = int(df["y"].iloc[-1])

    # traffic-light rating on closest approach, against the run's thresholds
    m = k["min_obstacle_distance"]
    if m is None or m >= slow_distance:
        k["rating"] = "green"
    else:
        k["rating"] = "yellow" if m >= stop_distance else "red"
    return k


def load_thresholds(summary_path: str | None) -> dict:
    """Controller thresholds recorded by run_vehicle_sim, if the summary has them."""
    if not summary_path or not os.path.exists(summary_path):
        return {}
    with open(summary_path) as f:
        data = json.load(f)
    return data.get("controller") or {}


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Compute KPIs from a vehicle run CSV.")
    ap.add_argument(
        "--csv", default="artifacts/vehicle_run.csv", help="Input CSV from run_vehicle_sim"
    )
    ap.add_argument(
        "--summary",
        default="artifacts/vehicle_summary.json",
        help="Run summary JSON; supplies the controller thresholds when present",
    )
    ap.add_argument("--stop-distance", type=float, default=None, help="overrides the summary")
    ap.add_argument("--slow-distance", type=float, default=None, help="overrides the summary")
    ap.add_argument(
        "--json-out", default="artifacts/vehicle_kpis.json", help="Where to write KPI JSON"
    )
    args = ap.parse_args(argv)

    th = load_thresholds(args.summary)
    stop_d = args.stop_distance if args.stop_distance is not None else th.get("stop_distance", 3.0)
    slow_d = args.slow_distance if args.slow_distance is not None else th.get("slow_distance", 6.0)

    df = pd.read_csv(args.csv)
    k = compute_kpis_df(df, stop_distance=float(stop_d), slow_distance=float(slow_d))

    Path(args.json_out).parent.mkdir(parents=True, exist_ok=True)
    with open(args.json_out, "w") as f:
        json.dump(k, f, indent=2)

    print("Vehicle run KPIs")
    print(f"- steps={k['steps']}  waypoints_reached={k['waypoints_reached']}")
    print(f"- outcome={k['outcome']}  slow_downs={k['slow_downs']}")
    print(f"- max_speed={k['max_speed']:.2f}  mean_speed={k['mean_speed']:.2f}")
    print(f"- min_obstacle_distance={k['min_obstacle_distance']}  rating={k['rating']}")
    print(f"Wrote JSON: {args.json_out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
