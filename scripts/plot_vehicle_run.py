#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import os
from typing import Iterable

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402


def load_df(path: str) -> pd.DataFrame:
    df = pd.read_csv(path)
    required: Iterable[str] = ("step", "x", "y", "speed", "status", "event")
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise SystemExit(f"CSV missing required columns: {missing}")
    return df


def plot_grid(summary: dict, df: pd.DataFrame) -> None:
    plt.figure()
    path = summary.get("path") or []
    if path:
        xs, ys = zip(*path)
        plt.plot(xs, ys, "-o", ms=3, label="planned path")
    obs = summary.get("obstacles") or []
    if obs:
        ox, oy = zip(*obs)
        plt.scatter(ox, oy, marker="s", c="k", label="obstacles")
    if len(df):
        plt.plot(df["x"], df["y"], lw=3, alpha=0.5, label="driven")
        stops = df[df["event"] == "emergency_stop"]
        if len(stops):
            plt.scatter(stops["x"], stops["y"], marker="x", s=80, c="r", label="emergency stop")
    plt.xlabel("x [cell]")
    plt.ylabel("y [cell]")
    plt.title(f"Route ({summary.get('outcome', '?')})")
    plt.legend()
    plt.axis("equal")


def plot_speed(df: pd.DataFrame) -> None:
    plt.figure()
    plt.step(df["step"], df["speed"], where="post", label="speed")
    slow = df[df["event"] == "slow_down"]
    if len(slow):
        plt.scatter(slow["step"], slow["speed"], c="orange", label="slow down")
    plt.xlabel("step")
    plt.ylabel("speed")
    plt.title("Speed per waypoint")
    plt.legend()


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Plot a vehicle run (route + speed).")
    ap.add_argument("--csv", default="artifacts/vehicle_run.csv")
    ap.add_argument("--summary", default="artifacts/vehicle_summary.json")
    ap.add_argument("--out", default="artifacts/vehicle_plot.png")
    args = ap.parse_args(argv)

    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
    df = load_df(args.csv)
    with open(args.summary) as f:
        summary = json.load(f)

    plot_grid(summary, df)
    plt.savefig(args.out, dpi=150, bbox_inches="tight")
    speed_out = os.path.splitext(args.out)[0] + "_speed.png"
    plot_speed(df)
    plt.savefig(speed_out, dpi=150, bbox_inches="tight")

    print(f"Wrote plots to: {args.out} and {speed_out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
