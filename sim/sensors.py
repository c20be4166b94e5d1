from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Protocol, Tuple, runtime_checkable

from shared.errors import EmptySensorPanel, InvalidInput, SensorFailure
from shared.types import SensorReading


@runtime_checkable
class DistanceSensor(Protocol):
    """Anything that can produce one distance reading on demand."""

    label: str

    def reading(self) -> SensorReading: ...


def _check_range(lo: float, hi: float) -> None:
    if not (math.isfinite(lo) and math.isfinite(hi)) or lo < 0.0 or hi < lo:
        raise InvalidInput(f"sensor range must satisfy 0 <= lo <= hi, got [{lo}, {hi}]")


class UniformRangeSensor:
    """Bounded-uniform random distance source (stand-in for an ultrasonic/lidar)."""

    def __init__(self, label: str, rng: random.Random, lo: float = 0.0, hi: float = 10.0):
        _check_range(lo, hi)
        self.label = label
        self.rng = rng
        self.lo = float(lo)
        self.hi = float(hi)

    def reading(self) -> SensorReading:
        return SensorReading(self.label, self.rng.uniform(self.lo, self.hi))


class FlakyRangeSensor:
    """Uniform source that drops a reading with probability ``failure_rate``."""

    def __init__(
        self,
        label: str,
        rng: random.Random,
        failure_rate: float = 0.1,
        lo: float = 0.0,
        hi: float = 10.0,
    ):
        _check_range(lo, hi)
        if not 0.0 <= failure_rate <= 1.0:
            raise InvalidInput(f"failure_rate must be in [0, 1], got {failure_rate}")
        self.label = label
        self.rng = rng
        self.failure_rate = float(failure_rate)
        self.lo = float(lo)
        self.hi = float(hi)

    def reading(self) -> SensorReading:
        if self.rng.random() < self.failure_rate:
            raise SensorFailure(self.label)
        return SensorReading(self.label, self.rng.uniform(self.lo, self.hi))


@dataclass
class SensorPanel:
    sensors: List[DistanceSensor] = field(default_factory=list)

    def register(self, sensor: DistanceSensor) -> None:
        self.sensors.append(sensor)

    def __len__(self) -> int:
        return len(self.sensors)

    def __iter__(self) -> Iterator[DistanceSensor]:
        return iter(self.sensors)

    def require_nonempty(self) -> None:
        if not self.sensors:
            raise EmptySensorPanel("no distance sensor registered")

    def poll(self) -> Tuple[List[SensorReading], List[SensorFailure]]:
        """Read every sensor once, in registration order.

        A failing sensor is reported alongside the readings instead of
        aborting the poll.
        """
        readings: List[SensorReading] = []
        failures: List[SensorFailure] = []
        for s in self.sensors:
            try:
                readings.append(s.reading())
            except SensorFailure as e:
                failures.append(e)
        return readings, failures


def build_panel(entries: Iterable[dict], rng: random.Random) -> SensorPanel:
    """Build a panel from config entries such as ``{"kind": "uniform", "label": "front"}``."""
    panel = SensorPanel()
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise InvalidInput(f"sensor entry {i} must be a mapping, got {entry!r}")
        kind = str(entry.get("kind", "uniform"))
        label = str(entry.get("label", f"sensor{i}"))
        try:
            lo = float(entry.get("lo", 0.0))
            hi = float(entry.get("hi", 10.0))
            rate = float(entry.get("failure_rate", 0.1))
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"bad value in sensor entry {i}: {e}") from e
        if kind == "uniform":
            panel.register(UniformRangeSensor(label, rng, lo=lo, hi=hi))
        elif kind == "flaky":
            panel.register(FlakyRangeSensor(label, rng, failure_rate=rate, lo=lo, hi=hi))
        else:
            raise InvalidInput(f"unknown sensor kind {kind!r}")
    return panel
