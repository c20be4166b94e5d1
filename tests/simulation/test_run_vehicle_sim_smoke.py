import json
import subprocess
import sys
from pathlib import Path

import pytest

from scripts.run_vehicle_sim import main, parse_coord
from shared.errors import InvalidInput

ROOT = Path(__file__).resolve().parents[2]


def _run(tmp_path, *extra):
    csv_out = tmp_path / "run.csv"
    json_out = tmp_path / "summary.json"
    cmd = [
        sys.executable,
        "-m",
        "scripts.run_vehicle_sim",
        "--csv-out",
        str(csv_out),
        "--json-out",
        str(json_out),
        *extra,
    ]
    proc = subprocess.run(cmd, cwd=ROOT, capture_output=True, text=True)
    return proc, csv_out, json_out


def test_clear_route_cli(tmp_path):
    proc, csv_out, json_out = _run(
        tmp_path, "--start", "0,0", "--end", "3,0", "--no-obstacles", "--initial-speed", "10"
    )
    assert proc.returncode == 0, proc.stderr
    data = json.loads(json_out.read_text())
    assert data["path"] == [[0, 0], [1, 0], [2, 0], [3, 0]]
    assert data["speeds"] == [15.0, 20.0, 25.0]
    assert data["outcome"] == "completed"
    lines = [ln for ln in proc.stdout.splitlines() if ln.startswith("[sim] step ")]
    assert lines == [
        "[sim] step 1: pos=(1,0) speed=15.00 status=cruising",
        "[sim] step 2: pos=(2,0) speed=20.00 status=cruising",
        "[sim] step 3: pos=(3,0) speed=25.00 status=cruising",
    ]
    assert "[sim] Reached destination (3,0); vehicle stopped normally" in proc.stdout
    header = csv_out.read_text().splitlines()[0].split(",")
    for col in ["step", "x", "y", "speed", "status", "distance", "event"]:
        assert col in header, f"missing column: {col}"


def test_random_run_exits_zero_even_on_emergency_stop(tmp_path):
    proc, _, json_out = _run(tmp_path, "--start", "0,0", "--end", "9,9", "--seed", "5")
    assert proc.returncode == 0, proc.stderr
    data = json.loads(json_out.read_text())
    assert data["outcome"] in ("completed", "emergency_stop")
    assert data["path"][0] == [0, 0] and data["path"][-1] == [9, 9]


def test_bad_coordinates_fail(tmp_path):
    proc, _, json_out = _run(tmp_path, "--start", "0,-1", "--end", "3,0")
    assert proc.returncode == 2
    assert "[sim] error" in proc.stderr
    assert not json_out.exists()


def test_main_with_custom_config(tmp_path):
    cfg = tmp_path / "sim.yaml"
    cfg.write_text("initial_speed: 2.0\ncontroller:\n  accel_step: 1.0\nsensors:\n  - kind: uniform\n")
    out = tmp_path / "s.json"
    rc = main(
        [
            "--start",
            "0,0",
            "--end",
            "0,2",
            "--no-obstacles",
            "--config",
            str(cfg),
            "--csv-out",
            str(tmp_path / "r.csv"),
            "--json-out",
            str(out),
        ]
    )
    assert rc == 0
    assert json.loads(out.read_text())["speeds"] == [3.0, 4.0]


def test_main_rejects_empty_sensor_list(tmp_path, capsys):
    cfg = tmp_path / "sim.yaml"
    cfg.write_text("sensors: []\n")
    rc = main(["--end", "2,0", "--config", str(cfg), "--csv-out", str(tmp_path / "r.csv")])
    assert rc == 2
    assert "no distance sensor" in capsys.readouterr().err


def test_cli_reports_sensor_failures(tmp_path):
    cfg = tmp_path / "sim.yaml"
    # every obstacle on a 10x10 grid is within slow_distance, so each step polls
    cfg.write_text(
        "obstacles:\n  count_min: 5\n  count_max: 15\n"
        "controller:\n  stop_distance: 0.0\n  slow_distance: 100.0\n"
        "sensors:\n  - kind: flaky\n    label: lidar\n    failure_rate: 1.0\n"
    )
    proc, _, json_out = _run(
        tmp_path, "--start", "0,0", "--end", "9,9", "--seed", "5", "--config", str(cfg)
    )
    assert proc.returncode == 0, proc.stderr
    lines = [ln for ln in proc.stdout.splitlines() if ln.startswith("[sim] step ")]
    assert lines
    for ln in lines:
        assert "status=slowed" in ln
        assert ln.endswith(" | SLOW DOWN | sensor failure: lidar: reading unavailable")
    data = json.loads(json_out.read_text())
    assert data["controller"]["slow_distance"] == 100.0


def test_cli_rejects_nan_initial_speed(tmp_path):
    proc, _, json_out = _run(tmp_path, "--end", "3,0", "--no-obstacles", "--initial-speed", "nan")
    assert proc.returncode == 2
    assert "finite" in proc.stderr
    assert not json_out.exists()


@pytest.mark.parametrize("text", ["1", "a,b", "1,2,3", "-1,0"])
def test_parse_coord_rejects(text):
    with pytest.raises(InvalidInput):
        parse_coord(text)


def test_parse_coord_ok():
    assert parse_coord(" 3, 4") == (3, 4)
