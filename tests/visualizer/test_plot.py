# tests/visualizer/test_plot.py
from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from allocheck.errors import VisualizationError
from allocheck.schemas.models import Config
from allocheck.visualizer.plot import _extract_visual_params, phase_load_frame, plot_phase_load

WORKERS = [
    {"AvailableSlots": "1,2", "MaxLoadPerPhase": "2"},
    {"AvailableSlots": "[2]", "MaxLoadPerPhase": "1"},
]
TASKS = [
    {"PreferredPhases": "1", "Duration": "5"},
    {"PreferredPhases": "[2]", "Duration": "1"},
]


def test_phase_load_frame_long_format():
    """
    @brief
    One capacity and one demand record per phase, phases ascending.
    """
    # --- Act ---
    df = phase_load_frame(WORKERS, TASKS)

    # --- Assert ---
    assert list(df.columns) == ["phase", "kind", "slots"]
    assert df["phase"].tolist() == [1, 1, 2, 2]
    assert df["kind"].tolist() == ["capacity", "demand", "capacity", "demand"]
    assert df["slots"].tolist() == [2.0, 5.0, 3.0, 1.0]


def test_plot_phase_load_writes_png(tmp_path: Path):
    # --- Act ---
    out = plot_phase_load(WORKERS, TASKS, Config(), tmp_path / "plots" / "phase_load.png")

    # --- Assert ---
    assert out.exists()
    assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_plot_phase_load_without_phases_still_writes(tmp_path: Path):
    out = plot_phase_load([], [], Config(), tmp_path / "empty.png")
    assert out.exists() and out.stat().st_size > 0


def test_plot_phase_load_unwritable_directory(tmp_path: Path):
    # --- Arrange ---
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")

    # --- Act / Assert ---
    with pytest.raises(VisualizationError, match="Cannot create output directory"):
        plot_phase_load(WORKERS, TASKS, Config(), blocker / "chart.png")


def test_extract_visual_params_reads_config_and_falls_back():
    cfg = SimpleNamespace(visual=SimpleNamespace(width=5, height=4, dpi=72))
    assert _extract_visual_params(cfg) == (5.0, 4.0, 72)
    assert _extract_visual_params(object()) == (12.0, 6.0, 120)
