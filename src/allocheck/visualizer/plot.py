# src/allocheck/visualizer/plot.py
"""
Phase load chart.

Responsibilities:
- Aggregate per-phase capacity vs. demand with the same logic as the
  phase saturation check.
- Enforce headless backend (Agg) and figure export parameters (DPI, size).
- Save PNG to the requested out_path and return that Path.
"""

from __future__ import annotations

# --- Standard library ---
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

# --- Third-party (no pyplot here!) ---
import matplotlib
import pandas as pd
import seaborn as sns

# --- Project imports ---
from allocheck.errors import VisualizationError
from allocheck.schemas.models import Config
from allocheck.validator.phases import aggregate_phase_load

# (1) Enforce headless backend for environments without display
matplotlib.use("Agg")


def phase_load_frame(
    workers: Sequence[Mapping[str, Any]], tasks: Sequence[Mapping[str, Any]]
) -> pd.DataFrame:
    """
    @brief
    Per-phase capacity/demand table in long format.

    @returns
        DataFrame with columns phase, kind ("capacity" | "demand"), slots.
    """
    records: list[dict[str, Any]] = []
    for phase, load in aggregate_phase_load(workers, tasks).items():
        records.append({"phase": phase, "kind": "capacity", "slots": load.total})
        records.append({"phase": phase, "kind": "demand", "slots": load.used})
    return pd.DataFrame.from_records(records, columns=["phase", "kind", "slots"])


def _extract_visual_params(cfg: Config | Any) -> tuple[float, float, int]:
    """
    @brief
    Reads cfg.visual.{width, height, dpi}, falling back to defaults.
    """
    width, height, dpi = 12.0, 6.0, 120
    visual = getattr(cfg, "visual", None)
    if visual is not None:
        width = float(getattr(visual, "width", width))
        height = float(getattr(visual, "height", height))
        dpi = int(getattr(visual, "dpi", dpi))
    return width, height, dpi


def plot_phase_load(
    workers: Sequence[Mapping[str, Any]],
    tasks: Sequence[Mapping[str, Any]],
    cfg: Config | Any,
    out_path: Path,
) -> Path:
    """
    @brief
    Render per-phase capacity vs. demand bars and save them to PNG.

    @details
    Oversaturated phases (demand > capacity) get a red marker above their
    bars. With no phases the chart is still written, with an explanatory
    title, so downstream artifact lists stay stable.

    @returns
        Absolute path to the saved PNG file.

    @raises
        VisualizationError when the output directory or file cannot be written.
    """
    from matplotlib import pyplot as plt

    # (1) Prepare data
    df = phase_load_frame(workers, tasks)

    # (2) Prepare output directory
    out_path = Path(out_path)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise VisualizationError(
            f"Cannot create output directory: {out_path.parent} ({exc})",
            source="visualizer.plot.plot_phase_load",
            suggested_action="Check filesystem permissions or choose another output path",
        ) from exc

    width, height, dpi = _extract_visual_params(cfg)

    # (3) Draw grouped bars
    fig, ax = plt.subplots(nrows=1, ncols=1)
    fig.set_size_inches(w=width, h=height)
    try:
        if df.empty:
            ax.title.set_text("No phase availability declared")
        else:
            palette = sns.color_palette("deep", n_colors=2)
            sns.barplot(data=df, x="phase", y="slots", hue="kind", palette=palette, ax=ax)
            pivot = df.pivot(index="phase", columns="kind", values="slots")
            over = pivot[pivot["demand"] > pivot["capacity"]]
            for pos, phase in enumerate(pivot.index):
                if phase in over.index:
                    top = float(max(over.loc[phase, "demand"], over.loc[phase, "capacity"]))
                    ax.text(pos, top, "!", color="red", ha="center", va="bottom", fontsize=14)
            ax.title.set_text(
                f"Phase load: {len(over)} of {len(pivot)} phase(s) oversaturated"
            )
        ax.set_xlabel("phase")
        ax.set_ylabel("slots")

        # (4) Export rendered figure to PNG
        fig.savefig(out_path, dpi=dpi, bbox_inches="tight")
    except OSError as exc:
        raise VisualizationError(
            f"Failed to save figure: {out_path} ({exc})",
            source="visualizer.plot.plot_phase_load",
            suggested_action="Check disk space and file permissions",
        ) from exc
    finally:
        plt.close(fig)

    return out_path.resolve()
