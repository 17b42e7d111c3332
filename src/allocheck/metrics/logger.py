# src/allocheck/metrics/logger.py
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from allocheck.errors import DataError

METRICS_FILENAME = "metrics.json"


def write_metrics(
    metrics: dict[str, Any], out_dir: Path, filename: str = METRICS_FILENAME
) -> Path:
    """
    @brief
    Persists one run's data-quality metrics as pretty-printed JSON.

    @details
    Keys are sorted so two runs over the same data diff cleanly. pandas and
    numpy scalars that slip into the dictionary (counts from groupby, etc.)
    are written as plain numbers. The file is swapped in atomically; a
    previous metrics.json stays intact when writing fails.

    @returns
        Path to the written file.

    @raises
        DataError
            If `metrics` is not a dict, holds values JSON cannot express,
            or the file cannot be written.
    """
    if not isinstance(metrics, dict):
        raise DataError(
            f"metrics must be a dict, got {type(metrics).__name__}",
            source="metrics.write_metrics",
            suggested_action="Pass the dictionary returned by collect_metrics().",
        )

    try:
        payload = json.dumps(
            metrics, ensure_ascii=False, sort_keys=True, indent=2, default=_scalar
        )
    except (TypeError, ValueError) as e:
        raise DataError(
            f"metrics not JSON-serializable: {e}",
            source="metrics.write_metrics",
            suggested_action="Keep metric values to numbers, strings, booleans, lists and dicts.",
        ) from e

    target = Path(out_dir) / filename
    _atomic_write_text(target, payload + "\n")
    return target


def _scalar(value: Any) -> Any:
    # numpy/pandas scalars expose .item() returning the matching Python value
    item = getattr(value, "item", None)
    if callable(item):
        result = item()
        if isinstance(result, (bool, int, float, str)) or result is None:
            return result
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _atomic_write_text(path: Path, text: str, encoding: str = "utf-8") -> None:
    """
    @brief
    Writes `text` to a sibling temp file, then renames it over `path`.

    @raises
        DataError
            When the directory cannot be created or the write/rename fails;
            the temp file is removed in that case.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    except OSError as e:
        raise DataError(
            f"atomic write failed for {path}: {e}",
            source="metrics._atomic_write_text",
            suggested_action="Check that the output directory is writable.",
        ) from e

    try:
        with open(fd, "w", encoding=encoding, newline="") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except OSError as e:
        Path(tmp_name).unlink(missing_ok=True)
        raise DataError(
            f"atomic write failed for {path}: {e}",
            source="metrics._atomic_write_text",
            suggested_action="Check output directory permissions and disk space.",
        ) from e
