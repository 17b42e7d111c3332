# src/allocheck/dataloader/rows_loader.py
from __future__ import annotations

import csv
import logging
from pathlib import Path

from allocheck.errors import DataError

logger = logging.getLogger(__name__)


class RowsLoader:
    """
    CSV -> list of entity rows (column name -> raw string).

    Rules:
      - Format: UTF-8 CSV (BOM tolerated), delimiter=','
      - Header names and cell values are stripped of surrounding whitespace
      - No column or value validation here: rows are handed to the validator
        as-is, so that every data problem is reported in one place

    Fatal errors (raise DataError immediately):
      - wrong path type / file missing / unreadable
      - CSV without a header row
    """

    def __init__(self, entity: str = "rows") -> None:
        self.entity = entity

    def load(self, path: Path) -> list[dict[str, str]]:
        rows = self._read_csv(path)
        logger.info("RowsLoader: %d %s row(s) from %s", len(rows), self.entity, path)
        return rows

    # ------------------------------
    # Internal helpers
    # ------------------------------
    def _read_csv(self, path: Path) -> list[dict[str, str]]:
        if not isinstance(path, Path):
            raise DataError(
                message=f"Invalid path type: expected pathlib.Path, got {type(path).__name__}",
                source="RowsLoader._read_csv",
                suggested_action=f"Pass a pathlib.Path pointing to the {self.entity} CSV",
            )
        if not path.exists():
            raise DataError(
                message=f"Input CSV not found: {path}",
                source="RowsLoader._read_csv",
                suggested_action="Verify file path and ensure the CSV is present.",
            )

        try:
            with path.open("r", encoding="utf-8-sig", newline="") as f:
                reader = csv.DictReader(f, delimiter=",")
                if reader.fieldnames is None:
                    raise DataError(
                        message="CSV has no header row.",
                        source="RowsLoader._read_csv",
                        suggested_action="Ensure the first line contains column names.",
                    )
                return [self._strip_row(r) for r in reader]
        except OSError as e:
            raise DataError(
                message=f"Unable to read CSV: {e}",
                source="RowsLoader._read_csv",
                suggested_action="Check file permissions and that the file is not locked.",
            ) from e

    def _strip_row(self, row: dict[str | None, str | None]) -> dict[str, str]:
        # DictReader puts overflow cells under the None key; they have no column name.
        return {
            (k or "").strip(): (v.strip() if isinstance(v, str) else "")
            for k, v in row.items()
            if k is not None
        }
