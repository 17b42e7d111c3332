# src/allocheck/dataloader/config_loader.py
from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from allocheck.errors import ConfigError
from allocheck.schemas.models import Config

_SOURCE = "dataloader.config_loader"
_SUFFIXES = {".yaml", ".yml"}


class ConfigLoader:
    """
    @brief
    Reads validation settings (ranges, cycle policy, artifact switches).

    @details
    Every section of `Config` has defaults, so a file only lists what it
    overrides and an empty file means "defaults". Problems are reported as
    `ConfigError` naming the offending keys, e.g.
    "ranges.priority_level.max: Field required".
    """

    def load(self, path: Path | str) -> Config:
        """
        @brief
        Parse and validate one YAML settings file.

        @raises
            ConfigError
                On a missing or unreadable file, a non-YAML extension, broken
                YAML, a non-mapping root or keys the schema rejects.
        """
        path = self._as_path(path)
        overrides = self._read_overrides(path)
        try:
            return Config(**overrides)
        except ValidationError as e:
            raise ConfigError(
                message=f"Invalid configuration structure in {path.name}: {_describe(e)}",
                source=_SOURCE,
                suggested_action=(
                    "Check section names, range bounds (min <= max) and value types; "
                    "unknown keys are rejected."
                ),
            ) from e

    def load_or_default(self, path: Path | str | None) -> Config:
        """Settings from `path`, or built-in defaults when no file is given."""
        if path is None:
            return Config()
        return self.load(path)

    # ---------- internal ----------
    @staticmethod
    def _as_path(path: Any) -> Path:
        if isinstance(path, str):
            return Path(path)
        if isinstance(path, Path):
            return path
        raise ConfigError(
            message=f"Invalid path type: expected str or pathlib.Path, got {type(path).__name__}",
            source=_SOURCE,
            suggested_action="Pass the location of config.yaml as a path.",
        )

    @staticmethod
    def _read_overrides(path: Path) -> dict[str, Any]:
        if not path.is_file():
            raise ConfigError(
                message=f"Configuration file not found: {path}",
                source=_SOURCE,
                suggested_action="Point --config at an existing YAML file or omit it.",
            )
        if path.suffix.lower() not in _SUFFIXES:
            raise ConfigError(
                message=f"Invalid configuration file extension: {path.suffix or '(none)'}",
                source=_SOURCE,
                suggested_action="Settings are YAML; rename the file to .yaml or .yml.",
            )

        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(
                message=f"Unable to read configuration file {path}: {e}",
                source=_SOURCE,
                suggested_action="Check file permissions.",
            ) from e
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(
                message=f"YAML parsing failed for {path.name}: {e}",
                source=_SOURCE,
                suggested_action="Fix YAML syntax or indentation.",
            ) from e

        if data is None:
            return {}
        if not isinstance(data, Mapping):
            raise ConfigError(
                message=(
                    f"Configuration root must be a mapping of sections, "
                    f"got {type(data).__name__}"
                ),
                source=_SOURCE,
                suggested_action="Use top-level keys such as ranges:, rule_graph:, report:.",
            )
        return dict(data)


def _describe(error: ValidationError) -> str:
    """One 'dotted.location: message' clause per schema violation."""
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "(root)"
        parts.append(f"{loc}: {item.get('msg', 'invalid value')}")
    return "; ".join(parts)


__all__ = ["ConfigLoader"]
