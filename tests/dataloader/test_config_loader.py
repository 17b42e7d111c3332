# tests/dataloader/test_config_loader.py

from pathlib import Path

import pytest
import yaml

from allocheck.dataloader.config_loader import ConfigLoader
from allocheck.errors import ConfigError
from allocheck.schemas.models import Config


@pytest.fixture()
def tmp_yaml(tmp_path: Path) -> Path:
    """Writes a temporary YAML with a few overridden Config sections."""
    path = tmp_path / "config.yaml"
    cfg = {
        "ranges": {"duration": {"min": 1, "max": 40}},
        "rule_graph": {"count_pair_as_cycle": True},
        "visual": {"save_plot": False},
    }
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(cfg, f)
    return path


def test_load_valid_yaml_returns_config(tmp_yaml: Path):
    """
    @brief
    Verify that valid YAML is correctly parsed and validated.

    @details
    Overridden sections take the file values; untouched sections keep
    their defaults (priority range [1,5], report filename).
    """
    # --- Arrange ---
    loader = ConfigLoader()

    # --- Act ---
    cfg = loader.load(tmp_yaml)

    # --- Assert ---
    assert isinstance(cfg, Config)
    assert cfg.ranges.duration.max == 40
    assert cfg.ranges.priority_level.min == 1
    assert cfg.ranges.priority_level.max == 5
    assert cfg.rule_graph.count_pair_as_cycle is True
    assert cfg.visual.save_plot is False
    assert cfg.report.filename == "validation_report.json"


def test_repository_config_file_loads():
    root = Path(__file__).resolve().parents[2]
    cfg = ConfigLoader().load(root / "config" / "config.yaml")
    assert cfg == Config()


def test_empty_file_yields_defaults(tmp_path: Path):
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    assert ConfigLoader().load(path) == Config()


def test_missing_file_raises_configerror(tmp_path: Path):
    """
    @brief
    Missing configuration file triggers ConfigError.
    """
    # --- Act / Assert ---
    with pytest.raises(ConfigError) as e:
        ConfigLoader().load(tmp_path / "no_such.yaml")

    assert "Configuration file not found" in str(e.value)


def test_wrong_extension_raises_configerror(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text("{}", encoding="utf-8")
    with pytest.raises(ConfigError, match="extension"):
        ConfigLoader().load(path)


def test_string_path_is_accepted(tmp_yaml: Path):
    cfg = ConfigLoader().load(str(tmp_yaml))
    assert cfg.ranges.duration.max == 40


def test_non_path_argument_rejected():
    with pytest.raises(ConfigError, match="Invalid path type"):
        ConfigLoader().load(42)  # type: ignore[arg-type]


def test_load_or_default_without_file_returns_defaults(tmp_yaml: Path):
    loader = ConfigLoader()
    assert loader.load_or_default(None) == Config()
    assert loader.load_or_default(tmp_yaml).visual.save_plot is False


def test_schema_violation_names_offending_key(tmp_path: Path):
    # --- Arrange ---
    path = tmp_path / "config.yaml"
    path.write_text("ranges:\n  priority_level:\n    min: 1\n", encoding="utf-8")

    # --- Act / Assert ---
    with pytest.raises(ConfigError, match=r"ranges\.priority_level\.max"):
        ConfigLoader().load(path)


def test_yaml_syntax_error_raises_configerror(tmp_path: Path):
    path = tmp_path / "bad.yaml"
    path.write_text("ranges: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="YAML parsing failed"):
        ConfigLoader().load(path)


def test_non_mapping_root_raises_configerror(tmp_path: Path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        ConfigLoader().load(path)


@pytest.mark.parametrize(
    "payload",
    [
        {"unknown_section": 1},
        {"ranges": {"duration": {"min": 10, "max": 1}}},
        {"ranges": {"priority_level": {"min": 1}}},
        {"rule_graph": {"count_pair_as_cycle": "maybe"}},
    ],
)
def test_schema_violations_raise_configerror(tmp_path: Path, payload):
    """
    @brief
    Unknown keys, inverted bounds and bad types are wrapped in ConfigError.
    """
    # --- Arrange ---
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")

    # --- Act / Assert ---
    with pytest.raises(ConfigError, match="Invalid configuration structure"):
        ConfigLoader().load(path)
