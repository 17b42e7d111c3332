# src/allocheck/schemas/models.py
"""
@brief
Pydantic data models for the Allocheck validation project.

@details
Defines two families of model types:
    - Rule variants: the allocation rule catalog (rules.json), one model per
      `type` tag, combined into the discriminated union `Rule`.
    - Config: runtime configuration (config.yaml), including nested range
      bounds, rule-graph policy, report, metrics and visual settings.

Entity rows (clients, workers, tasks) are NOT modelled here: they cross the
boundary as raw mappings and are checked field by field by the validator.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, model_validator


class _StrictBaseModel(BaseModel):
    """
    @brief
    Base model enforcing strict defaults for configuration contracts.

    @details
    Forbids unknown fields and preserves exact naming rules.
    """

    model_config = {
        "extra": "forbid",  # Reject unknown fields
        "populate_by_name": True,  # Allow population by field name
        "use_enum_values": True,  # Export raw enum values if enums appear later
    }


# ------------------------------------------------------------
# Rule catalog
# ------------------------------------------------------------
class _RuleBase(BaseModel):
    """
    @brief
    Common part of every allocation rule.

    @details
    Field names follow the rule builder wire format (camelCase). Unknown keys
    are ignored so that rules produced by external translators with extra
    annotations still load.
    """

    model_config = {"extra": "ignore", "populate_by_name": True}

    priority: int | None = Field(None, description="Optional rule priority")


class CoRunRule(_RuleBase):
    """Tasks that must execute together."""

    type: Literal["coRun"] = "coRun"
    tasks: list[str] = Field(default_factory=list, description="Task IDs run together")


class SlotRestrictionRule(_RuleBase):
    """Minimum number of common slots for a client or worker group."""

    type: Literal["slotRestriction"] = "slotRestriction"
    group: str = Field(..., description="Group name (GroupTag or WorkerGroup)")
    minCommonSlots: int = Field(..., ge=1, description="Minimum common slot count")


class LoadLimitRule(_RuleBase):
    """Maximum slots per phase for a worker group."""

    type: Literal["loadLimit"] = "loadLimit"
    group: str = Field(..., description="Worker group name")
    maxSlotsPerPhase: int = Field(..., ge=1, description="Max slots per phase")


class PhaseWindowRule(_RuleBase):
    """Phases a task is allowed to run in."""

    type: Literal["phaseWindow"] = "phaseWindow"
    task: str = Field(..., description="Task ID")
    allowedPhases: list[int] = Field(default_factory=list, description="Allowed phases")


class PatternMatchRule(_RuleBase):
    """Regex-based rule with a template and free-form parameters."""

    type: Literal["patternMatch"] = "patternMatch"
    regex: str
    template: str
    parameters: dict[str, Any] = Field(default_factory=dict)


class PrecedenceOverrideRule(_RuleBase):
    """Global rules vs. specific rules precedence declaration."""

    type: Literal["precedenceOverride"] = "precedenceOverride"
    globalRules: list[str] = Field(default_factory=list)
    specificRules: list[str] = Field(default_factory=list)


Rule = Annotated[
    CoRunRule
    | SlotRestrictionRule
    | LoadLimitRule
    | PhaseWindowRule
    | PatternMatchRule
    | PrecedenceOverrideRule,
    Field(discriminator="type"),
]

RULE_ADAPTER: TypeAdapter[Rule] = TypeAdapter(Rule)
RULE_LIST_ADAPTER: TypeAdapter[list[Rule]] = TypeAdapter(list[Rule])


def parse_rules(data: Any) -> list[Rule]:
    """
    @brief
    Validate a list of rule mappings into typed rule models.

    @raises
        pydantic.ValidationError on unknown `type` tags or bad field values.
    """
    return RULE_LIST_ADAPTER.validate_python(data)


# ------------------------------------------------------------
# Runtime configuration
# ------------------------------------------------------------
class RangeBounds(_StrictBaseModel):
    """
    @brief
    Inclusive numeric interval used by the range checker.
    """

    min: float = Field(..., description="Inclusive lower bound")
    max: float = Field(..., description="Inclusive upper bound")

    @model_validator(mode="after")
    def _check_order(self) -> RangeBounds:
        if self.min > self.max:
            raise ValueError(f"range min ({self.min}) must not exceed max ({self.max})")
        return self


class RangeConfig(_StrictBaseModel):
    """
    @brief
    Declared closed intervals for numeric entity fields.
    """

    priority_level: RangeBounds = Field(default_factory=lambda: RangeBounds(min=1, max=5))
    max_load_per_phase: RangeBounds = Field(default_factory=lambda: RangeBounds(min=1, max=10))
    duration: RangeBounds = Field(default_factory=lambda: RangeBounds(min=1, max=100))
    max_concurrent: RangeBounds = Field(default_factory=lambda: RangeBounds(min=1, max=10))


class RuleGraphConfig(_StrictBaseModel):
    """
    @brief
    Policy of the co-run cycle checker.

    @details
    With `count_pair_as_cycle` enabled every co-run edge is reported as a
    (degenerate) cycle, since walking A→B→A revisits the active path.
    """

    count_pair_as_cycle: bool = Field(
        False, description="Report a single co-run pair as a circular dependency"
    )


class ReportConfig(BaseModel):
    """
    @brief
    Controls persistence of the validation report.
    """

    write_report: bool = True
    filename: str = "validation_report.json"


class MetricsConfig(BaseModel):
    """
    @brief
    Controls metrics persistence.
    """

    save_metrics: bool = True


class VisualConfig(BaseModel):
    """
    @brief
    Visualization parameters for the phase load chart.
    """

    save_plot: bool = True
    width: float = Field(12.0, description="Figure width in inches")
    height: float = Field(6.0, description="Figure height in inches")
    dpi: int = Field(120, description="Output figure DPI")


class LoggingConfig(BaseModel):
    level: str = "INFO"


class Config(_StrictBaseModel):
    """
    @brief
    Represents the full runtime configuration loaded from config.yaml.

    @details
    Every section has defaults, so `Config()` reproduces the built-in
    validation constants and an empty YAML mapping is a valid override.
    """

    ranges: RangeConfig = Field(default_factory=RangeConfig)
    rule_graph: RuleGraphConfig = Field(default_factory=RuleGraphConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    visual: VisualConfig = Field(default_factory=VisualConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    output_dir: str | None = "data/output"


__all__ = [
    "CoRunRule",
    "Config",
    "LoadLimitRule",
    "PatternMatchRule",
    "PhaseWindowRule",
    "PrecedenceOverrideRule",
    "RangeBounds",
    "Rule",
    "SlotRestrictionRule",
    "parse_rules",
]
