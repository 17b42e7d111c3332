# scripts/run.py
from __future__ import annotations

import argparse
import logging
import sys
import time
import traceback
from pathlib import Path
from typing import Any

from allocheck.dataloader.config_loader import ConfigLoader
from allocheck.dataloader.rows_loader import RowsLoader
from allocheck.dataloader.rules_loader import RulesLoader
from allocheck.errors import AllocheckError
from allocheck.metrics.logger import write_metrics
from allocheck.metrics.metrics import collect_metrics
from allocheck.schemas.models import Rule
from allocheck.validator.validator import validate_entities
from allocheck.visualizer.plot import plot_phase_load


def _setup_logging(level: str = "INFO") -> None:
    """
    @brief
    Initializes global logging configuration.
    """
    logging.basicConfig(level=level.upper(), format="[%(levelname)s] %(message)s", force=True)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    @brief
    Parses command-line arguments for the validation run.
    """
    parser = argparse.ArgumentParser(
        prog="allocheck-run",
        description="Validate clients/workers/tasks data and allocation rules: load → validate → report → metrics → plot",
    )
    parser.add_argument("--clients", type=str, required=True, help="Path to clients CSV")
    parser.add_argument("--workers", type=str, required=True, help="Path to workers CSV")
    parser.add_argument("--tasks", type=str, required=True, help="Path to tasks CSV")
    parser.add_argument(
        "--rules", type=str, default=None, help="Path to rules.json (optional, default: no rules)"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config YAML (optional, built-in defaults when omitted)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output directory for artifacts (default: config output_dir or data/output)",
    )
    return parser.parse_args(argv)


def run_pipeline(
    clients_path: Path,
    workers_path: Path,
    tasks_path: Path,
    rules_path: Path | None = None,
    config_path: Path | None = None,
    output_dir: Path | None = None,
) -> dict[str, Any]:
    """
    @brief
    Executes the full validation pipeline.

    @details
    Performs sequential steps:
    (1) Load configuration, entity CSVs and the optional rule catalog.
    (2) Run the validator and persist validation_report.json.
    (3) Collect metrics and render the phase load chart, as configured.
    Loader failures raise AllocheckError; data problems never do, they end
    up in the report.

    @returns
        Dictionary with validity flag, summary lines, suggestions and
        artifact file paths.
    """
    t0 = time.perf_counter()

    # (1) Configuration
    cfg = ConfigLoader().load_or_default(config_path)
    output_dir = Path(output_dir or cfg.output_dir or "data/output")
    output_dir.mkdir(parents=True, exist_ok=True)

    # (2) Entities and rules
    clients = RowsLoader("clients").load(clients_path)
    workers = RowsLoader("workers").load(workers_path)
    tasks = RowsLoader("tasks").load(tasks_path)
    rules: list[Rule] = RulesLoader().load(rules_path) if rules_path else []

    # (3) Validation and report
    logging.info("Validating data set…")
    result, _report = validate_entities(
        clients,
        workers,
        tasks,
        rules,
        cfg,
        write_report=cfg.report.write_report,
        out_dir=output_dir,
        filename=cfg.report.filename,
    )
    report_path = output_dir / cfg.report.filename

    # (4) Metrics
    metrics_path: Path | None = None
    if cfg.metrics.save_metrics:
        logging.info("Collecting metrics…")
        metrics_path = write_metrics(collect_metrics(result, clients, workers, tasks), output_dir)

    # (5) Phase load chart
    plot_path: Path | None = None
    if cfg.visual.save_plot:
        logging.info("Rendering phase load plot…")
        plot_path = plot_phase_load(workers, tasks, cfg, out_path=output_dir / "phase_load.png")

    logging.info("Pipeline finished in %.2f s", time.perf_counter() - t0)

    return {
        "valid": not result.has_issues(),
        "summary": list(result.summary),
        "suggestions": list(result.suggestions),
        "artifacts": {
            "validation_report": report_path if report_path.exists() else None,
            "metrics": metrics_path,
            "phase_plot": plot_path,
        },
    }


def main(argv: list[str] | None = None) -> int:
    """
    @brief
    CLI entry point.

    @details
    Exit codes:
      0 – data set is clean
      1 – validation issues found, or controlled failure (config/data/rules)
      2 – unexpected crash
    """
    _setup_logging()
    args = _parse_args(argv)

    try:
        if args.config:
            # Re-configure with the level requested in config.yaml
            _setup_logging(ConfigLoader().load(Path(args.config)).logging.level)

        result = run_pipeline(
            Path(args.clients),
            Path(args.workers),
            Path(args.tasks),
            rules_path=Path(args.rules) if args.rules else None,
            config_path=Path(args.config) if args.config else None,
            output_dir=Path(args.output) if args.output else None,
        )
        for line in result["summary"]:
            logging.warning("%s", line)
        for line in result["suggestions"]:
            logging.info("Suggestion: %s", line)
        logging.info(
            "%d issue(s), %d suggestion(s)", len(result["summary"]), len(result["suggestions"])
        )
        return 0 if result["valid"] else 1

    except AllocheckError as e:
        logging.error(str(e))
        return 1
    except Exception:
        logging.error("Unexpected error occurred:")
        traceback.print_exc()
        return 2


if __name__ == "__main__":
    sys.exit(main())
