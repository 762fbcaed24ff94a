"""Scenario summary persistence and console rendering."""

import json
import logging
from pathlib import Path
from typing import Optional

from tabulate import tabulate

from l4lb_harness.common.paths import paths
from l4lb_harness.models import PhaseStatus, ScenarioSummary

logger = logging.getLogger(__name__)

STATUS_SYMBOLS = {
    PhaseStatus.PASSED.value: "✅",
    PhaseStatus.FAILED.value: "❌",
    PhaseStatus.SKIPPED.value: "⏭️",
}


def save_summary(summary: ScenarioSummary, results_dir: Optional[Path] = None) -> Path:
    """Write the summary as `scenario_<name>_<timestamp>.json` and return its path."""
    target = paths.ensure_results_dir(results_dir)
    timestamp = summary.timestamp.strftime("%Y%m%d_%H%M%S")
    summary_file = target / f"scenario_{summary.scenario}_{timestamp}.json"

    with open(summary_file, "w") as f:
        json.dump(summary.model_dump(mode="json"), f, indent=2)

    logger.info(f"Scenario summary saved to: {summary_file}")
    return summary_file


def render_summary(summary: ScenarioSummary) -> str:
    """Grid table of phase outcomes followed by totals."""
    rows = [["#", "Phase", "Kind", "Status", "Duration (s)"]]
    for result in summary.phases:
        rows.append([
            result.index,
            result.label,
            result.kind,
            f"{STATUS_SYMBOLS.get(result.status, '')} {result.status}",
            f"{result.duration_seconds:.2f}",
        ])

    lines = [
        tabulate(rows, headers="firstrow", tablefmt="grid"),
        "",
        f"Image:    {summary.image}",
        f"Passed:   {summary.passed}",
        f"Failed:   {summary.failed}",
        f"Skipped:  {summary.skipped}",
        f"Duration: {summary.duration_seconds:.2f} seconds",
    ]

    failed = summary.failed_phase
    if failed is not None:
        lines.append(f"\nFailed phase [{failed.index}] {failed.label}:\n{failed.error}")
    if summary.teardown_errors:
        lines.append("\nTeardown errors:")
        lines.extend(f"  - {error}" for error in summary.teardown_errors)
    if summary.held:
        lines.append("\nEnvironment held for debugging")
    return "\n".join(lines)
