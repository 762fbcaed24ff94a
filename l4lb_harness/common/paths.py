"""Centralized path configuration for the harness.

This module provides a single source of truth for the paths used by the
CLI, the scenario fixtures and the tests.
"""

from pathlib import Path


class ProjectPaths:
    """Project directory structure paths."""

    def __init__(self, base_path: Path | None = None):
        """Initialize project paths.

        Args:
            base_path: Optional base path for the project root.
                      If None, auto-detects from this file's location.
        """
        if base_path is None:
            # Auto-detect: go up from l4lb_harness/common/paths.py to repository root
            self.root = Path(__file__).parent.parent.parent
        else:
            self.root = base_path

        # Package directories
        self.package = Path(__file__).parent.parent
        self.scenarios = self.package / "scenarios"
        self.fixtures = self.scenarios / "fixtures"

        # Output directories
        self.results = self.root / "results"

    def ensure_results_dir(self, results_dir: Path | None = None) -> Path:
        """Ensure results directory exists and return it."""
        target = results_dir or self.results
        target.mkdir(parents=True, exist_ok=True)
        return target

    def fixture(self, name: str) -> Path:
        """Path of a scenario fixture file."""
        return self.fixtures / name


# Global singleton instance
paths = ProjectPaths()
