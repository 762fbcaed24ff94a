"""Scenario definitions run by the harness."""

from l4lb_harness.scenarios.nat46x64 import STALE_ROUTE_PREFIXES, SUITES, build_scenario

__all__ = ["STALE_ROUTE_PREFIXES", "SUITES", "build_scenario"]
