"""Reduction of test reports and build logs into counts."""

from sofaci.results.aggregator import ResultAggregator, WarningStyle

__all__ = ["ResultAggregator", "WarningStyle"]
