"""Evaluation of pattern detection performance."""

from stdp_detect.evaluation.performance import (
    PerformanceReport,
    evaluate_performance,
    format_performance_report,
    occurrence_onsets,
)

__all__ = [
    "PerformanceReport",
    "evaluate_performance",
    "format_performance_report",
    "occurrence_onsets",
]
