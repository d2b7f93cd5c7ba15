"""Console reporting helpers."""

from .reporter import ProbeReporter, RunSummary, format_known, format_outcome, render_summary_table

__all__ = [
    "ProbeReporter",
    "RunSummary",
    "format_known",
    "format_outcome",
    "render_summary_table",
]
