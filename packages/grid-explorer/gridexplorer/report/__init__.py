"""Reporting module for Grid Explorer sessions."""

from gridexplorer.report.dtypes import SessionResult
from gridexplorer.report.summary import build_summary_table, summary

__all__ = [
    "SessionResult",
    "build_summary_table",
    "summary",
]
