# Services module
from bizpulse.services.stock import classify_stock, resolve_min_stock
from bizpulse.services.report_aggregator import build_summary, SUMMARY_METRICS

__all__ = [
    "classify_stock",
    "resolve_min_stock",
    "build_summary",
    "SUMMARY_METRICS",
]
