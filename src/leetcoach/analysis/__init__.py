"""
Improvement engine.

Pure, synchronous functions that normalize Leetify profile stats, compare them
against tiered benchmarks, and assemble a coaching report.
"""

from leetcoach.analysis.benchmarks import BENCHMARK_TIERS, compare, meets_benchmark, select_tier
from leetcoach.analysis.models import (
    AreaStatus,
    Category,
    Endpoint,
    ImprovementArea,
    ImprovementReport,
    Metric,
    RawProfile,
    Side,
)
from leetcoach.analysis.normalize import normalize
from leetcoach.analysis.report import build_report
from leetcoach.analysis.resources import ResourceCatalog, select_resources

__all__ = [
    "AreaStatus",
    "BENCHMARK_TIERS",
    "Category",
    "Endpoint",
    "ImprovementArea",
    "ImprovementReport",
    "Metric",
    "RawProfile",
    "ResourceCatalog",
    "Side",
    "build_report",
    "compare",
    "meets_benchmark",
    "normalize",
    "select_resources",
    "select_tier",
]
