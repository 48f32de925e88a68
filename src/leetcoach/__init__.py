"""
leetcoach - CS2 Improvement Coach for Discord

Fetches Counter-Strike 2 player statistics from the Leetify public API,
normalizes the vendor's inconsistent numeric formats, scores them against
tiered benchmarks and turns the result into a prioritized coaching report.

Usage:
    from leetcoach import RawProfile, ResourceCatalog, build_report

    catalog = ResourceCatalog.load()
    profile = RawProfile.from_api(leetify_json)
    report = build_report(profile, catalog)

    for area in report.focus_areas:
        print(f"{area.category.value}: {area.issues[0]}")
"""

__version__ = "0.3.0"
__author__ = "leetcoach Contributors"


def __getattr__(name):
    """Lazy import for the analysis entry points."""
    if name == "RawProfile":
        from leetcoach.analysis.models import RawProfile
        return RawProfile
    elif name == "ImprovementReport":
        from leetcoach.analysis.models import ImprovementReport
        return ImprovementReport
    elif name == "ResourceCatalog":
        from leetcoach.analysis.resources import ResourceCatalog
        return ResourceCatalog
    elif name == "build_report":
        from leetcoach.analysis.report import build_report
        return build_report
    elif name == "normalize":
        from leetcoach.analysis.normalize import normalize
        return normalize
    elif name == "LeetifyClient":
        from leetcoach.integrations.leetify import LeetifyClient
        return LeetifyClient
    raise AttributeError(f"module 'leetcoach' has no attribute '{name}'")


__all__ = [
    "__version__",
    "RawProfile",
    "ImprovementReport",
    "ResourceCatalog",
    "build_report",
    "normalize",
    "LeetifyClient",
]
