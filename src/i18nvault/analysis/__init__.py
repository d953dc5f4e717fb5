"""Read-only analysis of catalogs: coverage, quality, namespace consumers.

Nothing in this package writes to disk.

Python 3.13+.
"""

from .consumers import build_consumer_map, find_namespaces, route_for, scan_consumers
from .coverage import (
    CoverageAnalyzer,
    CoverageReport,
    CoverageSummary,
    LocaleCoverage,
    NamespaceCoverage,
    PageCoverage,
    build_coverage_report,
    completion_percent,
)
from .quality import (
    QualityIssue,
    QualityReport,
    QualityScanner,
    QualitySummary,
    check_entry,
    extract_html_tags,
    extract_placeholders,
    scan_catalogs,
)

__all__ = [
    "CoverageAnalyzer",
    "CoverageReport",
    "CoverageSummary",
    "LocaleCoverage",
    "NamespaceCoverage",
    "PageCoverage",
    "QualityIssue",
    "QualityReport",
    "QualityScanner",
    "QualitySummary",
    "build_consumer_map",
    "build_coverage_report",
    "check_entry",
    "completion_percent",
    "extract_html_tags",
    "extract_placeholders",
    "find_namespaces",
    "route_for",
    "scan_catalogs",
    "scan_consumers",
]
