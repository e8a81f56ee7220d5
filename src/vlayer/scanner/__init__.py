"""Scanner: engine, pattern scanners, semantic classifier, suppression."""

from vlayer.scanner.base import PatternScanner, ScanContext, Scanner
from vlayer.scanner.custom import CustomRuleScanner
from vlayer.scanner.engine import ALL_SCANNERS, ScanError, ScanOptions, discover_files, scan
from vlayer.scanner.semantic import SemanticAnalyzer, analyze_context, is_test_file
from vlayer.scanner.suppression import SuppressionChecker, apply_suppressions

__all__ = [
    "ALL_SCANNERS",
    "CustomRuleScanner",
    "PatternScanner",
    "ScanContext",
    "ScanError",
    "ScanOptions",
    "Scanner",
    "SemanticAnalyzer",
    "SuppressionChecker",
    "analyze_context",
    "apply_suppressions",
    "discover_files",
    "is_test_file",
    "scan",
]
