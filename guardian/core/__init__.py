"""Core scanning engine and data structures."""

from guardian.core.findings import Finding, Severity, ScanResult, DryRunInfo, FileInfo
from guardian.core.rules import Rule, RuleRegistry, registry
from guardian.core.classifier import LineClassifier, ScanState
from guardian.core.scanner import FileScanner
from guardian.core.walker import TreeWalker, VisitAction

__all__ = [
    "Finding",
    "Severity",
    "ScanResult",
    "DryRunInfo",
    "FileInfo",
    "Rule",
    "RuleRegistry",
    "registry",
    "LineClassifier",
    "ScanState",
    "FileScanner",
    "TreeWalker",
    "VisitAction",
]
