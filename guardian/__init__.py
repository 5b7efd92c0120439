"""
Guardian

A deterministic, line-oriented scanner that flags risky and low-quality
code patterns: dynamic code execution, hardcoded secrets, destructive
commands, SQL built by interpolation, debug statements, mock data and
oversized files or functions.
"""

__version__ = "0.1.0"

from guardian.core.findings import Finding, Severity, ScanResult, DryRunInfo
from guardian.core.walker import TreeWalker
from guardian.config import GuardianConfig

__all__ = [
    "Finding",
    "Severity",
    "ScanResult",
    "DryRunInfo",
    "TreeWalker",
    "GuardianConfig",
]
