"""
Finding data structures for the guardian scanner.

This module defines the records produced by a scan: individual findings,
the per-run result with its severity aggregation, and the dry-run summary.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any
import json


class Severity(Enum):
    """Severity tiers for findings."""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    def __lt__(self, other):
        order = [Severity.INFO, Severity.WARNING, Severity.CRITICAL]
        return order.index(self) < order.index(other)

    def __le__(self, other):
        return self == other or self < other


# Severity is a pure function of the rule id. Anything not listed as
# critical or info is a warning, so rules reported by an external script
# are classified exactly like built-in ones.
CRITICAL_RULES = frozenset({
    "ban-eval",
    "dangerous-cmd",
    "secret-pattern",
    "sql-injection",
})

INFO_RULES = frozenset({
    "ban-print",
    "ban-console",
    "todo-marker",
})


def get_severity(rule_id: str) -> Severity:
    """Return the severity tier for a rule id."""
    if rule_id in CRITICAL_RULES:
        return Severity.CRITICAL
    if rule_id in INFO_RULES:
        return Severity.INFO
    return Severity.WARNING


@dataclass(frozen=True)
class Finding:
    """
    One reported rule violation at a specific file and line.

    The severity is derived from the rule id and cannot be passed in.
    """
    file_path: str
    line: int
    rule_id: str
    message: str
    severity: Severity = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "severity", get_severity(self.rule_id))

    def format_line(self) -> str:
        """Render the finding in the `path:line [rule] message` form."""
        return f"{self.file_path}:{self.line} [{self.rule_id}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert finding to a dictionary."""
        return {
            "file": self.file_path,
            "line": self.line,
            "rule": self.rule_id,
            "message": self.message,
            "severity": self.severity.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Finding":
        """Create a Finding from a dictionary. Any severity key is ignored."""
        return cls(
            file_path=data["file"],
            line=int(data["line"]),
            rule_id=data["rule"],
            message=data["message"],
        )


def group_by_file(findings: List[Finding]) -> Dict[str, List[Finding]]:
    """
    Group findings by file path.

    Files keep the order in which they first appear; findings keep their
    order within each file. Every finding lands under exactly one key.
    """
    grouped: Dict[str, List[Finding]] = {}
    for finding in findings:
        grouped.setdefault(finding.file_path, []).append(finding)
    return grouped


def count_by_severity(findings: List[Finding]) -> Dict[Severity, int]:
    """Count findings per severity tier. All tiers are present in the result."""
    counts = {severity: 0 for severity in Severity}
    for finding in findings:
        counts[finding.severity] += 1
    return counts


def sort_findings(findings: List[Finding]) -> List[Finding]:
    """Return findings in a stable presentation order (file, line, rule)."""
    return sorted(findings, key=lambda f: (f.file_path, f.line, f.rule_id))


@dataclass
class ScanResult:
    """Results from a complete scan."""
    findings: List[Finding]
    files_scanned: int = 0
    scan_time_seconds: float = 0.0
    errors: List[str] = field(default_factory=list)
    source: str = "builtin"

    @property
    def critical_count(self) -> int:
        return sum(1 for f in self.findings if f.severity == Severity.CRITICAL)

    @property
    def warning_count(self) -> int:
        return sum(1 for f in self.findings if f.severity == Severity.WARNING)

    @property
    def info_count(self) -> int:
        return sum(1 for f in self.findings if f.severity == Severity.INFO)

    @property
    def total_findings(self) -> int:
        return len(self.findings)

    @property
    def has_critical(self) -> bool:
        return self.critical_count > 0

    def by_file(self) -> Dict[str, List[Finding]]:
        return group_by_file(self.findings)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": {
                "source": self.source,
                "files_scanned": self.files_scanned,
                "scan_time_seconds": self.scan_time_seconds,
                "total_findings": self.total_findings,
                "by_severity": {
                    "critical": self.critical_count,
                    "warning": self.warning_count,
                    "info": self.info_count,
                },
            },
            "findings": [f.to_dict() for f in self.findings],
            "errors": self.errors,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


@dataclass(frozen=True)
class FileInfo:
    """A file that would be scanned, with its line count."""
    path: str
    lines: int


@dataclass
class DryRunInfo:
    """What a scan would cover, without running any detection."""
    files: List[FileInfo] = field(default_factory=list)
    excluded: List[str] = field(default_factory=list)

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def total_lines(self) -> int:
        return sum(f.lines for f in self.files)

    def add_excluded(self, name: str) -> None:
        """Record an excluded directory name once, in the `name/` form."""
        entry = name.rstrip("/") + "/"
        if entry not in self.excluded:
            self.excluded.append(entry)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": [{"path": f.path, "lines": f.lines} for f in self.files],
            "excluded": list(self.excluded),
            "file_count": self.file_count,
            "total_lines": self.total_lines,
        }
