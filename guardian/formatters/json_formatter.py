"""
JSON output formatter for machine-readable results.
"""

import json
from typing import List

from guardian.core.findings import DryRunInfo, Finding, ScanResult


class JSONFormatter:
    """
    Formats scan results as JSON for machine consumption.
    """

    def __init__(self, indent: int = 2, **_ignored):
        self.indent = indent

    def format_result(self, result: ScanResult) -> str:
        """Format a complete scan result as JSON."""
        return json.dumps(result.to_dict(), indent=self.indent, ensure_ascii=False)

    def format_findings(self, findings: List[Finding]) -> str:
        """Format a list of findings as JSON."""
        return json.dumps([f.to_dict() for f in findings], indent=self.indent, ensure_ascii=False)

    def format_dry_run(self, info: DryRunInfo) -> str:
        return json.dumps(info.to_dict(), indent=self.indent, ensure_ascii=False)
