"""
SARIF output formatter for IDE integration.

SARIF (Static Analysis Results Interchange Format) is a standard
format for static analysis tool output, supported by many IDEs
and code review tools.
"""

import json
from datetime import datetime, timezone
from typing import Dict, Any, List

from guardian import __version__
from guardian.core.findings import Finding, ScanResult, Severity
from guardian.core.rules import registry


SARIF_LEVEL = {
    Severity.CRITICAL: "error",
    Severity.WARNING: "warning",
    Severity.INFO: "note",
}


class SARIFFormatter:
    """
    Formats scan results in SARIF format.

    SARIF is supported by:
    - GitHub Code Scanning
    - VS Code SARIF Viewer
    - Azure DevOps
    """

    SARIF_VERSION = "2.1.0"
    SCHEMA_URI = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json"

    def __init__(self, **_ignored):
        pass

    def format_result(self, result: ScanResult) -> str:
        """Format a complete scan result in SARIF format."""
        sarif = {
            "$schema": self.SCHEMA_URI,
            "version": self.SARIF_VERSION,
            "runs": [self._create_run(result)],
        }

        return json.dumps(sarif, indent=2)

    def _create_run(self, result: ScanResult) -> Dict[str, Any]:
        rules = self._collect_rules(result.findings)

        return {
            "tool": {
                "driver": {
                    "name": "guardian",
                    "version": __version__,
                    "rules": rules,
                }
            },
            "results": [self._create_result(finding) for finding in result.findings],
            "invocations": [self._create_invocation(result)],
        }

    def _collect_rules(self, findings: List[Finding]) -> List[Dict[str, Any]]:
        """Collect unique rules from findings, in first-seen order."""
        rules_seen = set()
        rules = []

        for finding in findings:
            if finding.rule_id not in rules_seen:
                rules_seen.add(finding.rule_id)
                rules.append(self._create_rule(finding))

        return rules

    def _create_rule(self, finding: Finding) -> Dict[str, Any]:
        # External scripts may report rule ids that are not registered here
        known = registry.get_rule(finding.rule_id)
        name = known.name if known else finding.rule_id
        return {
            "id": finding.rule_id,
            "name": name,
            "shortDescription": {"text": name},
            "defaultConfiguration": {
                "level": SARIF_LEVEL[finding.severity],
            },
            "properties": {
                "severity": finding.severity.value,
            },
        }

    def _create_result(self, finding: Finding) -> Dict[str, Any]:
        return {
            "ruleId": finding.rule_id,
            "level": SARIF_LEVEL[finding.severity],
            "message": {"text": finding.message},
            "locations": [
                {
                    "physicalLocation": {
                        "artifactLocation": {"uri": finding.file_path},
                        "region": {"startLine": finding.line},
                    },
                }
            ],
        }

    def _create_invocation(self, result: ScanResult) -> Dict[str, Any]:
        return {
            "executionSuccessful": len(result.errors) == 0,
            "endTimeUtc": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "toolExecutionNotifications": [
                {
                    "message": {"text": error},
                    "level": "error",
                }
                for error in result.errors
            ],
        }
