"""
CLI output formatter for human-readable results.
"""

import sys
from io import StringIO
from typing import List

from rich.console import Console
from rich.table import Table
from rich.text import Text

from guardian.core.findings import DryRunInfo, Finding, ScanResult, Severity
from guardian.core.rules import Rule


SEVERITY_STYLES = {
    Severity.CRITICAL: "bold white on red",
    Severity.WARNING: "bold yellow",
    Severity.INFO: "dim",
}

SEVERITY_LABELS = {
    Severity.CRITICAL: "CRITICAL",
    Severity.WARNING: "WARNING",
    Severity.INFO: "INFO",
}


def supports_color() -> bool:
    """Check if the terminal supports color output."""
    if not hasattr(sys.stdout, "isatty"):
        return False
    return sys.stdout.isatty()


class CLIFormatter:
    """
    Formats scan results for human-readable terminal output.

    Everything is rendered through a rich Console into a string, so the
    caller decides where it goes. Without color the output is plain text.
    """

    def __init__(self, use_color: bool = True, width: int = 100):
        self.use_color = use_color and supports_color()
        self.width = width

    def _render(self, *renderables) -> str:
        buffer = StringIO()
        console = Console(
            file=buffer,
            force_terminal=self.use_color,
            no_color=not self.use_color,
            width=self.width,
            highlight=False,
            emoji=False,
            soft_wrap=True,
        )
        for renderable in renderables:
            console.print(renderable)
        return buffer.getvalue()

    def _severity_label(self, severity: Severity) -> Text:
        return Text(f"[{SEVERITY_LABELS[severity]}]", style=SEVERITY_STYLES[severity])

    def _rule(self, title: str) -> Text:
        return Text.assemble(("=" * 70, "dim"), "\n", (f" {title} ", "bold"), "\n", ("=" * 70, "dim"))

    def format_finding(self, finding: Finding) -> Text:
        """Render one finding as `[LEVEL] path:line [rule] message`."""
        return Text.assemble(
            "  ",
            self._severity_label(finding.severity),
            " ",
            (f"{finding.file_path}:{finding.line}", "cyan"),
            " ",
            (f"[{finding.rule_id}]", "bold"),
            " ",
            finding.message,
        )

    def format_result(self, result: ScanResult) -> str:
        """Format a complete scan result."""
        parts = [self._rule("GUARDIAN SCAN RESULTS"), Text("")]

        summary = Text()
        summary.append("Summary\n", style="bold")
        summary.append("-" * 40 + "\n", style="dim")
        summary.append(f"  Source:            {result.source}\n")
        if result.source == "builtin":
            summary.append(f"  Files scanned:     {result.files_scanned}\n")
        summary.append(f"  Scan time:         {result.scan_time_seconds:.2f}s\n")
        parts.append(summary)

        findings = Text()
        findings.append("Findings\n", style="bold")
        findings.append("-" * 40 + "\n", style="dim")
        if result.total_findings == 0:
            findings.append("  No issues found!\n", style="green")
        else:
            for severity, count in (
                (Severity.CRITICAL, result.critical_count),
                (Severity.WARNING, result.warning_count),
                (Severity.INFO, result.info_count),
            ):
                findings.append("  ")
                findings.append_text(self._severity_label(severity))
                findings.append(f" {count}\n")
            findings.append(f"  Total: {result.total_findings}\n")
        parts.append(findings)

        if result.total_findings > 0:
            parts.append(self._rule("DETAILED FINDINGS"))
            for file_path, file_findings in result.by_file().items():
                parts.append(Text(""))
                parts.append(Text(file_path, style="bold cyan"))
                for finding in file_findings:
                    parts.append(self.format_finding(finding))
            parts.append(Text(""))

        if result.errors:
            parts.append(self._rule("ERRORS"))
            for error in result.errors:
                parts.append(Text(f"  - {error}", style="red"))
            parts.append(Text(""))

        return self._render(*parts)

    def format_dry_run(self, info: DryRunInfo) -> str:
        """Format the dry-run summary: files, line counts and exclusions."""
        parts = [self._rule("GUARDIAN DRY RUN"), Text("")]
        for file_info in info.files:
            parts.append(Text.assemble(
                "  ", (f"{file_info.lines:6}", "dim"), "  ", file_info.path,
            ))
        parts.append(Text(""))
        parts.append(Text(
            f"{info.file_count} files, {info.total_lines} lines would be scanned",
            style="bold",
        ))
        if info.excluded:
            parts.append(Text(f"Excluded: {', '.join(info.excluded)}", style="dim"))
        return self._render(*parts)

    def format_rules(self, rules: List[Rule]) -> str:
        """Format the rule table."""
        table = Table(title="Guardian rules", show_lines=False)
        table.add_column("Rule", no_wrap=True)
        table.add_column("Severity", no_wrap=True)
        table.add_column("Type")
        table.add_column("Languages")
        table.add_column("Message")
        for rule in rules:
            table.add_row(
                rule.rule_id,
                Text(rule.severity.value, style=SEVERITY_STYLES[rule.severity]),
                rule.rule_type.value,
                ", ".join("all" if lang == "*" else lang for lang in rule.languages),
                rule.message,
            )
        return self._render(table)
