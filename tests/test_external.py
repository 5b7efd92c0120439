"""
Tests for parsing findings reported by a project's guardian script.
"""

import sys

import pytest

from guardian.core.external import (
    find_guardian_script, parse_guardian_output, parse_issue_line, run_guardian_script,
)
from guardian.core.findings import Severity


class TestParseIssueLine:
    """Tests for the two accepted line formats."""

    def test_bracket_format(self):
        finding = parse_issue_line("main.py:10 [ban-eval] Avoid eval() - security risk")
        assert finding.file_path == "main.py"
        assert finding.line == 10
        assert finding.rule_id == "ban-eval"
        assert finding.message == "Avoid eval() - security risk"
        assert finding.severity == Severity.CRITICAL

    def test_fail_format(self):
        finding = parse_issue_line("FAIL src/app.js:7 - ban-console: Remove console.log()")
        assert finding.file_path == "src/app.js"
        assert finding.line == 7
        assert finding.rule_id == "ban-console"
        assert finding.message == "Remove console.log()"
        assert finding.severity == Severity.INFO

    def test_unknown_rule_is_a_warning(self):
        finding = parse_issue_line("lib.py:3 [custom-check] Something odd")
        assert finding.severity == Severity.WARNING

    def test_path_with_colon(self):
        finding = parse_issue_line("C:/work/app.py:12 [ban-print] Remove print()")
        assert finding.file_path == "C:/work/app.py"
        assert finding.line == 12

    @pytest.mark.parametrize("line", [
        "",
        "Scanning 12 files...",
        "main.py:abc [ban-eval] not a line number",
        "main.py:0 [ban-eval] no such line",
        "FAIL main.py:0 - ban-eval: no such line",
        "main.py:10 ban-eval missing brackets",
        "FAIL main.py - ban-eval: no line",
        "All checks passed!",
    ])
    def test_malformed_lines_are_ignored(self, line):
        assert parse_issue_line(line) is None

    def test_round_trip_of_formatted_line(self):
        finding = parse_issue_line("pkg/mod.py:4 [secret-pattern] Possible hardcoded secret")
        assert parse_issue_line(finding.format_line()) == finding


class TestParseOutput:
    """Tests for parsing whole script outputs."""

    def test_mixed_output(self):
        output = "\n".join([
            "Guardian v1",
            "a.py:1 [ban-eval] Avoid eval()",
            "garbage line",
            "FAIL b.py:2 - dangerous-cmd: Dangerous command detected",
            "",
            "Done.",
        ])
        findings = parse_guardian_output(output)
        assert [(f.file_path, f.line, f.rule_id) for f in findings] == [
            ("a.py", 1, "ban-eval"),
            ("b.py", 2, "dangerous-cmd"),
        ]

    def test_empty_output(self):
        assert parse_guardian_output("") == []


class TestRunScript:
    """Tests for running the script in a subprocess."""

    def _write_script(self, tmp_path, body):
        script_dir = tmp_path / ".guardian"
        script_dir.mkdir()
        script = script_dir / "guardian.py"
        script.write_text(body, encoding="utf-8")
        return str(script)

    def test_find_script(self, tmp_path):
        assert find_guardian_script(str(tmp_path)) is None
        script = self._write_script(tmp_path, "")
        assert find_guardian_script(str(tmp_path)) == script

    def test_clean_exit_without_findings(self, tmp_path):
        script = self._write_script(tmp_path, 'print("All checks passed")\n')
        result = run_guardian_script(str(tmp_path), script)
        assert result is not None
        assert result.findings == []
        assert result.source == "external"

    def test_stderr_is_collected(self, tmp_path):
        script = self._write_script(
            tmp_path,
            'import sys\nsys.stderr.write("x.py:2 [ban-print] Remove print()\\n")\n',
        )
        result = run_guardian_script(str(tmp_path), script)
        assert [f.rule_id for f in result.findings] == ["ban-print"]

    def test_runs_in_project_root(self, tmp_path):
        (tmp_path / "marker.py").write_text("", encoding="utf-8")
        script = self._write_script(
            tmp_path,
            'import os\n'
            'if os.path.exists("marker.py"):\n'
            '    print("marker.py:1 [todo-marker] found")\n',
        )
        result = run_guardian_script(str(tmp_path), script)
        assert len(result.findings) == 1

    def test_nonzero_exit_without_findings_falls_back(self, tmp_path):
        script = self._write_script(tmp_path, 'raise SystemExit("boom")\n')
        assert run_guardian_script(str(tmp_path), script) is None

    def test_timeout_falls_back(self, tmp_path):
        script = self._write_script(tmp_path, "import time\ntime.sleep(5)\n")
        assert run_guardian_script(str(tmp_path), script, timeout=0.5) is None

    def test_missing_interpreter_falls_back(self, tmp_path, monkeypatch):
        script = self._write_script(tmp_path, "")
        monkeypatch.setattr(sys, "executable", str(tmp_path / "no-python"))
        assert run_guardian_script(str(tmp_path), script) is None
