"""
Bridge to a project-local `.guardian/guardian.py` script.

Projects may ship their own checker script. When it exists the walker runs
it and reads findings back from its text output, which may use either of
two line formats:

    <path>:<line> [<rule>] <message>
    FAIL <path>:<line> - <rule>: <message>

Lines in any other shape are ignored. Severity is re-derived from the rule
id, so findings from the script rank exactly like built-in ones.
"""

import logging
import os
import re
import subprocess
import sys
import time
from typing import List, Optional

from guardian.core.findings import Finding, ScanResult


logger = logging.getLogger(__name__)


SCRIPT_DIR = ".guardian"
SCRIPT_NAME = "guardian.py"

ISSUE_LINE_RE = re.compile(r"^(.+):(\d+)\s+\[([^\]]+)\]\s+(.+)$")
FAIL_LINE_RE = re.compile(r"^FAIL\s+(.+):(\d+)\s+-\s+([^:]+):\s+(.+)$")


def parse_issue_line(line: str) -> Optional[Finding]:
    """Parse one output line into a Finding, or None if it is not a finding on a real line."""
    line = line.strip()
    for pattern in (FAIL_LINE_RE, ISSUE_LINE_RE):
        match = pattern.match(line)
        if match:
            path, number, rule_id, message = match.groups()
            if int(number) < 1:
                return None
            return Finding(
                file_path=path.strip(),
                line=int(number),
                rule_id=rule_id.strip(),
                message=message.strip(),
            )
    return None


def parse_guardian_output(output: str) -> List[Finding]:
    """Parse all recognisable finding lines from script output."""
    findings = []
    for line in output.splitlines():
        finding = parse_issue_line(line)
        if finding is not None:
            findings.append(finding)
    return findings


def find_guardian_script(root: str) -> Optional[str]:
    """Path to the project's guardian script under root, if there is one."""
    script = os.path.join(root, SCRIPT_DIR, SCRIPT_NAME)
    if os.path.isfile(script):
        return script
    return None


def run_guardian_script(root: str, script: str, timeout: float = 120.0) -> Optional[ScanResult]:
    """
    Run the project's guardian script and collect its findings.

    Returns None when the caller should fall back to the built-in scan:
    the interpreter cannot be started, the script times out, or it exits
    non-zero without reporting any finding.
    """
    start_time = time.time()
    try:
        proc = subprocess.run(
            [sys.executable, script],
            cwd=root,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.warning("Guardian script %s timed out after %ss", script, timeout)
        return None
    except OSError as e:
        logger.warning("Could not run guardian script %s: %s", script, e)
        return None

    findings = parse_guardian_output(proc.stdout or "")
    if proc.returncode != 0 and not findings:
        logger.warning(
            "Guardian script %s exited with code %d and reported no findings",
            script, proc.returncode,
        )
        return None

    logger.debug("Guardian script reported %d findings", len(findings))
    return ScanResult(
        findings=findings,
        scan_time_seconds=round(time.time() - start_time, 3),
        source="external",
    )
