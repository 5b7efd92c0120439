"""
Tree walker for the guardian scanner.

Visits a directory tree in sorted order, prunes excluded directories,
filters files by extension and hands each eligible file to the file
scanner. Also provides the dry-run summary and, when a project ships its
own `.guardian/guardian.py`, delegation to that script.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Set, Tuple

from guardian.config import GuardianConfig
from guardian.core.external import find_guardian_script, run_guardian_script
from guardian.core.findings import DryRunInfo, FileInfo, Finding, ScanResult
from guardian.core.scanner import FileScanner, SUPPORTED_EXTENSIONS
from guardian.exceptions import ScanError
from guardian.utils import count_lines, read_text, relative_path


logger = logging.getLogger(__name__)


# Directory names whose whole subtree is never visited
EXCLUDED_DIRS = frozenset({
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "__pycache__",
    ".venv",
    "venv",
    ".guardian",
    "dist",
    "build",
    ".tox",
    ".mypy_cache",
    ".pytest_cache",
    "vendor",
})


class VisitAction(Enum):
    """What the walker does after visiting an entry."""
    CONTINUE = "continue"
    SKIP_SUBTREE = "skip_subtree"
    ABORT = "abort"


# Called with (absolute path, is_dir); returns what to do next
Visitor = Callable[[str, bool], VisitAction]


class TreeWalker:
    """
    Walks a project tree and scans every eligible file.

    The walker:
    1. Prunes directories whose base name is in the exclusion set
    2. Skips files with unsupported extensions
    3. Scans the remaining files, in sorted order, with a FileScanner
    """

    def __init__(self, config: Optional[GuardianConfig] = None):
        self.config = config or GuardianConfig()
        self.excluded_dirs: Set[str] = set(EXCLUDED_DIRS) | set(self.config.project.exclude_dirs)
        self.max_workers = max(1, self.config.project.max_workers)

    def is_excluded(self, name: str) -> bool:
        return name in self.excluded_dirs

    @staticmethod
    def is_supported(path: str) -> bool:
        return os.path.splitext(path)[1].lower() in SUPPORTED_EXTENSIONS

    def _start_dir(self, root: str) -> str:
        """Resolve and check the directory the walk starts from."""
        target = Path(root)
        if not target.exists():
            raise ScanError(f"Path does not exist: {root}")
        if target.is_file():
            return str(target)

        src_root = self.config.project.src_root
        if src_root:
            candidate = target / src_root
            if candidate.is_dir():
                target = candidate
            else:
                logger.warning("Configured src_root %s not found under %s, scanning root", src_root, root)

        if not os.access(target, os.R_OK | os.X_OK):
            raise ScanError(f"Cannot read directory: {target}")
        return str(target)

    def walk(self, root: str, visitor: Visitor) -> bool:
        """
        Visit every entry under root in sorted order.

        Directories are offered to the visitor before their contents; a
        SKIP_SUBTREE answer prunes them. Returns False if the visitor
        aborted the walk.
        """
        for dirpath, dirs, files in os.walk(root):
            dirs.sort()
            kept = []
            for name in dirs:
                action = visitor(os.path.join(dirpath, name), True)
                if action == VisitAction.ABORT:
                    return False
                if action == VisitAction.CONTINUE:
                    kept.append(name)
            dirs[:] = kept

            for name in sorted(files):
                action = visitor(os.path.join(dirpath, name), False)
                if action == VisitAction.ABORT:
                    return False
        return True

    def discover_files(self, root: str, on_excluded: Optional[Callable[[str], None]] = None) -> List[str]:
        """Return the eligible files under root, in visiting order."""
        start = self._start_dir(root)
        if os.path.isfile(start):
            return [start] if self.is_supported(start) else []

        files: List[str] = []

        def visit(path: str, is_dir: bool) -> VisitAction:
            if is_dir:
                name = os.path.basename(path)
                if self.is_excluded(name):
                    if on_excluded:
                        on_excluded(name)
                    return VisitAction.SKIP_SUBTREE
                return VisitAction.CONTINUE
            if self.is_supported(path):
                files.append(path)
            return VisitAction.CONTINUE

        self.walk(start, visit)
        return files

    def _display_root(self, root: str) -> str:
        return root if os.path.isdir(root) else os.path.dirname(os.path.abspath(root))

    def scan_all(self, root: str) -> List[Finding]:
        """Scan every eligible file under root and return the findings."""
        return self.scan(root).findings

    def scan(self, root: str) -> ScanResult:
        """
        Scan root with the built-in rules.

        Returns a ScanResult; per-file problems end up in its errors list.
        """
        start_time = time.time()
        scanner = FileScanner(self.config)
        files = self.discover_files(root)
        base = self._display_root(root)

        jobs = [(path, relative_path(path, base)) for path in files]
        all_findings: List[Finding] = []
        for findings in self._run(scanner, jobs):
            all_findings.extend(findings)

        elapsed_time = time.time() - start_time
        return ScanResult(
            findings=all_findings,
            files_scanned=len(files),
            scan_time_seconds=round(elapsed_time, 3),
            errors=list(scanner.errors),
        )

    def _run(self, scanner: FileScanner, jobs: List[Tuple[str, str]]) -> Iterable[List[Finding]]:
        """Scan files, in parallel when configured, yielding in discovery order."""
        if len(jobs) > 1 and self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = [executor.submit(scanner.scan_file, path, rel) for path, rel in jobs]
                for future in futures:
                    yield future.result()
        else:
            for path, rel in jobs:
                yield scanner.scan_file(path, rel)

    def dry_run(self, root: str) -> DryRunInfo:
        """
        Report what a scan would cover without running any rules.

        Records each eligible file with its line count and the distinct
        excluded directory names met during the walk.
        """
        info = DryRunInfo()
        files = self.discover_files(root, on_excluded=info.add_excluded)
        base = self._display_root(root)

        for path in files:
            try:
                lines = count_lines(read_text(path))
            except OSError as e:
                logger.warning("Skipping unreadable file %s: %s", path, e)
                continue
            info.files.append(FileInfo(path=relative_path(path, base), lines=lines))
        return info

    def run(self, root: str, use_external: Optional[bool] = None) -> ScanResult:
        """
        Full scan entry point.

        Delegates to the project's `.guardian/guardian.py` when present and
        enabled, falling back to the built-in scan if the script fails.
        """
        if use_external is None:
            use_external = self.config.project.use_external_script

        if use_external and os.path.isdir(root):
            script = find_guardian_script(root)
            if script:
                result = run_guardian_script(
                    root, script, timeout=self.config.project.script_timeout,
                )
                if result is not None:
                    return result
                logger.info("Falling back to built-in scan for %s", root)

        return self.scan(root)
