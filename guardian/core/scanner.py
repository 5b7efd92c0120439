"""
File scanner.

Reads one source file, tracks multi-line string and block comment state
across its lines, runs the line classifier on each line and adds the
file-level checks (file size, function size).
"""

import ast
import logging
import os
import re
from typing import Dict, List, Optional, Any

from guardian.config import GuardianConfig
from guardian.core import rules
from guardian.core.classifier import (
    LineClassifier, ScanState, is_comment_line, outside_string, PYTHON, JAVASCRIPT,
)
from guardian.core.findings import Finding
from guardian.utils import read_text, split_lines


logger = logging.getLogger(__name__)


LANGUAGE_EXTENSIONS: Dict[str, List[str]] = {
    PYTHON: [".py"],
    JAVASCRIPT: [".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx"],
}

EXTENSION_TO_LANGUAGE: Dict[str, str] = {}
for lang, exts in LANGUAGE_EXTENSIONS.items():
    for ext in exts:
        EXTENSION_TO_LANGUAGE[ext] = lang

SUPPORTED_EXTENSIONS = frozenset(EXTENSION_TO_LANGUAGE)


def detect_language(file_path: str) -> Optional[str]:
    """Detect the language of a file from its extension."""
    ext = os.path.splitext(file_path)[1].lower()
    return EXTENSION_TO_LANGUAGE.get(ext)


# Docstring or string opening at the start of a line, with optional prefix
PY_BLOCK_START = re.compile(r'^[rRbBuUfF]{0,2}("""|\'\'\')')
TRIPLE_QUOTE_RE = re.compile(r'"""|\'\'\'')

JS_BLOCK_OPEN = "/*"
JS_BLOCK_CLOSE = "*/"

JS_FUNCTION_HEADERS = [
    re.compile(r"^\s*(?:export\s+)?(?:default\s+)?(?:async\s+)?function\s*\*?\s*(\w+)\s*\("),
    re.compile(r"^\s*(?:export\s+)?(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s+)?(?:function\b|\([^)]*\)\s*(?::\s*[^=]+)?=>|\w+\s*=>)"),
    re.compile(r"^\s*(?:(?:public|private|protected|static|async|get|set)\s+)*(\w+)\s*\([^)]*\)\s*(?::\s*[^{]+)?\{"),
]
JS_NOT_FUNCTIONS = frozenset({
    "if", "for", "while", "switch", "catch", "with", "return", "function", "else",
})


def track_python_block(line: str, trimmed: str, state: ScanState) -> bool:
    """
    Update state for a Python line.

    Returns True when, after this line is classified, a triple-quoted
    string opened mid-line stays open.
    """
    if state.in_multiline_string:
        state.line_in_block = True
        if state.string_delimiter in line:
            state.in_multiline_string = False
            state.string_delimiter = ""
        return False

    match = PY_BLOCK_START.match(trimmed)
    if match:
        delimiter = match.group(1)
        state.line_in_block = True
        if trimmed.count(delimiter) % 2 == 1:
            state.in_multiline_string = True
            state.string_delimiter = delimiter
        return False

    state.line_in_block = False
    return True


def open_midline_string(line: str, state: ScanState) -> None:
    """
    Enter the multi-line state if a triple-quoted string opens mid-line.

    Only a delimiter outside any ordinary string literal counts, so
    `"wrap in ''' quotes"` leaves the state alone.
    """
    for match in TRIPLE_QUOTE_RE.finditer(line):
        if not outside_string(line[:match.start()]):
            continue
        delimiter = match.group()
        if line.count(delimiter, match.start()) % 2 == 1:
            state.in_multiline_string = True
            state.string_delimiter = delimiter
        return


def _code_after_close(trimmed: str, close_at: int) -> Optional[str]:
    tail = trimmed[close_at + len(JS_BLOCK_CLOSE):].strip()
    return tail or None


def track_js_block(trimmed: str, state: ScanState) -> Optional[str]:
    """
    Update state for a JavaScript/TypeScript line.

    Returns the code that follows a block comment closing on this line,
    or None.
    """
    if state.in_multiline_string:
        state.line_in_block = True
        close_at = trimmed.find(JS_BLOCK_CLOSE)
        if close_at < 0:
            return None
        state.in_multiline_string = False
        state.string_delimiter = ""
        return _code_after_close(trimmed, close_at)

    if trimmed.startswith(JS_BLOCK_OPEN):
        state.line_in_block = True
        close_at = trimmed.find(JS_BLOCK_CLOSE, len(JS_BLOCK_OPEN))
        if close_at < 0:
            state.in_multiline_string = True
            state.string_delimiter = JS_BLOCK_CLOSE
            return None
        return _code_after_close(trimmed, close_at)

    state.line_in_block = False
    return None


class FileScanner:
    """
    Scans single files against the enabled rules.

    One scanner can be shared by worker threads: classifiers are built up
    front and scanning keeps all per-file state local.
    """

    def __init__(self, config: Optional[GuardianConfig] = None):
        self.config = config or GuardianConfig()
        self.enabled = self.config.enabled_rules()
        self.errors: List[str] = []
        self._classifiers = {
            language: LineClassifier(language, self.config)
            for language in LANGUAGE_EXTENSIONS
        }

    def scan_file(self, file_path: str, display_path: Optional[str] = None) -> List[Finding]:
        """
        Scan a file on disk.

        Findings name the file by display_path when given. Unsupported
        extensions yield no findings; unreadable files are logged, recorded
        in `errors` and yield no findings. Any other failure while scanning
        is recorded the same way so sibling files are still scanned.
        """
        language = detect_language(file_path)
        if not language:
            return []

        try:
            content = read_text(file_path)
        except OSError as e:
            logger.warning("Skipping unreadable file %s: %s", file_path, e)
            self.errors.append(f"Error reading {file_path}: {e}")
            return []

        try:
            return self.scan_content(content, language, display_path or file_path)
        except Exception as e:
            logger.warning("Error scanning %s: %s", file_path, e)
            self.errors.append(f"Error scanning {file_path}: {e}")
            return []

    def scan_content(self, content: str, language: str, file_path: str = "<stdin>") -> List[Finding]:
        """
        Scan source text directly without reading from a file.

        Useful for editor integrations and testing.
        """
        lines = split_lines(content)
        findings: List[Finding] = []

        if rules.FILE_SIZE.rule_id in self.enabled:
            limit = self.config.file_limit(file_path)
            if len(lines) > limit:
                findings.append(Finding(
                    file_path=file_path,
                    line=1,
                    rule_id=rules.FILE_SIZE.rule_id,
                    message=rules.FILE_SIZE.message.format(lines=len(lines), limit=limit),
                ))

        classifier = self._classifiers[language]
        state = ScanState()
        for number, line in enumerate(lines, start=1):
            trimmed = line.strip()
            opens_midline = False
            code_tail = None
            if language == PYTHON:
                opens_midline = track_python_block(line, trimmed, state)
            else:
                code_tail = track_js_block(trimmed, state)
                if code_tail and is_comment_line(code_tail, language):
                    code_tail = None
            is_comment = is_comment_line(trimmed, language)

            for match in classifier.classify(line, trimmed, state, is_comment, code_tail):
                findings.append(Finding(file_path, number, match.rule_id, match.message))

            if opens_midline and not is_comment:
                open_midline_string(line, state)

        if rules.FUNC_SIZE.rule_id in self.enabled:
            findings.extend(self._check_function_size(content, lines, language, file_path))

        return findings

    def _check_function_size(
        self,
        content: str,
        lines: List[str],
        language: str,
        file_path: str,
    ) -> List[Finding]:
        limit = self.config.limits.max_function_lines
        if language == PYTHON:
            functions = self._python_functions(content, file_path)
        else:
            functions = self._js_functions(lines)

        findings = []
        for func in functions:
            length = func["end_line"] - func["start_line"] + 1
            if length > limit:
                findings.append(Finding(
                    file_path=file_path,
                    line=func["start_line"],
                    rule_id=rules.FUNC_SIZE.rule_id,
                    message=rules.FUNC_SIZE.message.format(
                        name=func["name"], lines=length, limit=limit,
                    ),
                ))
        return findings

    def _python_functions(self, content: str, file_path: str) -> List[Dict[str, Any]]:
        """Find Python functions and their extents with the ast module."""
        try:
            tree = ast.parse(content)
        except (SyntaxError, ValueError, RecursionError, MemoryError) as e:
            logger.debug("Skipping function size check for %s: %s", file_path, e)
            return []

        functions = []
        for node in ast.walk(tree):
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                functions.append({
                    "name": node.name,
                    "start_line": node.lineno,
                    "end_line": node.end_lineno or node.lineno,
                })
        functions.sort(key=lambda f: f["start_line"])
        return functions

    def _js_functions(self, lines: List[str]) -> List[Dict[str, Any]]:
        """Find JavaScript/TypeScript functions by header pattern and braces."""
        functions = []
        state = ScanState()
        i = 0
        while i < len(lines):
            trimmed = lines[i].strip()
            track_js_block(trimmed, state)
            name = None
            if not state.line_in_block and not is_comment_line(trimmed, JAVASCRIPT):
                name = self._js_function_name(lines[i])

            if name:
                end_line = self._find_block_end(lines, i)
                functions.append({
                    "name": name,
                    "start_line": i + 1,
                    "end_line": end_line,
                })
                i = end_line
                continue
            i += 1
        return functions

    @staticmethod
    def _js_function_name(line: str) -> Optional[str]:
        for pattern in JS_FUNCTION_HEADERS:
            match = pattern.match(line)
            if match and match.group(1) not in JS_NOT_FUNCTIONS:
                return match.group(1)
        return None

    @staticmethod
    def _find_block_end(lines: List[str], start_idx: int) -> int:
        """1-based line number closing the first brace block from start_idx."""
        brace_count = 0
        found_first = False
        for i in range(start_idx, len(lines)):
            for char in lines[i]:
                if char == "{":
                    brace_count += 1
                    found_first = True
                elif char == "}":
                    brace_count -= 1

            if found_first and brace_count <= 0:
                return i + 1
            # Arrow functions with an expression body end on their own line
            if not found_first and i == start_idx and "=>" in lines[i]:
                return i + 1
        return len(lines)
