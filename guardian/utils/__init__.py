"""
Utility functions for the guardian scanner.
"""

import os
from typing import List


def read_text(file_path: str) -> str:
    """Read a source file as UTF-8, dropping undecodable bytes."""
    with open(file_path, "r", encoding="utf-8", errors="ignore") as f:
        return f.read()


def split_lines(content: str) -> List[str]:
    """
    Split file content into lines.

    A trailing newline does not produce an extra empty line, so a file with
    N lines ending in a newline yields N lines. Empty content yields none.
    """
    if not content:
        return []
    lines = content.split("\n")
    if content.endswith("\n"):
        lines.pop()
    return [line.rstrip("\r") for line in lines]


def count_lines(content: str) -> int:
    """Number of lines in file content, as reported by split_lines."""
    return len(split_lines(content))


def relative_path(file_path: str, root: str) -> str:
    """Path of file_path relative to root, with forward slashes."""
    rel = os.path.relpath(file_path, root)
    if rel == ".":
        rel = os.path.basename(file_path)
    return rel.replace(os.sep, "/")
