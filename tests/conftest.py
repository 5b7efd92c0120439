"""
Shared fixtures for the guardian tests.
"""

import os
import sys

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from guardian.config import GuardianConfig
from guardian.core.scanner import FileScanner, detect_language


@pytest.fixture
def config():
    """Default configuration with the external script disabled."""
    cfg = GuardianConfig()
    cfg.project.use_external_script = False
    return cfg


@pytest.fixture
def scan():
    """Scan source text as if it were a file with the given name."""
    def _scan(code, filename="test.py", config=None):
        scanner = FileScanner(config)
        return scanner.scan_content(code, detect_language(filename), filename)
    return _scan


@pytest.fixture
def make_tree(tmp_path):
    """Write a {relative path: content} mapping under tmp_path."""
    def _make(files):
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path
    return _make
