"""
Output formatters for scan results.

Provides multiple output formats including:
- Human-readable terminal output (rich)
- JSON for machine processing
- SARIF for IDE and code-scanning integration
"""

from guardian.formatters.cli import CLIFormatter
from guardian.formatters.json_formatter import JSONFormatter
from guardian.formatters.sarif import SARIFFormatter

__all__ = [
    "CLIFormatter",
    "JSONFormatter",
    "SARIFFormatter",
    "get_formatter",
]


def get_formatter(format_name: str, **kwargs):
    """Get a formatter by name."""
    formatters = {
        "text": CLIFormatter,
        "cli": CLIFormatter,
        "json": JSONFormatter,
        "sarif": SARIFFormatter,
    }

    formatter_class = formatters.get(format_name.lower())
    if formatter_class:
        return formatter_class(**kwargs)

    raise ValueError(f"Unknown format: {format_name}")
