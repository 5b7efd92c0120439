"""
Rule registry for the guardian scanner.

Rules are fixed, immutable descriptions of the conditions the scanner can
detect. The matching itself lives in the line classifier and file scanner;
this module only names the rules, their default messages, the languages
they apply to, and their severity.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from guardian.core.findings import Severity, get_severity


class RuleType(Enum):
    """Types of rules."""
    SECURITY = "security"
    CODE_QUALITY = "quality"


@dataclass(frozen=True)
class Rule:
    """Metadata for a rule."""
    rule_id: str
    name: str
    message: str
    rule_type: RuleType
    languages: Tuple[str, ...] = ("*",)
    # Fires inside comments, strings and docstrings too.
    matches_in_strings: bool = False

    @property
    def severity(self) -> Severity:
        return get_severity(self.rule_id)

    def supports_language(self, language: str) -> bool:
        """Check if this rule supports a given language."""
        return "*" in self.languages or language in self.languages


class RuleRegistry:
    """
    Registry of the known rules, keyed by rule id.

    Registration order is preserved so listings are stable.
    """

    def __init__(self):
        self._rules: Dict[str, Rule] = {}

    def register(self, rule: Rule) -> Rule:
        """Register a rule. Registering the same id twice is an error."""
        if rule.rule_id in self._rules:
            raise ValueError(f"Rule already registered: {rule.rule_id}")
        self._rules[rule.rule_id] = rule
        return rule

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        """Get a rule by ID."""
        return self._rules.get(rule_id)

    def get_all_rules(self) -> List[Rule]:
        """Get all registered rules."""
        return list(self._rules.values())

    def get_rules_for_language(self, language: str) -> List[Rule]:
        """Get all rules that apply to a given language."""
        return [r for r in self._rules.values() if r.supports_language(language)]


PYTHON = "python"
JAVASCRIPT = "javascript"

registry = RuleRegistry()

FILE_SIZE = registry.register(Rule(
    rule_id="file-size",
    name="File Too Long",
    message="File has {lines} lines (max {limit})",
    rule_type=RuleType.CODE_QUALITY,
))

FUNC_SIZE = registry.register(Rule(
    rule_id="func-size",
    name="Function Too Long",
    message="Function '{name}' has {lines} lines (max {limit})",
    rule_type=RuleType.CODE_QUALITY,
))

MOCK_DATA = registry.register(Rule(
    rule_id="mock-data",
    name="Mock Data",
    message="Possible test/mock data detected",
    rule_type=RuleType.CODE_QUALITY,
    matches_in_strings=True,
))

BAN_PRINT = registry.register(Rule(
    rule_id="ban-print",
    name="Print Statement",
    message="Remove print() - use logging instead",
    rule_type=RuleType.CODE_QUALITY,
    languages=(PYTHON,),
))

BAN_CONSOLE = registry.register(Rule(
    rule_id="ban-console",
    name="Console Log",
    message="Remove console.log() - use proper logging",
    rule_type=RuleType.CODE_QUALITY,
    languages=(JAVASCRIPT,),
))

BAN_EXCEPT = registry.register(Rule(
    rule_id="ban-except",
    name="Bare Except",
    message="Avoid bare except: - catch specific exceptions",
    rule_type=RuleType.CODE_QUALITY,
    languages=(PYTHON,),
))

BAN_EVAL = registry.register(Rule(
    rule_id="ban-eval",
    name="Dynamic Code Execution",
    message="Avoid eval()/exec() - security risk",
    rule_type=RuleType.SECURITY,
))

BAN_STAR = registry.register(Rule(
    rule_id="ban-star",
    name="Wildcard Import",
    message="Avoid wildcard imports - import specific names",
    rule_type=RuleType.CODE_QUALITY,
    languages=(PYTHON,),
))

TODO_MARKER = registry.register(Rule(
    rule_id="todo-marker",
    name="TODO Marker",
    message="Resolve TODO/FIXME before committing",
    rule_type=RuleType.CODE_QUALITY,
    matches_in_strings=True,
))

DANGEROUS_CMD = registry.register(Rule(
    rule_id="dangerous-cmd",
    name="Dangerous Command",
    message="Dangerous command detected - review carefully",
    rule_type=RuleType.SECURITY,
))

SECRET_PATTERN = registry.register(Rule(
    rule_id="secret-pattern",
    name="Hardcoded Secret",
    message="Possible hardcoded secret - use environment variables",
    rule_type=RuleType.SECURITY,
))

SQL_INJECTION = registry.register(Rule(
    rule_id="sql-injection",
    name="SQL Injection",
    message="Interpolated string in SQL query - use parameterized queries",
    rule_type=RuleType.SECURITY,
))

SUBPROCESS_SHELL = registry.register(Rule(
    rule_id="subprocess-shell",
    name="Shell Execution",
    message="Avoid shell=True in subprocess - security risk",
    rule_type=RuleType.SECURITY,
))
