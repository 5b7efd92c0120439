"""
Line classifier.

Decides which rules fire on a single physical line. This is deliberately a
line-oriented heuristic, not a tokenizer: it knows whether the line is a
comment and whether it lies inside a multi-line string or block comment
(tracked by the file scanner), and for the eval/exec family it counts
quotes before the match to tell a real call from a mention inside a string.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Set, Tuple

from guardian.config import GuardianConfig
from guardian.core import rules
from guardian.core.rules import Rule


PYTHON = rules.PYTHON
JAVASCRIPT = rules.JAVASCRIPT

COMMENT_MARKERS = {
    PYTHON: "#",
    JAVASCRIPT: "//",
}


@dataclass
class ScanState:
    """
    Per-file state threaded through line-by-line processing.

    `in_multiline_string` and `string_delimiter` describe an open block
    (triple-quoted string or block comment) carried over to the next line.
    `line_in_block` is true while the current line lies, even partly, in
    such a block.
    """
    in_multiline_string: bool = False
    string_delimiter: str = ""
    line_in_block: bool = False


@dataclass(frozen=True)
class LineMatch:
    """A rule that fired on a line; the scanner adds file and line number."""
    rule_id: str
    message: str


# Matched against the lower-cased line.
MOCK_DATA_PATTERNS = [
    re.compile(p) for p in (
        r"test@example\.com",
        r"example@",
        r"@test\.com",
        r"fake_",
        r"_fake",
        r"mock_",
        r"_mock",
        r"dummy_",
        r"placeholder",
        r"test_user",
        r"test_password",
        r"changeme",
        r"your_.*_here",
    )
]

TODO_RE = re.compile(r"\b(?:TODO|FIXME|HACK|XXX)\b", re.IGNORECASE)

PRINT_RE = re.compile(r"(?<![\w.])print\s*\(")
CONSOLE_RE = re.compile(r"\bconsole\.(?:log|debug)\s*\(")
BARE_EXCEPT_RE = re.compile(r"^\s*except\s*:")
STAR_IMPORT_RE = re.compile(r"^\s*from\s+\S+\s+import\s+\*")

# The call must follow start of line, whitespace, an operator or a
# delimiter, so identifiers like `retrieval(` and methods like
# `model.eval()` do not count.
EVAL_CALL_RE = re.compile(r"(?:^|(?<=[\s=(\[{,;:!&|+\-*/%<>?^~]))(?:eval|exec)\s*\(")

DANGEROUS_PATTERNS = [
    re.compile(p, re.IGNORECASE) for p in (
        r"\brm\s+-(?=[a-z]*r)(?=[a-z]*f)[a-z]+\b",
        r"\bDROP\s+TABLE\b",
        r"\bDROP\s+DATABASE\b",
        r"\bDELETE\s+FROM\s+[\w.]+\s*(?:;|[\"'`]|$)",
        r"\bTRUNCATE\s+TABLE\b",
        r"\bshutil\.rmtree\s*\(",
        r"\brimraf(?:\.sync)?\s*\(",
        r"\bfs\.(?:rm|rmSync|rmdir|rmdirSync)\s*\(.*\brecursive\s*:\s*true\b",
    )
]

SECRET_NAMES = [
    "api_key", "apikey", "api-key",
    "secret", "password", "passwd",
    "private_key", "privatekey",
    "access_token", "auth_token",
]

# Cloud credential names, flagged wherever they appear, and literal key
# material with a well-known shape.
SECRET_MARKERS = [
    re.compile(r"\b(?:AWS_SECRET|PRIVATE_KEY)\w*", re.IGNORECASE),
    re.compile(r"-----BEGIN (?:[A-Z0-9]+ )*PRIVATE KEY-----"),
    re.compile(r"\bAKIA[0-9A-Z]{16}\b"),
]

SQL_VERBS = r"(?:SELECT|INSERT|UPDATE|DELETE)\b"

SQL_INJECTION_PATTERNS = [
    # f"SELECT ... {x}", rf'...', f"""..."""
    re.compile(r"(?<!\w)(?:[fF][rR]?|[rR][fF])(?:\"\"\"|'''|\"|')\s*" + SQL_VERBS),
    # "SELECT ... {}".format(x)
    re.compile(r"[\"']\s*" + SQL_VERBS + r"[^\"']*[\"']\s*\.format\s*\("),
    # "SELECT ... %s" % x
    re.compile(r"[\"']\s*" + SQL_VERBS + r"[^\"']*[\"']\s*%\s*[\w(\[]"),
    # "SELECT ... " + x
    re.compile(r"[\"']\s*" + SQL_VERBS + r"[^\"']*[\"']\s*\+\s*[\w(]"),
    # `SELECT ... ${x}`
    re.compile(r"`\s*" + SQL_VERBS + r"[^`]*\$\{"),
]

SHELL_PATTERNS = {
    PYTHON: [re.compile(r"\bshell\s*=\s*True\b")],
    JAVASCRIPT: [re.compile(r"\bshell\s*:\s*true\b")],
}


def is_comment_line(trimmed: str, language: str) -> bool:
    """True when the trimmed line starts with the language's comment marker."""
    marker = COMMENT_MARKERS.get(language)
    return bool(marker) and trimmed.startswith(marker)


def outside_string(prefix: str) -> bool:
    """
    Quote-parity check: is the end of `prefix` outside any string literal?

    Escaped quotes are dropped first, then both quote kinds must appear an
    even number of times. Lines with unusual escaping can fool this.
    """
    cleaned = prefix.replace('\\"', "").replace("\\'", "")
    return cleaned.count('"') % 2 == 0 and cleaned.count("'") % 2 == 0


def has_eval_call(line: str) -> bool:
    """True if any eval/exec call on the line lies outside a string literal."""
    for match in EVAL_CALL_RE.finditer(line):
        if outside_string(line[:match.start()]):
            return True
    return False


def _literal_pattern(text: str, flags: int = 0) -> re.Pattern:
    """Compile a configured substring, letting its spaces match any whitespace."""
    parts = [re.escape(p) for p in text.split()]
    return re.compile(r"\s+".join(parts), flags)


def _secret_assignment(names: List[str]) -> re.Pattern:
    alternation = "|".join(re.escape(n) for n in names)
    return re.compile(
        r"[\w-]*(?:" + alternation + r")[\w-]*[\"']?\s*[:=]\s*[\"'][^\"']+[\"']",
        re.IGNORECASE,
    )


def _any_match(patterns: List[re.Pattern]) -> Callable[[str], bool]:
    return lambda line: any(p.search(line) for p in patterns)


class LineClassifier:
    """
    Classifies single lines of one language under one configuration.

    Patterns are compiled once when the classifier is built; the per-line
    work is plain regex searching.
    """

    def __init__(self, language: str, config: Optional[GuardianConfig] = None):
        self.language = language
        self.config = config or GuardianConfig()
        self.enabled: Set[str] = self.config.enabled_rules()

        extra_mock = [
            _literal_pattern(p.lower()) for p in self.config.quality.mock_patterns if p.strip()
        ]
        self._mock_patterns = MOCK_DATA_PATTERNS + extra_mock

        extra_dangerous = [
            _literal_pattern(p, re.IGNORECASE)
            for p in self.config.security.dangerous_patterns if p.strip()
        ]
        secret_names = SECRET_NAMES + [
            n for n in self.config.security.secret_patterns if n.strip()
        ]

        # Order matters: findings on a line come out in this order.
        candidates: List[Tuple[Rule, Callable[[str], bool]]] = [
            (rules.MOCK_DATA, self._has_mock_data),
            (rules.BAN_PRINT, _any_match([PRINT_RE])),
            (rules.BAN_CONSOLE, _any_match([CONSOLE_RE])),
            (rules.BAN_EXCEPT, _any_match([BARE_EXCEPT_RE])),
            (rules.BAN_EVAL, has_eval_call),
            (rules.BAN_STAR, _any_match([STAR_IMPORT_RE])),
            (rules.TODO_MARKER, _any_match([TODO_RE])),
            (rules.DANGEROUS_CMD, _any_match(DANGEROUS_PATTERNS + extra_dangerous)),
            (rules.SECRET_PATTERN, _any_match([_secret_assignment(secret_names)] + SECRET_MARKERS)),
            (rules.SQL_INJECTION, _any_match(SQL_INJECTION_PATTERNS)),
            (rules.SUBPROCESS_SHELL, _any_match(SHELL_PATTERNS.get(language, []))),
        ]
        self._checks = [
            (rule, check) for rule, check in candidates
            if rule.rule_id in self.enabled and rule.supports_language(language)
        ]

    def _has_mock_data(self, line: str) -> bool:
        lowered = line.lower()
        return any(p.search(lowered) for p in self._mock_patterns)

    def classify(
        self,
        line: str,
        trimmed: str,
        state: ScanState,
        is_comment: bool,
        code_tail: Optional[str] = None,
    ) -> List[LineMatch]:
        """
        Return the rules that fire on one line.

        Comment lines and lines inside a multi-line string or block comment
        only get the rules that look inside strings (mock data, TODO markers).
        When a block comment closes on the line, `code_tail` is the code after
        it; the other rules are checked against that text alone.
        """
        suppressed = is_comment or state.line_in_block
        matches = []
        for rule, check in self._checks:
            text = line
            if suppressed and not rule.matches_in_strings:
                if code_tail is None:
                    continue
                text = code_tail
            if check(text):
                matches.append(LineMatch(rule.rule_id, rule.message))
        return matches
