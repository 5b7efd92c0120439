"""
Configuration system for the guardian scanner.

Supports YAML and JSON configuration files for tuning limits, switching
rule families on and off, and extending the built-in pattern lists.
"""

import fnmatch
import json
import logging
from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
from typing import Dict, Any, Optional, List, Set

import yaml

from guardian.exceptions import ConfigError


logger = logging.getLogger(__name__)


# Configuration file names searched for, in priority order
CONFIG_FILE_NAMES = [
    "guardian_config.yaml",
    "guardian_config.yml",
    "guardian_config.json",
    ".guardian.yaml",
    ".guardian.yml",
    ".guardian.json",
]

DEFAULT_CONFIG_FILE = "guardian_config.yaml"


@dataclass
class ProjectConfig:
    """Traversal settings."""
    src_root: Optional[str] = None
    exclude_dirs: List[str] = field(default_factory=list)
    max_workers: int = 1
    use_external_script: bool = True
    script_timeout: float = 120.0


@dataclass
class LimitsConfig:
    """Size limits."""
    max_file_lines: int = 500
    max_function_lines: int = 50
    custom_file_limits: Dict[str, int] = field(default_factory=dict)


@dataclass
class QualityConfig:
    """Code quality rule switches."""
    ban_print: bool = True
    ban_console: bool = True
    ban_bare_except: bool = True
    ban_star_imports: bool = True
    ban_todo_markers: bool = True
    ban_mock_data: bool = True
    check_file_size: bool = True
    check_function_size: bool = True
    mock_patterns: List[str] = field(default_factory=list)


@dataclass
class SecurityConfig:
    """Security rule switches."""
    ban_eval_exec: bool = True
    ban_subprocess_shell: bool = True
    ban_dangerous_commands: bool = True
    ban_secrets: bool = True
    ban_sql_injection: bool = True
    dangerous_patterns: List[str] = field(default_factory=list)
    secret_patterns: List[str] = field(default_factory=list)


# Rule id -> (section, flag) that switches it on
RULE_FLAGS = {
    "file-size": ("quality", "check_file_size"),
    "func-size": ("quality", "check_function_size"),
    "mock-data": ("quality", "ban_mock_data"),
    "ban-print": ("quality", "ban_print"),
    "ban-console": ("quality", "ban_console"),
    "ban-except": ("quality", "ban_bare_except"),
    "ban-star": ("quality", "ban_star_imports"),
    "todo-marker": ("quality", "ban_todo_markers"),
    "ban-eval": ("security", "ban_eval_exec"),
    "dangerous-cmd": ("security", "ban_dangerous_commands"),
    "secret-pattern": ("security", "ban_secrets"),
    "sql-injection": ("security", "ban_sql_injection"),
    "subprocess-shell": ("security", "ban_subprocess_shell"),
}


@dataclass
class GuardianConfig:
    """
    Main configuration for the guardian scanner.

    Example YAML config:

    ```yaml
    project:
      exclude_dirs:
        - generated
      max_workers: 4

    limits:
      max_file_lines: 400
      max_function_lines: 60
      custom_file_limits:
        "migrations/*.py": 2000

    quality:
      ban_print: false
      mock_patterns:
        - "acme_test_"

    security:
      secret_patterns:
        - "signing_key"
    ```
    """
    project: ProjectConfig = field(default_factory=ProjectConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    quality: QualityConfig = field(default_factory=QualityConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)

    def enabled_rules(self) -> Set[str]:
        """Return the rule ids switched on by this configuration."""
        enabled = set()
        for rule_id, (section, flag) in RULE_FLAGS.items():
            if getattr(getattr(self, section), flag):
                enabled.add(rule_id)
        return enabled

    def file_limit(self, rel_path: str) -> int:
        """Max line count for a file, honouring custom per-pattern limits."""
        base = Path(rel_path).name
        for pattern, limit in self.limits.custom_file_limits.items():
            if fnmatch.fnmatch(rel_path, pattern) or fnmatch.fnmatch(base, pattern):
                return limit
        return self.limits.max_file_lines

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to a dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GuardianConfig":
        """
        Create config from a dictionary.

        Unknown keys are ignored. Values of the wrong type raise ConfigError.
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}")

        sections = {
            "project": ProjectConfig,
            "limits": LimitsConfig,
            "quality": QualityConfig,
            "security": SecurityConfig,
        }
        kwargs = {}
        for name, section_cls in sections.items():
            raw = data.get(name)
            if raw is None:
                continue
            if not isinstance(raw, dict):
                raise ConfigError(f"Section '{name}' must be a mapping")
            kwargs[name] = _build_section(name, section_cls, raw)
        return cls(**kwargs)


def _build_section(name: str, section_cls, raw: Dict[str, Any]):
    """Build one config section, checking value types against the defaults."""
    defaults = section_cls()
    values = {}
    for f in fields(section_cls):
        if f.name not in raw:
            continue
        value = raw[f.name]
        default = getattr(defaults, f.name)
        if not _type_matches(value, default, f.name):
            raise ConfigError(
                f"Invalid value for {name}.{f.name}: {value!r}"
            )
        values[f.name] = value
    return section_cls(**values)


def _type_matches(value: Any, default: Any, key: str) -> bool:
    if key == "src_root":
        return value is None or isinstance(value, str)
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, (int, float)):
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if isinstance(default, list):
        return isinstance(value, list) and all(isinstance(v, str) for v in value)
    if isinstance(default, dict):
        return isinstance(value, dict) and all(
            isinstance(k, str) and isinstance(v, int) and not isinstance(v, bool)
            for k, v in value.items()
        )
    return True


def load_config(path: str) -> Dict[str, Any]:
    """
    Load raw configuration data from a file.

    Supports YAML and JSON formats. Raises ConfigError when the file
    exists but cannot be read or parsed.
    """
    path = Path(path)

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}") from e

    try:
        if path.suffix == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Invalid configuration file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")
    return data


def find_config(start_path: str = ".") -> Optional[str]:
    """
    Find a configuration file by searching up the directory tree.

    Returns the path to the first config file found, or None.
    """
    current = Path(start_path).resolve()
    if current.is_file():
        current = current.parent

    while True:
        for name in CONFIG_FILE_NAMES:
            config_path = current / name
            if config_path.is_file():
                return str(config_path)
        if current == current.parent:
            return None
        current = current.parent


def load_guardian_config(path: Optional[str] = None, start_dir: str = ".") -> GuardianConfig:
    """
    Load a GuardianConfig from a file or create a default one.

    If path is None, searches for a config file starting from start_dir.
    A missing file is not an error; a corrupt one is.
    """
    if path is None:
        path = find_config(start_dir)

    if path is None:
        logger.debug("No configuration file found, using defaults")
        return GuardianConfig()

    logger.debug("Loading configuration from %s", path)
    return GuardianConfig.from_dict(load_config(path))


def create_default_config() -> str:
    """Create the default configuration file content."""
    return yaml.safe_dump(GuardianConfig().to_dict(), default_flow_style=False, sort_keys=False)


def save_config(config: GuardianConfig, path: str) -> None:
    """Write a configuration to disk in YAML or JSON, based on the suffix."""
    path = Path(path)
    if path.suffix == ".json":
        content = json.dumps(config.to_dict(), indent=2)
    else:
        content = yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False)
    path.write_text(content, encoding="utf-8")
