"""
Tests for configuration loading.
"""

import json

import pytest
import yaml

from guardian.config import (
    GuardianConfig, create_default_config, find_config, load_config,
    load_guardian_config, save_config,
)
from guardian.exceptions import ConfigError


class TestDefaults:
    """Tests for the default configuration."""

    def test_default_limits(self):
        config = GuardianConfig()
        assert config.limits.max_file_lines == 500
        assert config.limits.max_function_lines == 50
        assert config.project.max_workers == 1

    def test_all_rules_enabled_by_default(self):
        assert GuardianConfig().enabled_rules() == {
            "file-size", "func-size", "mock-data", "ban-print", "ban-console",
            "ban-except", "ban-eval", "ban-star", "todo-marker", "dangerous-cmd",
            "secret-pattern", "sql-injection", "subprocess-shell",
        }

    def test_flags_disable_rules(self):
        config = GuardianConfig()
        config.quality.ban_todo_markers = False
        config.security.ban_sql_injection = False
        enabled = config.enabled_rules()
        assert "todo-marker" not in enabled
        assert "sql-injection" not in enabled
        assert "ban-eval" in enabled

    def test_file_limit_patterns(self):
        config = GuardianConfig()
        config.limits.custom_file_limits = {"migrations/*.py": 2000, "generated_*.ts": 5000}
        assert config.file_limit("migrations/0001.py") == 2000
        assert config.file_limit("web/generated_api.ts") == 5000
        assert config.file_limit("app.py") == 500


class TestFromDict:
    """Tests for building a config from raw data."""

    def test_partial_sections(self):
        config = GuardianConfig.from_dict({
            "limits": {"max_file_lines": 300},
            "quality": {"ban_print": False, "mock_patterns": ["acme_"]},
        })
        assert config.limits.max_file_lines == 300
        assert config.limits.max_function_lines == 50
        assert config.quality.ban_print is False
        assert config.quality.mock_patterns == ["acme_"]

    def test_unknown_keys_are_ignored(self):
        config = GuardianConfig.from_dict({"limits": {"max_file_lines": 10, "colour": "red"}, "extra": 1})
        assert config.limits.max_file_lines == 10

    @pytest.mark.parametrize("data", [
        {"limits": {"max_file_lines": "many"}},
        {"quality": {"ban_print": "no"}},
        {"security": {"secret_patterns": "token"}},
        {"limits": {"custom_file_limits": {"*.py": "big"}}},
        {"project": ["not", "a", "mapping"]},
        {"limits": {"max_file_lines": True}},
    ])
    def test_invalid_values(self, data):
        with pytest.raises(ConfigError):
            GuardianConfig.from_dict(data)

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError):
            GuardianConfig.from_dict(["limits"])

    def test_round_trip(self):
        config = GuardianConfig()
        config.project.exclude_dirs = ["generated"]
        config.security.dangerous_patterns = ["format c:"]
        assert GuardianConfig.from_dict(config.to_dict()) == config


class TestLoading:
    """Tests for reading configuration files."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "guardian_config.yaml"
        path.write_text("limits:\n  max_file_lines: 250\n", encoding="utf-8")
        assert load_guardian_config(str(path)).limits.max_file_lines == 250

    def test_load_json(self, tmp_path):
        path = tmp_path / ".guardian.json"
        path.write_text(json.dumps({"security": {"ban_secrets": False}}), encoding="utf-8")
        config = load_guardian_config(str(path))
        assert "secret-pattern" not in config.enabled_rules()

    def test_empty_file_means_defaults(self, tmp_path):
        path = tmp_path / "guardian_config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)) == {}

    def test_corrupt_yaml(self, tmp_path):
        path = tmp_path / "guardian_config.yaml"
        path.write_text("limits: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_guardian_config(str(path))

    def test_non_utf8_file(self, tmp_path):
        path = tmp_path / "guardian_config.yaml"
        path.write_bytes(b"limits:\n  max_file_lines: \xff\xfe\n")
        with pytest.raises(ConfigError):
            load_guardian_config(str(path))

    def test_corrupt_json(self, tmp_path):
        path = tmp_path / "guardian_config.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_top_level_list(self, tmp_path):
        path = tmp_path / "guardian_config.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(str(tmp_path / "absent.yaml"))

    def test_find_config_searches_upward(self, tmp_path):
        (tmp_path / ".guardian.yml").write_text("{}\n", encoding="utf-8")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config(str(nested)) == str(tmp_path / ".guardian.yml")

    def test_find_config_prefers_first_name(self, tmp_path):
        (tmp_path / ".guardian.yaml").write_text("{}\n", encoding="utf-8")
        (tmp_path / "guardian_config.yaml").write_text("{}\n", encoding="utf-8")
        assert find_config(str(tmp_path)) == str(tmp_path / "guardian_config.yaml")

    def test_no_config_found_gives_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setattr("guardian.config.find_config", lambda start_path=".": None)
        assert load_guardian_config(start_dir=str(tmp_path)) == GuardianConfig()


class TestWriting:
    """Tests for writing configuration files."""

    def test_default_config_content(self):
        data = yaml.safe_load(create_default_config())
        assert GuardianConfig.from_dict(data) == GuardianConfig()

    def test_save_yaml_and_json(self, tmp_path):
        config = GuardianConfig()
        config.limits.max_function_lines = 80
        for name in ("out.yaml", "out.json"):
            path = tmp_path / name
            save_config(config, str(path))
            assert load_guardian_config(str(path)) == config
