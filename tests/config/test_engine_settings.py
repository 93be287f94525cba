"""
Tests for YAML-driven engine settings and the get_active_config() entrypoint.
"""

import textwrap

import pytest
import yaml

from policy_config import CONFIG_ENV_VAR, get_active_config
from policy_config.loader import compute_checksum, load_yaml_file, merge_settings, parse_settings
from policy_config.schema import EngineSettings
from policy_kernel.exceptions import InvalidConfigError


def _write(tmp_path, text: str, name: str = "settings.yaml"):
    path = tmp_path / name
    path.write_text(textwrap.dedent(text))
    return path


@pytest.fixture(autouse=True)
def _no_env_override(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


class TestDefaults:

    def test_packaged_defaults(self):
        settings = get_active_config()

        assert settings.database_url == "sqlite:///:memory:"
        assert settings.echo_sql is False
        assert settings.log_level == "INFO"
        assert settings.record_traces is True
        assert settings.deduplicate_traces is True
        assert len(settings.checksum) == 64

    def test_settings_are_frozen(self):
        settings = get_active_config()
        with pytest.raises(AttributeError):
            settings.record_traces = False

    def test_checksum_is_stable(self):
        assert get_active_config().checksum == get_active_config().checksum


class TestOverrides:

    def test_config_path_overrides_defaults(self, tmp_path):
        path = _write(tmp_path, """
            record_traces: false
            log_level: debug
        """)
        settings = get_active_config(path)

        assert settings.record_traces is False
        assert settings.log_level == "DEBUG"
        assert settings.deduplicate_traces is True
        assert settings.checksum != get_active_config().checksum

    def test_env_var_names_override_file(self, tmp_path, monkeypatch):
        path = _write(tmp_path, 'database_url: "sqlite:///traces.db"\n')
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        assert get_active_config().database_url == "sqlite:///traces.db"

    def test_explicit_path_wins_over_env_var(self, tmp_path, monkeypatch):
        env_file = _write(tmp_path, "echo_sql: true\n", "env.yaml")
        arg_file = _write(tmp_path, "echo_sql: false\n", "arg.yaml")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(env_file))

        assert get_active_config(arg_file).echo_sql is False

    def test_empty_override_file_keeps_defaults(self, tmp_path):
        path = _write(tmp_path, "")
        assert get_active_config(path).record_traces is True

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")

    def test_config_trace_logged(self, tmp_path, captured_logs):
        path = _write(tmp_path, "deduplicate_traces: false\n")
        settings = get_active_config(path)

        traces = [r for r in captured_logs() if r["message"] == "POLICY_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["checksum"] == settings.checksum
        assert traces[0]["sources"][-1] == str(path)
        assert traces[0]["deduplicate_traces"] is False


class TestValidation:

    def test_unknown_key_rejected(self, tmp_path):
        path = _write(tmp_path, "record_trace: true\n")
        with pytest.raises(InvalidConfigError) as exc_info:
            get_active_config(path)
        assert exc_info.value.code == "INVALID_CONFIG"
        assert "record_trace" in exc_info.value.reason

    def test_wrong_type_rejected(self, tmp_path):
        path = _write(tmp_path, 'record_traces: "yes"\n')
        with pytest.raises(InvalidConfigError):
            get_active_config(path)

    def test_unknown_log_level_rejected(self, tmp_path):
        path = _write(tmp_path, "log_level: chatty\n")
        with pytest.raises(InvalidConfigError):
            get_active_config(path)

    def test_non_mapping_document_rejected(self, tmp_path):
        path = _write(tmp_path, "- a\n- b\n")
        with pytest.raises(InvalidConfigError):
            load_yaml_file(path)

    def test_malformed_yaml_propagates(self, tmp_path):
        path = _write(tmp_path, "key: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_yaml_file(path)


class TestLoaderHelpers:

    def test_merge_later_layers_win(self):
        assert merge_settings({"a": 1, "b": 1}, {"b": 2}) == {"a": 1, "b": 2}

    def test_checksum_ignores_key_order(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_parse_settings_fills_defaults(self):
        settings = parse_settings({})
        assert settings.database_url == EngineSettings.database_url
        assert settings.checksum == compute_checksum({})
