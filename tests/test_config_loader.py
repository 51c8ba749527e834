"""Tests for portalexport.config.loader module."""

import pytest
import yaml

from portalexport.agents.base import ConfigError, ExportStatus
from portalexport.config.loader import (
    DEFAULT_CONFIG,
    load_config,
    load_credentials,
    merge_config,
    resolve_account_id,
)


class TestLoadConfig:
    def test_no_path_returns_defaults(self):
        result = load_config()

        assert result == DEFAULT_CONFIG
        assert result is not DEFAULT_CONFIG

    def test_defaults_are_not_shared(self):
        """Mutating a loaded config leaves the defaults untouched."""
        result = load_config()
        result["texts"]["login"].append("Log on")

        assert DEFAULT_CONFIG["texts"]["login"] == ["Login", "Sign in"]

    def test_yaml_overrides_defaults(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"portal": {"url": "https://portal.test/"}}))

        result = load_config(config_file)

        assert result["portal"]["url"] == "https://portal.test/"
        assert result["portal"]["default_account_id"] == "7125150"

    def test_selector_sets_replace_whole_list(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"selectors": {"email": ["#login-email"]}}))

        result = load_config(config_file)

        assert result["selectors"]["email"] == ["#login-email"]
        assert result["selectors"]["password"] == DEFAULT_CONFIG["selectors"]["password"]

    def test_file_not_found_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_config(tmp_path / "nonexistent.yaml")

    def test_accepts_str_path(self, tmp_path):
        config_file = tmp_path / "str_path.yaml"
        config_file.write_text(yaml.dump({"texts": {"export": ["Download"]}}))

        assert load_config(str(config_file))["texts"]["export"] == ["Download"]

    def test_empty_yaml_returns_defaults(self, tmp_path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        assert load_config(config_file) == DEFAULT_CONFIG

    def test_non_mapping_yaml_is_config_error(self, tmp_path):
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            load_config(config_file)

    def test_shipped_template_loads(self):
        from portalexport.cli.wizard import TEMPLATES_DIR

        result = load_config(TEMPLATES_DIR / "portalexport.yaml")

        assert result["records"]["link_pattern"] == r"^\d{5,}$"
        assert result["texts"]["export"] == ["Export Invoice Details", "Export"]


class TestMergeConfig:
    def test_override_values_win(self):
        result = merge_config({"timeout": 500}, {"timeout": 100, "headless": True})

        assert result == {"timeout": 500, "headless": True}

    def test_nested_dicts_are_merged(self):
        defaults = {"browser": {"type": "chromium", "headless": True}}

        result = merge_config({"browser": {"headless": False}}, defaults)

        assert result["browser"] == {"type": "chromium", "headless": False}

    def test_defaults_not_mutated(self):
        defaults = {"browser": {"type": "chromium"}}

        merge_config({"browser": {"headless": False}}, defaults)

        assert "headless" not in defaults["browser"]

    def test_non_dict_value_replaces_dict(self):
        result = merge_config({"browser": "disabled"}, {"browser": {"type": "chromium"}})

        assert result["browser"] == "disabled"


class TestLoadCredentials:
    def test_reads_environment(self):
        creds = load_credentials({"PORTAL_EMAIL": "ops@example.com", "PORTAL_PASSWORD": "pw"})

        assert creds.email == "ops@example.com"
        assert creds.password == "pw"

    @pytest.mark.parametrize(
        "environ",
        [{}, {"PORTAL_EMAIL": "ops@example.com"}, {"PORTAL_EMAIL": "x", "PORTAL_PASSWORD": ""}],
    )
    def test_missing_credentials_is_config_error(self, environ):
        with pytest.raises(ConfigError, match="PORTAL_EMAIL and PORTAL_PASSWORD") as exc_info:
            load_credentials(environ)

        assert exc_info.value.status == ExportStatus.CONFIG_ERROR


class TestResolveAccountId:
    def test_cli_value_wins(self):
        assert resolve_account_id("111", DEFAULT_CONFIG, {"PORTAL_ACCOUNT_ID": "222"}) == "111"

    def test_environment_next(self):
        assert resolve_account_id(None, DEFAULT_CONFIG, {"PORTAL_ACCOUNT_ID": "222"}) == "222"

    def test_configured_default_last(self):
        assert resolve_account_id(None, DEFAULT_CONFIG, {}) == "7125150"

    def test_no_source_is_config_error(self):
        with pytest.raises(ConfigError):
            resolve_account_id(None, {"portal": {}}, {})
