"""Tests for the configuration module."""

import pytest


@pytest.fixture
def fresh_settings():
    from feature_rules.config import reset_settings

    reset_settings()
    yield
    reset_settings()


def test_settings_loads():
    """Settings singleton loads without error."""
    from feature_rules.config import get_settings

    s = get_settings()
    assert s is not None
    assert s.rules.rules_dir is not None


def test_settings_defaults(fresh_settings):
    """Default values come from config/settings.yaml."""
    from feature_rules.config import get_settings

    s = get_settings()
    assert s.rules.rule_files == ["examples.yaml"]
    assert s.output.format == "table"
    assert s.trace_verbosity == 0
    assert (s.rules.rules_dir / "examples.yaml").exists()


def test_env_overrides(fresh_settings, monkeypatch):
    from feature_rules.config import get_settings

    monkeypatch.setenv("TRACE_VERBOSITY", "4")
    monkeypatch.setenv("OUTPUT_FORMAT", "json")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    s = get_settings()
    assert s.trace_verbosity == 4
    assert s.output.format == "json"
    assert s.log_level == "DEBUG"


def test_settings_is_singleton():
    from feature_rules.config import get_settings

    assert get_settings() is get_settings()
