#!/usr/bin/env python3
"""
Test configuration loading and validation.
"""

import logging

import pytest
import yaml

from ratebudget.config import CONFIG_ENV_VAR, Configuration, RateLimitingSettings


def write_config(path, data):
    path.write_text(yaml.dump(data))
    return str(path)


@pytest.fixture(autouse=True)
def no_config_env(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


def test_packaged_config_loads():
    """The packaged config.yaml holds valid defaults."""
    settings = Configuration().get_rate_limiting_settings()
    assert isinstance(settings, RateLimitingSettings)
    assert settings.enabled is True
    assert settings.default_fill_rate == 2
    assert settings.default_max_budget == 1000


def test_explicit_path(tmp_path):
    path = write_config(
        tmp_path / "limits.yaml",
        {
            "rate_limiting": {
                "default_fill_rate": 1,
                "default_max_budget": 60,
                "unit_prefix": "ip:",
                "exempt_units": ["127.0.0.1"],
                "units": {"10.0.0.5": {"fill_rate": 0, "max_budget": 3}},
            }
        },
    )
    config = Configuration(path)
    settings = config.get_rate_limiting_settings()

    assert config.config_path == path
    assert settings.unit_prefix == "ip:"
    assert settings.exempt_units == frozenset({"127.0.0.1"})
    assert settings.units["10.0.0.5"].fill_rate == 0
    assert settings.units["10.0.0.5"].max_budget == 3


def test_env_var_path(tmp_path, monkeypatch):
    path = write_config(
        tmp_path / "env.yaml",
        {"rate_limiting": {"default_fill_rate": 7, "default_max_budget": 70}},
    )
    monkeypatch.setenv(CONFIG_ENV_VAR, path)
    assert Configuration().get_rate_limiting_settings().default_fill_rate == 7


def test_rate_limiting_requires_explicit_config(tmp_path):
    path = write_config(tmp_path / "empty.yaml", {"logging": {"level": "INFO"}})
    with pytest.raises(ValueError, match="rate_limiting must be explicitly configured"):
        Configuration(path).get_rate_limiting_settings()


@pytest.mark.parametrize(
    "section",
    [
        {"default_fill_rate": -1, "default_max_budget": 10},
        {"default_fill_rate": 1},
        {"default_fill_rate": 1, "default_max_budget": 10, "bogus": True},
        {
            "default_fill_rate": 1,
            "default_max_budget": 10,
            "units": {"x": {"fill_rate": 1, "max_budget": -2}},
        },
        ["not", "a", "mapping"],
    ],
)
def test_invalid_rate_limiting_section(tmp_path, section):
    path = write_config(tmp_path / "bad.yaml", {"rate_limiting": section})
    with pytest.raises(ValueError):
        Configuration(path).get_rate_limiting_settings()


def test_config_must_be_mapping(tmp_path):
    path = write_config(tmp_path / "list.yaml", ["a", "b"])
    with pytest.raises(ValueError, match="Config file must be YAML dict"):
        Configuration(path)


def test_config_dict_holds_raw_sections(tmp_path):
    data = {
        "rate_limiting": {"default_fill_rate": 3, "default_max_budget": 30},
        "logging": {"level": "DEBUG"},
    }
    path = write_config(tmp_path / "raw.yaml", data)
    assert Configuration(path).get_config_dict() == data


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Configuration(str(tmp_path / "missing.yaml"))


def test_apply_logging(tmp_path):
    path = write_config(
        tmp_path / "log.yaml",
        {
            "rate_limiting": {"default_fill_rate": 1, "default_max_budget": 1},
            "logging": {"level": "WARNING"},
        },
    )
    root = logging.getLogger()
    original_level = root.level
    try:
        Configuration(path).apply_logging()
        assert root.level == logging.WARNING
    finally:
        root.setLevel(original_level)
