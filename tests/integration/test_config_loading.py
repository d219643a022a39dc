"""Integration tests for the typed configuration loader."""

from __future__ import annotations

from decimal import Decimal
from textwrap import dedent

import pytest

from logifin.domain.errors import ConfigError
from logifin.shared.config import load_config


def test_env_overrides_yaml(tmp_path, monkeypatch):
    yaml_contents = dedent(
        """
        api:
          base_url: "https://backoffice.example/api"
        analytics:
          default_exchange_rate: 62.5
          revenue_months: 6
        """
    )
    yaml_path = tmp_path / "config.yaml"
    yaml_path.write_text(yaml_contents)

    monkeypatch.setenv("LOGIFIN_CONFIG_FILE", str(yaml_path))

    config = load_config(reload=True)
    assert config.api.base_url == "https://backoffice.example/api"
    assert config.analytics.default_exchange_rate == Decimal("62.5")
    assert config.analytics.revenue_months == 6
    assert config.analytics.treasury_days == 30
    assert config.analytics.recent_items == 10

    monkeypatch.setenv("LOGIFIN_ANALYTICS__REVENUE_MONTHS", "3")
    monkeypatch.setenv("LOGIFIN_API__TOKEN", "secret-token")
    config = load_config(reload=True)
    assert config.analytics.revenue_months == 3
    assert config.api.token == "secret-token"


def test_load_config_is_cached(tmp_path, monkeypatch):
    yaml_path = tmp_path / "config.yaml"
    yaml_path.write_text("analytics:\n  top_n: 3\n")
    monkeypatch.setenv("LOGIFIN_CONFIG_FILE", str(yaml_path))

    first = load_config(reload=True)

    assert load_config() is first
    assert first.analytics.top_n == 3


def test_invalid_values_raise_config_error(tmp_path, monkeypatch):
    yaml_path = tmp_path / "config.yaml"
    yaml_path.write_text("analytics:\n  default_exchange_rate: 0\n")
    monkeypatch.setenv("LOGIFIN_CONFIG_FILE", str(yaml_path))

    with pytest.raises(ConfigError):
        load_config(reload=True)


def test_missing_override_file_raises(tmp_path, monkeypatch):
    monkeypatch.setenv("LOGIFIN_CONFIG_FILE", str(tmp_path / "absent.yaml"))

    with pytest.raises(ConfigError):
        load_config(reload=True)
