from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from optionledger.config import (
    CONSOLIDATE_ENV_VAR,
    MERGE_WINDOW_ENV_VAR,
    TOLERANCE_ENV_VAR,
    ConfigError,
    EngineConfig,
)


def test_defaults():
    config = EngineConfig()
    assert config.merge_window == timedelta(minutes=5)
    assert config.contract_multiplier == 100
    assert config.consolidate_fills is False
    assert config.consolidation_tolerance == Decimal("0.02")
    assert config.detect_covered_calls is True


def test_from_env_reads_overrides():
    config = EngineConfig.from_env(
        {
            MERGE_WINDOW_ENV_VAR: "60",
            CONSOLIDATE_ENV_VAR: "yes",
            TOLERANCE_ENV_VAR: "0.05",
        }
    )
    assert config.merge_window == timedelta(seconds=60)
    assert config.consolidate_fills is True
    assert config.consolidation_tolerance == Decimal("0.05")


def test_from_env_uses_process_environment(monkeypatch):
    monkeypatch.setenv(MERGE_WINDOW_ENV_VAR, "120")
    monkeypatch.delenv(CONSOLIDATE_ENV_VAR, raising=False)
    assert EngineConfig.from_env().merge_window == timedelta(minutes=2)


@pytest.mark.parametrize(
    "environ",
    [
        {MERGE_WINDOW_ENV_VAR: "soon"},
        {MERGE_WINDOW_ENV_VAR: "0"},
        {TOLERANCE_ENV_VAR: "two cents"},
    ],
)
def test_from_env_rejects_bad_values(environ):
    with pytest.raises(ConfigError):
        EngineConfig.from_env(environ)


def test_invalid_multiplier():
    with pytest.raises(ConfigError):
        EngineConfig(contract_multiplier=0)
