"""Tests for risk parameter configuration"""
import pytest
from lending_model.src import constants
from lending_model.src.config import DEFAULT_CONFIG, RiskConfig, load_config
from lending_model.src.errors import ConfigError
from lending_model.src.logging import get_logger

def test_default_config_matches_constants():
    assert DEFAULT_CONFIG.min_oracle_price == constants.MIN_ORACLE_PRICE
    assert DEFAULT_CONFIG.max_oracle_staleness == constants.MAX_ORACLE_STALENESS == 50
    assert DEFAULT_CONFIG.min_oracle_samples == constants.MIN_ORACLE_SAMPLES == 1
    assert DEFAULT_CONFIG.lif_cursor == constants.LIF_CURSOR
    assert DEFAULT_CONFIG.lif_bps == constants.LIF_BPS
    assert DEFAULT_CONFIG.max_lif == constants.MAX_LIF
    assert DEFAULT_CONFIG.validate() is DEFAULT_CONFIG

def test_load_config_env_overrides(monkeypatch):
    monkeypatch.setenv("LENDING_MAX_LIF", "12_000")
    monkeypatch.setenv("LENDING_MAX_ORACLE_STALENESS", "25")
    config = load_config()
    assert config.max_lif == 12_000
    assert config.max_oracle_staleness == 25
    assert config.lif_cursor == constants.LIF_CURSOR

def test_load_config_invalid_integer_keeps_default(monkeypatch):
    monkeypatch.setenv("LENDING_LIF_CURSOR", "not-a-number")
    config = load_config()
    assert config.lif_cursor == constants.LIF_CURSOR

def test_load_config_rejects_inconsistent_values(monkeypatch):
    monkeypatch.setenv("LENDING_MAX_LIF", "5000")
    with pytest.raises(ConfigError):
        load_config()

@pytest.mark.parametrize("overrides", [
    {"lif_bps": 0},
    {"max_lif": 9_999},
    {"min_oracle_samples": 0},
    {"min_oracle_price": 0},
    {"max_oracle_staleness": -1},
])
def test_validate_rejects(overrides):
    with pytest.raises(ConfigError):
        RiskConfig(**overrides).validate()

def test_get_logger_configures_once():
    logger = get_logger("lending_model.test_config")
    assert len(logger.handlers) == 1
    assert get_logger("lending_model.test_config") is logger
    assert len(logger.handlers) == 1
