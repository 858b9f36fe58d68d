"""Risk parameter configuration

Deployment parameters default to the values in constants.py and can be
overridden through environment variables (or a .env file).
"""
import os
from dataclasses import dataclass, fields, replace
from typing import Optional

from dotenv import load_dotenv

from .constants import (
    MIN_ORACLE_PRICE,
    MAX_ORACLE_STALENESS,
    MIN_ORACLE_SAMPLES,
    LIF_CURSOR,
    LIF_BPS,
    MAX_LIF,
)
from .errors import ConfigError
from .logging import get_logger

logger = get_logger("lending_model.config")

ENV_PREFIX = "LENDING_"


@dataclass(frozen=True)
class RiskConfig:
    """Market-independent parameters supplied by the deployment"""
    min_oracle_price: int = MIN_ORACLE_PRICE
    max_oracle_staleness: int = MAX_ORACLE_STALENESS  # slots
    min_oracle_samples: int = MIN_ORACLE_SAMPLES
    lif_cursor: int = LIF_CURSOR
    lif_bps: int = LIF_BPS
    max_lif: int = MAX_LIF

    def validate(self) -> "RiskConfig":
        """Reject parameter sets the liquidation math cannot work with"""
        if self.lif_bps == 0:
            raise ConfigError("lif_bps must be non-zero")
        if self.max_lif < self.lif_bps:
            raise ConfigError(f"max_lif {self.max_lif} is below 1.0 ({self.lif_bps})")
        if self.min_oracle_samples < 1:
            raise ConfigError("min_oracle_samples must be at least 1")
        if self.min_oracle_price == 0:
            raise ConfigError("min_oracle_price must be non-zero")
        for field in fields(self):
            if getattr(self, field.name) < 0:
                raise ConfigError(f"{field.name} must not be negative")
        return self


DEFAULT_CONFIG = RiskConfig()


def _get_env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value.replace("_", ""))
    except ValueError:
        logger.warning("Invalid integer value for %s: %s. Using default %s", key, value, default)
        return default


def load_config(base: Optional[RiskConfig] = None) -> RiskConfig:
    """Build a RiskConfig from LENDING_* environment overrides"""
    load_dotenv()
    base = base or DEFAULT_CONFIG
    overrides = {}
    for field in fields(RiskConfig):
        key = ENV_PREFIX + field.name.upper()
        overrides[field.name] = _get_env_int(key, getattr(base, field.name))
    config = replace(base, **overrides).validate()
    logger.debug("Loaded risk config: %s", config)
    return config
