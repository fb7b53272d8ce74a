"""
Configuration for vsize estimation.

All settings can be overridden via environment variables (or a .env file).
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

LOG_MODES = ("development", "production")


@dataclass
class VSizeConfig:
    """
    Settings shared by logging and fee estimation.

    Estimation itself has no settings: sizes are fixed constants.
    """

    # ==================== Logging ====================
    log_level: str = field(default_factory=lambda: os.getenv("UTXO_VSIZE_LOG_LEVEL", "INFO"))
    log_mode: str = field(
        default_factory=lambda: os.getenv("UTXO_VSIZE_LOG_MODE", "development")
    )  # development or production
    # No file logging unless set
    log_dir: Optional[str] = field(default_factory=lambda: os.getenv("UTXO_VSIZE_LOG_DIR") or None)

    # ==================== Fees ====================
    # Fee rates in sat/vB
    default_fee_rate: float = field(
        default_factory=lambda: float(os.getenv("UTXO_VSIZE_DEFAULT_FEE_RATE", "1.0"))
    )
    min_relay_fee_rate: float = field(
        default_factory=lambda: float(os.getenv("UTXO_VSIZE_MIN_RELAY_FEE_RATE", "1.0"))
    )

    def __post_init__(self):
        """Validate configuration after initialization"""
        self.log_level = self.log_level.upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"unknown log_level {self.log_level!r}")
        if self.log_mode not in LOG_MODES:
            raise ValueError(f"log_mode must be one of {LOG_MODES}, got {self.log_mode!r}")
        if self.default_fee_rate < 0:
            raise ValueError("default_fee_rate must not be negative")
        if self.min_relay_fee_rate < 0:
            raise ValueError("min_relay_fee_rate must not be negative")

    def to_dict(self) -> dict:
        """Convert configuration to dictionary"""
        return {field_name: getattr(self, field_name) for field_name in self.__dataclass_fields__}


# Singleton instance
_config: Optional[VSizeConfig] = None


def get_config() -> VSizeConfig:
    """
    Get the global configuration instance (singleton)

    Returns:
        VSizeConfig instance
    """
    global _config
    if _config is None:
        load_dotenv()
        _config = VSizeConfig()
    return _config


def reload_config(env_file: Optional[str] = None) -> VSizeConfig:
    """
    Reload configuration from environment variables

    Args:
        env_file: Optional .env file whose values override the environment

    Returns:
        New VSizeConfig instance
    """
    global _config
    if env_file is not None:
        load_dotenv(env_file, override=True)
    _config = VSizeConfig()
    return _config
