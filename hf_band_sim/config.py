"""
Configuration module for the HF band simulation.
Centralizes all configuration settings and environment variables.
"""

import os
from dotenv import load_dotenv
from typing import List, Optional

import pytz

# Load environment variables
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


class Config:
    """Simulation configuration class."""

    DEBUG = os.getenv('HF_SIM_ENV') == 'development'

    # Propagation conditions
    SOLAR_FLUX_INDEX = _env_int('HF_SOLAR_FLUX_INDEX', 120)
    K_INDEX = _env_int('HF_K_INDEX', 3)
    SEASON = os.getenv('HF_SEASON', 'auto')
    AUTO_TIME_ENABLED = _env_bool('HF_AUTO_TIME', True)
    TIMEZONE = os.getenv('HF_TIMEZONE', 'UTC')

    # External data feeds
    EXTERNAL_DATA_ENABLED = _env_bool('HF_EXTERNAL_DATA', False)
    USE_DXVIEW_DATA = _env_bool('HF_USE_DXVIEW', False)
    USE_SWPC_DATA = _env_bool('HF_USE_SWPC', False)
    DXVIEW_URL = os.getenv('HF_DXVIEW_URL', 'https://hf.dxview.org/api/propagation')
    SWPC_URL = os.getenv('HF_SWPC_URL', 'https://services.swpc.noaa.gov/products/summary/solar-indices.json')
    FEED_TIMEOUT = _env_int('HF_FEED_TIMEOUT', 10)

    # Scheduler
    UPDATE_INTERVAL = _env_int('HF_UPDATE_INTERVAL', 300)  # 5 minutes
    EXTERNAL_UPDATE_INTERVAL = _env_int('HF_EXTERNAL_INTERVAL', 1800)  # 30 minutes

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL')
    LOG_FILE = os.getenv('LOG_FILE')
    LOG_MAX_BYTES = _env_int('LOG_MAX_BYTES', 10 * 1024 * 1024)  # 10MB
    LOG_BACKUP_COUNT = _env_int('LOG_BACKUP_COUNT', 5)

    @classmethod
    def validate(cls) -> List[str]:
        """Validate configuration values."""
        errors = []

        if cls.TIMEZONE not in pytz.all_timezones_set:
            errors.append(f"HF_TIMEZONE '{cls.TIMEZONE}' is not a known timezone")

        if cls.UPDATE_INTERVAL <= 0:
            errors.append("HF_UPDATE_INTERVAL must be positive")

        if cls.EXTERNAL_UPDATE_INTERVAL <= 0:
            errors.append("HF_EXTERNAL_INTERVAL must be positive")

        if cls.FEED_TIMEOUT <= 0:
            errors.append("HF_FEED_TIMEOUT must be positive")

        return errors

    @classmethod
    def is_production(cls) -> bool:
        """Check if running in production mode."""
        return not cls.DEBUG


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    UPDATE_INTERVAL = 60  # 1 minute for development


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SOLAR_FLUX_INDEX = 120
    K_INDEX = 3
    SEASON = 'auto'
    AUTO_TIME_ENABLED = True
    TIMEZONE = 'UTC'
    EXTERNAL_DATA_ENABLED = False
    USE_DXVIEW_DATA = False
    USE_SWPC_DATA = False
    FEED_TIMEOUT = 2
    LOG_FILE = None


# Configuration mapping
config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': ProductionConfig
}


def get_config(config_name: Optional[str] = None) -> Config:
    """Get configuration based on environment."""
    if config_name is None:
        config_name = os.getenv('HF_SIM_ENV', 'default')

    return config_map.get(config_name, config_map['default'])
