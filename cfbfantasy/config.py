"""Application configuration management."""

import os
from functools import lru_cache
from pathlib import Path

from .schemas import AppConfig
from .utils import load_json

CONFIG_PATH_ENV = 'CFB_CONFIG_PATH'
DATABASE_URL_ENV = 'CFB_DATABASE_URL'

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / 'data' / 'cfb_config.json'


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """
    Load application configuration from data/cfb_config.json.

    The path can be overridden with CFB_CONFIG_PATH and the database URL
    with CFB_DATABASE_URL. Configuration is cached after first load.

    Returns:
        AppConfig object with validated settings

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ConfigError: If the config file has invalid structure

    Example:
        from cfbfantasy.config import get_config
        config = get_config()
        print(f"Database: {config.database_url}")
    """
    config_path = Path(os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH))
    config = load_json(config_path, schema=AppConfig)

    database_url = os.environ.get(DATABASE_URL_ENV)
    if database_url:
        config = config.model_copy(update={'database_url': database_url})

    return config


def clear_config_cache() -> None:
    """
    Clear the configuration cache.

    Use this if the config file or environment changes during runtime
    and you need to reload it.
    """
    get_config.cache_clear()
