# application/config.py
import json
import os
import threading

DEFAULT_CONFIG_FILE = "config.json"
CONFIG_ENV_VAR = "POOL_DEMO_CONFIG"


class Config:
    def __init__(self, data: dict):
        self.data = data

    @classmethod
    def from_file(cls, config_file):
        with open(config_file, "r") as f:
            return cls(json.load(f))

    def get(self, *keys, default=None):
        """
        Access nested configuration values.
        Example: config.get('pool', 'size')
        """
        value = self.data
        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default


# The process-wide instance. Set once by load_config(), never at import time.
_config = None
_config_lock = threading.Lock()


def load_config(config_file=None, data=None) -> Config:
    """
    Initializes the process-wide configuration.

    Call this once at startup, before anything calls get_config(). Later calls
    return the instance that is already loaded.

    Args:
        config_file: Path to a JSON file. Defaults to $POOL_DEMO_CONFIG, then
                     ./config.json.
        data: A ready-made dict, used instead of reading a file.
    """
    global _config
    with _config_lock:
        if _config is None:
            if data is not None:
                _config = Config(data)
            else:
                path = config_file or os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE)
                _config = Config.from_file(path)
        return _config


def get_config() -> Config:
    if _config is None:
        raise RuntimeError("Configuration has not been loaded. Call load_config() first.")
    return _config


def reset_config():
    """Forgets the loaded configuration. Only meant for tests."""
    global _config
    with _config_lock:
        _config = None
