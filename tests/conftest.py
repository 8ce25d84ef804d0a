# tests/conftest.py
import copy
import threading

import pytest

from application import config as config_module
from application.config import Config
from domain.object_pool import ObjectPool
from domain.resources import TallyCounter


@pytest.fixture(autouse=True)
def fresh_config():
    """Every test starts without a process-wide configuration loaded."""
    config_module.reset_config()
    yield
    config_module.reset_config()


@pytest.fixture(scope="session")
def mock_config():
    """Provides a session-wide configuration dictionary small enough for fast tests."""
    return {
        "pool": {"size": 2, "acquire_timeout_seconds": 5.0},
        "resource": {"kind": "tally_counter", "options": {}},
        "workers": {
            "count": 4,
            "jobs_per_worker": 3,
            "hold_seconds": 0.005,
            "seed": 42,
        },
        "logging": {"level": "WARNING"},
    }


@pytest.fixture
def config_factory(mock_config):
    """
    Provides a function to build a Config with nested overrides, e.g.
    config_factory(pool={"size": 1}).
    """

    def _create_config(**overrides):
        data = copy.deepcopy(mock_config)
        for section, values in overrides.items():
            data.setdefault(section, {}).update(values)
        return Config(data)

    return _create_config


@pytest.fixture
def counter_pool():
    """A pool of two TallyCounters, closed after the test."""
    pool = ObjectPool(factory=TallyCounter, count=2)
    yield pool
    pool.close()


@pytest.fixture
def run_in_thread():
    """
    Starts `target` in a daemon thread and returns (thread, result dict, done event).
    The result dict gets either a "value" or an "error" key.
    """
    threads = []

    def _start(target, *args, **kwargs):
        result = {}
        done = threading.Event()

        def _runner():
            try:
                result["value"] = target(*args, **kwargs)
            except BaseException as e:
                result["error"] = e
            finally:
                done.set()

        thread = threading.Thread(target=_runner, daemon=True)
        thread.start()
        threads.append(thread)
        return thread, result, done

    yield _start
    for thread in threads:
        thread.join(timeout=5)
