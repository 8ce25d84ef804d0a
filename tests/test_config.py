# tests/test_config.py
import json

import pytest

from application.config import CONFIG_ENV_VAR, Config, get_config, load_config


def test_get_returns_nested_values():
    config = Config({"pool": {"size": 4}})
    assert config.get("pool", "size") == 4
    assert config.get("pool") == {"size": 4}


def test_get_falls_back_to_default():
    config = Config({"pool": {"size": 4}})
    assert config.get("pool", "missing", default="x") == "x"
    assert config.get("pool", "size", "deeper") is None


def test_get_config_before_load_raises():
    with pytest.raises(RuntimeError, match="load_config"):
        get_config()


def test_load_config_from_dict_is_process_wide(mock_config):
    loaded = load_config(data=mock_config)
    assert get_config() is loaded
    assert loaded.get("pool", "size") == 2


def test_load_config_only_initializes_once(mock_config):
    first = load_config(data=mock_config)
    second = load_config(data={"pool": {"size": 99}})
    assert second is first
    assert get_config().get("pool", "size") == 2


def test_load_config_reads_json_file(tmp_path):
    path = tmp_path / "pool.json"
    path.write_text(json.dumps({"pool": {"size": 7}}))
    assert load_config(str(path)).get("pool", "size") == 7


def test_load_config_honours_environment_variable(tmp_path, monkeypatch):
    path = tmp_path / "from_env.json"
    path.write_text(json.dumps({"workers": {"count": 11}}))
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    assert load_config().get("workers", "count") == 11


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.json"))
