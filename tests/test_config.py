import json

from streamfetch.utils.config import DEFAULT_USER_AGENT, Config


def test_defaults(tmp_path):
    config = Config(tmp_path / "missing.json")
    assert config.user_agent == DEFAULT_USER_AGENT
    assert config.timeout == 15
    assert config.max_retries == 5
    assert config.prefer_adaptive is True
    assert config.default_filter == ""
    assert config.log_level == "INFO"


def test_file_values_override_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"timeout": "30", "log_level": "debug", "prefer_adaptive": False}))
    config = Config(path)
    assert config.timeout == 30
    assert config.log_level == "DEBUG"
    assert config.prefer_adaptive is False
    assert config.max_retries == 5


def test_bad_values_fall_back(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"timeout": "soon", "max_retries": None}))
    config = Config(path)
    assert config.timeout == 15
    assert config.max_retries == 5


def test_corrupt_file_is_ignored(tmp_path, caplog):
    path = tmp_path / "settings.json"
    path.write_text("{not json")
    config = Config(path)
    assert config.timeout == 15
    assert "Could not read settings" in caplog.text


def test_non_object_file_is_ignored(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("[1, 2]")
    assert Config(path).timeout == 15


def test_set_persists(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    config = Config(path)
    config.set("default_filter", "type:audio,abr:best")
    assert json.loads(path.read_text())["default_filter"] == "type:audio,abr:best"
    assert Config(path).default_filter == "type:audio,abr:best"


def test_load_false_skips_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"timeout": 99}))
    assert Config(path, load=False).timeout == 15
