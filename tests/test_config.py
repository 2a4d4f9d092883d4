import yaml

from azan.core.config import DEFAULT_CONFIG, Config, deep_merge


def test_creates_default_config_file(tmp_path):
    path = tmp_path / "conf" / "config.yaml"
    config = Config(config_path=str(path), watch=False)
    assert path.exists()
    assert config.data["prayer"]["window_days"] == 60
    assert yaml.safe_load(path.read_text())["scheduler"]["interval_days"] == 40


def test_section_merges_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"prayer": {"timezone": "Europe/Paris"}}))
    config = Config(config_path=str(path), watch=False)
    prayer = config.section("prayer")
    assert prayer["timezone"] == "Europe/Paris"
    assert prayer["stale_after_days"] == 40
    assert config.section("api")["port"] == 8765


def test_env_substitution(tmp_path, monkeypatch):
    monkeypatch.setenv("AZAN_DB", str(tmp_path / "x.db"))
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"database": {"path": "${AZAN_DB}"}}))
    config = Config(config_path=str(path), watch=False)
    assert config.section("database")["path"] == str(tmp_path / "x.db")


def test_env_file_is_loaded(tmp_path, monkeypatch):
    monkeypatch.delenv("AZAN_COUNTRY", raising=False)
    (tmp_path / ".env").write_text("# comment\nAZAN_COUNTRY='France'\n")
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"prayer": {"default_country": "$AZAN_COUNTRY"}}))
    config = Config(config_path=str(path), watch=False)
    assert config.section("prayer")["default_country"] == "France"
    monkeypatch.delenv("AZAN_COUNTRY", raising=False)


def test_invalid_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    config = Config(config_path=str(path), watch=False)
    assert config.data == DEFAULT_CONFIG


def test_reload_notifies_callbacks(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"logging": {"level": "INFO"}}))
    config = Config(config_path=str(path), watch=False)
    seen = []
    config.register_change_callback(seen.append)
    path.write_text(yaml.safe_dump({"logging": {"level": "DEBUG"}}))
    config.reload()
    assert seen[-1]["logging"]["level"] == "DEBUG"


def test_deep_merge_does_not_mutate_base():
    base = {"a": {"b": 1, "c": 2}}
    merged = deep_merge(base, {"a": {"b": 5}})
    assert merged == {"a": {"b": 5, "c": 2}}
    assert base == {"a": {"b": 1, "c": 2}}
