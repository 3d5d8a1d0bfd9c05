import toml
import yaml

from herebefore_backend.config.loader import ConfigLoader
from herebefore_backend.system.runtime import Runtime


def test_missing_file_is_created_with_defaults(tmp_path):
    path = tmp_path / "nested" / "config.toml"
    loader = ConfigLoader(str(path))

    config = loader.load()

    assert path.exists()
    assert config["notifications"]["hour"] == 9
    assert loader.get("database.path") == str(tmp_path / "nested" / "herebefore.db")
    assert loader.get("clock.timezone") == ""


def test_yaml_defaults(tmp_path):
    path = tmp_path / "config.yaml"

    loader = ConfigLoader(str(path))
    loader.load()

    assert yaml.safe_load(path.read_text())["checkins"]["cache_enabled"] is True
    assert loader.get("server.port") == 8000


def test_environment_placeholders(tmp_path, monkeypatch):
    monkeypatch.setenv("HB_REMINDER_HOUR", "20")
    path = tmp_path / "config.toml"
    path.write_text(
        "[notifications]\nhour = ${HB_REMINDER_HOUR}\ntitle = \"${HB_MISSING:Reflect}\"\n"
    )

    loader = ConfigLoader(str(path))
    loader.load()

    assert loader.get("notifications.hour") == 20
    assert loader.get("notifications.title") == "Reflect"


def test_get_with_default_for_missing_keys(tmp_path):
    loader = ConfigLoader(str(tmp_path / "config.toml"))
    loader.load()

    assert loader.get("notifications.sound", "default") == "default"
    assert loader.get("server.host.name") is None


def test_set_persists(tmp_path):
    path = tmp_path / "config.toml"
    loader = ConfigLoader(str(path))
    loader.load()

    assert loader.set("notifications.minute", 30) is True

    assert toml.loads(path.read_text())["notifications"]["minute"] == 30


def test_runtime_reads_notification_settings(tmp_path):
    path = tmp_path / "config.toml"
    loader = ConfigLoader(str(path))
    loader.load()
    loader.set("notifications.hour", 20)
    loader.set("clock.timezone", "UTC")

    runtime = Runtime.from_config(loader, db_path=str(tmp_path / "runtime.db"))

    assert runtime.scheduler.hour == 20
    assert runtime.coordinator.interval == 60
    assert runtime.clock.now().utcoffset().total_seconds() == 0
