import json

import pytest

from Oven_Treats.config import config_store


def test_defaults_and_device_id_are_persisted(data_dir):
    cfg = config_store.load_config()

    assert cfg.database_mode == "local"
    assert cfg.device_id.startswith("device_")
    assert not cfg.auto_backup.enabled
    assert cfg.auto_backup.frequency == "weekly"
    assert cfg.auto_backup.max_backups == 5
    # same id on the next load
    assert config_store.get_device_id() == cfg.device_id
    assert (data_dir / config_store.CONFIG_FILENAME).exists()


def test_database_mode_round_trip():
    config_store.set_database_mode(" Supabase ")
    assert config_store.get_database_mode() == "supabase"
    with pytest.raises(ValueError):
        config_store.set_database_mode("oracle")


def test_auto_backup_settings_update():
    settings = config_store.update_auto_backup_settings(enabled=True, frequency="daily", max_backups=3)

    assert settings.enabled
    assert config_store.get_auto_backup_settings().frequency == "daily"
    assert config_store.get_auto_backup_settings().max_backups == 3

    with pytest.raises(ValueError):
        config_store.update_auto_backup_settings(frequency="hourly")
    with pytest.raises(ValueError):
        config_store.update_auto_backup_settings(colour="blue")


def test_record_auto_backup():
    config_store.record_auto_backup("2026-01-19T08:00:00+00:00")
    assert config_store.get_auto_backup_settings().last_backup == "2026-01-19T08:00:00+00:00"


def test_corrupt_or_odd_config_falls_back_to_defaults(data_dir):
    data_dir.mkdir(parents=True, exist_ok=True)
    path = data_dir / config_store.CONFIG_FILENAME

    path.write_text("{not json", encoding="utf-8")
    assert config_store.get_database_mode() == "local"

    path.write_text(
        json.dumps({"database_mode": "mainframe", "auto_backup": {"frequency": "yearly", "max_backups": "x"}}),
        encoding="utf-8",
    )
    cfg = config_store.load_config()
    assert cfg.database_mode == "local"
    assert cfg.auto_backup.frequency == "weekly"
    assert cfg.auto_backup.max_backups == 5


def test_backup_dir(data_dir, tmp_path):
    assert config_store.get_backup_dir() == data_dir / "backups"
    config_store.set_backup_dir(str(tmp_path / "elsewhere"))
    assert config_store.get_backup_dir() == tmp_path / "elsewhere"
    assert (tmp_path / "elsewhere").is_dir()
