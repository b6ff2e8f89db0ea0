from pathlib import Path

import pytest
import yaml

from guildwarden.configuration.app_configuration import OWNER_ID_ENV, AppConfig


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "app_config.yml"


@pytest.fixture(autouse=True)
def clear_owner_env(monkeypatch):
    monkeypatch.delenv(OWNER_ID_ENV, raising=False)


def test_app_config_reload_parses_yaml(config_path: Path) -> None:
    config_payload = {
        "owner_id": 1234,
        "default_settings": {"max_urls_in_message": 5},
        "commands": {"ping": {"access": ["all"]}},
        "guilds": {555: {"settings": {"enable_quiet_mode": True}}},
    }
    config_path.write_text(yaml.safe_dump(config_payload), encoding="utf-8")

    config = AppConfig(config_path)

    assert config.owner_id == "1234"
    assert config.default_settings == {"max_urls_in_message": 5}
    assert config.default_commands == {"ping": {"access": ["all"]}}
    assert config.guilds == {"555": {"settings": {"enable_quiet_mode": True}}}


def test_app_config_missing_file_returns_defaults(tmp_path: Path) -> None:
    config = AppConfig(tmp_path / "does_not_exist.yml")

    assert config.reload() == {}
    assert config.owner_id == ""
    assert config.default_settings == {}
    assert config.guilds == {}


def test_app_config_non_mapping_top_level(config_path: Path) -> None:
    config_path.write_text("- just\n- a list\n", encoding="utf-8")
    assert AppConfig(config_path).load_from_disk() == {}


def test_app_config_invalid_yaml(config_path: Path) -> None:
    config_path.write_text("guilds: [unclosed\n", encoding="utf-8")
    assert AppConfig(config_path).load_from_disk() == {}


def test_app_config_non_mapping_section_is_ignored(config_path: Path) -> None:
    config_path.write_text("guilds: [1, 2]\ndefault_settings: 3\n", encoding="utf-8")
    config = AppConfig(config_path)
    assert config.guilds == {}
    assert config.default_settings == {}


def test_owner_id_env_overrides_file(config_path: Path, monkeypatch) -> None:
    config_path.write_text("owner_id: '1'\n", encoding="utf-8")
    monkeypatch.setenv(OWNER_ID_ENV, "2")
    assert AppConfig(config_path).owner_id == "2"


def test_reload_picks_up_changes(config_path: Path) -> None:
    config_path.write_text("owner_id: '1'\n", encoding="utf-8")
    config = AppConfig(config_path)
    config_path.write_text("owner_id: '2'\n", encoding="utf-8")

    assert config.owner_id == "1"
    config.reload()
    assert config.owner_id == "2"
