from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from guildwarden import main


def test_load_environment_requires_token(monkeypatch):
    monkeypatch.setattr(main, "load_dotenv", lambda **kwargs: None)
    monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)
    with pytest.raises(SystemExit) as exc_info:
        main.load_environment()
    assert exc_info.value.code == 1


def test_load_environment_returns_token(monkeypatch):
    monkeypatch.setattr(main, "load_dotenv", lambda **kwargs: None)
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "token")
    assert main.load_environment() == "token"


def test_resolve_base_dir_honours_env(monkeypatch, tmp_path):
    monkeypatch.setenv("GUILDWARDEN_HOME", str(tmp_path))
    assert main.resolve_base_dir() == tmp_path.resolve()


def test_build_intents_enables_message_content():
    intents = main.build_intents()
    assert intents.message_content is True
    assert intents.members is True


@pytest.mark.asyncio
async def test_shutdown_runtime_closes_everything():
    bot = SimpleNamespace(is_closed=MagicMock(return_value=False), close=AsyncMock())
    manager = SimpleNamespace(shutdown=AsyncMock(side_effect=RuntimeError("late")))

    await main.shutdown_runtime(bot, manager)

    bot.close.assert_awaited_once()
    manager.shutdown.assert_awaited_once()


def test_main_maps_system_exit(monkeypatch):
    def fake_run(coro):
        coro.close()
        raise SystemExit(3)

    monkeypatch.setattr(main.os, "chdir", lambda path: None)
    monkeypatch.setattr(main.asyncio, "run", fake_run)
    assert main.main() == 3


def test_main_returns_async_exit_code(monkeypatch):
    def fake_run(coro):
        coro.close()
        return 0

    monkeypatch.setattr(main.os, "chdir", lambda path: None)
    monkeypatch.setattr(main.asyncio, "run", fake_run)
    assert main.main() == 0
