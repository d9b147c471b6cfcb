from pathlib import Path

import pytest
from pydantic import ValidationError

from braintest.config import Settings


def test_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.pexels_api_key == ""
    assert settings.stock_cache_hours == 24
    assert settings.encyclopedia_cache_hours == 48
    assert settings.db_path == Path(".braintest") / "braintest.db"


def test_plain_pexels_key_is_accepted(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PEXELS_API_KEY", "plain-key")
    assert Settings(_env_file=None).pexels_api_key == "plain-key"


def test_prefixed_variables_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("BRAINTEST_PEXELS_API_KEY", "prefixed-key")
    monkeypatch.setenv("PEXELS_API_KEY", "plain-key")
    monkeypatch.setenv("BRAINTEST_DB_PATH", str(tmp_path / "env.db"))
    settings = Settings(_env_file=None)
    assert settings.pexels_api_key == "prefixed-key"
    assert settings.db_path == tmp_path / "env.db"


def test_env_file(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("BRAINTEST_HTTP_TIMEOUT=2.5\nBRAINTEST_LOG_LEVEL=debug\n", encoding="utf-8")
    settings = Settings(_env_file=env_file)
    assert settings.http_timeout == 2.5
    assert settings.log_level == "DEBUG"


def test_rejects_non_positive_windows() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, stock_cache_hours=0)


def test_rejects_unknown_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BRAINTEST_LOG_LEVEL", "verbose")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
