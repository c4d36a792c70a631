import pytest
from sqlalchemy.ext.asyncio import AsyncSession

import core
from api.dependencies import get_db
from core.config import Settings


def test_settings_fields():
    assert set(Settings.model_fields) == {
        "DATABASE_URL",
        "API_HOST",
        "API_PORT",
        "ENVIRONMENT",
        "LOG_LEVEL",
        "ENFORCE_STAGE_GATES",
        "SOURCES_DIR",
        "STORIES_DIR",
        "DATA_DIR",
        "EXPORT_DIR",
        "EXPORT_SCHEDULE_ENABLED",
        "EXPORT_INTERVAL_MINUTES",
        "CZML_DOCUMENT_NAME",
    }


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("ENFORCE_STAGE_GATES", "false")
    monkeypatch.setenv("EXPORT_INTERVAL_MINUTES", "5")
    monkeypatch.delenv("DATABASE_URL", raising=False)

    settings = Settings(_env_file=None)

    assert settings.ENFORCE_STAGE_GATES is False
    assert settings.EXPORT_INTERVAL_MINUTES == 5
    assert settings.DATABASE_URL == "sqlite+aiosqlite:///./data-geo.db"


@pytest.mark.asyncio
async def test_get_db_is_the_only_session_dependency():
    assert "get_session" not in core.__all__

    sessions = get_db()
    session = await sessions.__anext__()
    try:
        assert isinstance(session, AsyncSession)
    finally:
        await sessions.aclose()
