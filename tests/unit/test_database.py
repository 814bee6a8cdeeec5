import pytest

from inventory_sync.core.config import clear_settings_cache
from inventory_sync.core.exceptions import DatabaseError
from inventory_sync.database import create_engine_from_url, normalize_database_url


@pytest.mark.parametrize("url, expected", [
    ("postgres://u:p@db/inv", "postgresql+asyncpg://u:p@db/inv"),
    ("postgresql://u:p@db/inv", "postgresql+asyncpg://u:p@db/inv"),
    ("postgresql+asyncpg://u:p@db/inv", "postgresql+asyncpg://u:p@db/inv"),
    ("sqlite+aiosqlite://", "sqlite+aiosqlite://"),
])
def test_normalize_database_url(url, expected):
    assert normalize_database_url(url) == expected


def test_missing_database_url_raises(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "")
    clear_settings_cache()

    with pytest.raises(DatabaseError):
        create_engine_from_url()
