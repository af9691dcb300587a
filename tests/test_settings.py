# tests/test_settings.py
import pytest

from petsocial_moderation.core.settings import Settings


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("sqlite+aiosqlite:///./mod.db", "sqlite:///./mod.db"),
        ("postgresql+asyncpg://u:p@db/mod", "postgresql://u:p@db/mod"),
        ("postgresql://u:p@db/mod", "postgresql://u:p@db/mod"),
    ],
)
def test_sync_url_drops_async_driver(url: str, expected: str) -> None:
    assert Settings(DATABASE_URL=url).database_url_sync == expected


def test_test_database_override() -> None:
    cfg = Settings(
        DATABASE_URL="sqlite:///prod.db",
        TEST_DATABASE_URL="sqlite:///test.db",
        USE_TEST_DATABASE=True,
    )
    assert cfg.effective_database_url == "sqlite:///test.db"


def test_escalation_thresholds_default() -> None:
    assert Settings().escalation_thresholds == {"urgent": 10, "high": 5, "medium": 2}
