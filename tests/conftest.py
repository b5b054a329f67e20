"""Shared pytest fixtures: fake clock, settings on temporary paths, temporary database."""
import pytest

from core.settings import Settings
from tests.helpers import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        snapshot_backend="file",
        snapshot_path=str(tmp_path / "cache" / "snapshot.json"),
        league_ids={"LCK": "1", "LEC": "2"},
        draft_request_delay=0.0,
        max_new_stats=100,
    )


@pytest.fixture
def db(test_settings):
    """Bind the database proxy to a fresh sqlite file with all tables."""
    from db.base import close_db, init_db

    init_db(test_settings.database_url)
    yield
    close_db()
