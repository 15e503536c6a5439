from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from todo_api.main import create_app
from todo_api.repositories import InMemoryRepository
from todo_api.settings import Settings

NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Test clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_settings(**overrides) -> Settings:
    values = dict(
        environment="development",
        persistence_backend="memory",
        sqlite_db_path="./data/todos.db",
        cors_allow_origins=["*"],
        log_level="INFO",
        default_page_size=20,
        max_page_size=100,
    )
    values.update(overrides)
    return Settings(**values)


def parse_ts(value: str) -> datetime:
    """Parse an API timestamp; 'Z' is spelled out for older fromisoformat."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def client(repo, clock):
    app = create_app(repository=repo, settings=make_settings(), clock=clock)
    return TestClient(app)
