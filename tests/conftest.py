"""Shared pytest fixtures for quote-bot tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from quote_bot.models import QuoteStore


@pytest.fixture
def db_path(tmp_path):
    """Path for a fresh database file. The store creates it on first use."""
    return tmp_path / "test_quotes.sqlite"


@pytest.fixture
def store(db_path):
    """A QuoteStore on a temporary database, closed after the test."""
    with QuoteStore(db_path) as quote_store:
        yield quote_store


@pytest.fixture
def interaction():
    """A stand-in for discord.Interaction with async reply methods."""
    mock = MagicMock()
    mock.user.id = 1000
    mock.response.is_done = MagicMock(return_value=False)
    mock.response.send_message = AsyncMock()
    mock.followup.send = AsyncMock()
    return mock


@pytest.fixture
def make_user():
    """Factory for stand-ins of discord.User."""

    def _make_user(user_id: int = 42, name: str = "alice") -> MagicMock:
        user = MagicMock()
        user.id = user_id
        user.name = name
        user.mention = f"<@{user_id}>"
        return user

    return _make_user


@pytest.fixture
def user(make_user):
    return make_user()
