"""Root conftest: load test environment variables and configure structlog for tests."""

from pathlib import Path

import pytest
import structlog
from dotenv import load_dotenv

from ledger.logic.game import create_player_score
from ledger.session.engine import GameSessionEngine
from shared.logging import configure_structlog

load_dotenv(Path(__file__).resolve().parent.parent / ".env.tests")

# Route structlog through stdlib logging so caplog sees ledger events.
configure_structlog()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Prevent context leaking between tests."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def engine() -> GameSessionEngine:
    return GameSessionEngine()


@pytest.fixture
def make_scores():
    """Build a full score list from {player_id: score}; pass rummy ids to flag Rummy rounds."""

    def _make(points: dict[str, int], rummy: tuple[str, ...] = ()):
        return [create_player_score(pid, score, is_rummy=pid in rummy) for pid, score in points.items()]

    return _make
