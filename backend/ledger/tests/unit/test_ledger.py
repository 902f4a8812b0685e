"""Tests for the Ledger session on top of a file store."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from ledger.logic.enums import GameStatus
from ledger.logic.exceptions import ValidationError
from ledger.logic.game import create_player_score
from ledger.session.engine import GameSessionEngine
from ledger.session.ledger import Ledger
from ledger.storage.errors import StorageError
from ledger.storage.file_store import FileGameStore

if TYPE_CHECKING:
    from pathlib import Path


def _scores(game, *points):
    return [create_player_score(p.id, s) for p, s in zip(game.players, points, strict=True)]


@pytest.fixture
def store(tmp_path: Path) -> FileGameStore:
    return FileGameStore(tmp_path)


@pytest.fixture
def ledger(store: FileGameStore) -> Ledger:
    ledger = Ledger(GameSessionEngine(), store)
    ledger.load()
    return ledger


class TestStartGame:
    def test_becomes_current_and_is_saved(self, ledger: Ledger, store: FileGameStore):
        game = ledger.start_game(["Alice", "Bob"], 100)

        assert ledger.current_game == game
        assert store.load_current_game() == game

    def test_records_recent_players(self, ledger: Ledger):
        ledger.start_game(["Alice", "Bob"])
        ledger.start_game(["Carol", "Alice"])
        assert ledger.recent_players == ["Carol", "Alice", "Bob"]

    def test_replaces_unfinished_game(self, ledger: Ledger):
        first = ledger.start_game(["Alice", "Bob"])
        second = ledger.start_game(["Carol", "Dave"])

        assert ledger.current_game == second
        assert not ledger.engine.game_exists(first.id)
        assert ledger.history == []

    def test_invalid_names_keep_current_game(self, ledger: Ledger):
        game = ledger.start_game(["Alice", "Bob"])
        with pytest.raises(ValidationError):
            ledger.start_game(["Solo"])
        assert ledger.current_game == game


class TestRounds:
    def test_add_round_saves_game(self, ledger: Ledger, store: FileGameStore):
        game = ledger.start_game(["Alice", "Bob"])

        game = ledger.add_round(_scores(game, 10, 4))

        assert store.load_current_game() == game
        assert [p.name for p in ledger.leaderboard] == ["Bob", "Alice"]

    def test_edit_and_delete_round(self, ledger: Ledger, store: FileGameStore):
        game = ledger.start_game(["Alice", "Bob"])
        game = ledger.add_round(_scores(game, 10, 4))
        game = ledger.add_round(_scores(game, 1, 1))

        game = ledger.edit_round(game.rounds[0].id, _scores(game, 2, 2))
        assert [p.total_score for p in game.players] == [3, 3]

        game = ledger.delete_round(game.rounds[0].id)
        assert [r.round_number for r in game.rounds] == [1]
        assert store.load_current_game() == game

    def test_without_current_game_rejected(self, ledger: Ledger):
        with pytest.raises(ValidationError, match="No active game found"):
            ledger.add_round([])
        with pytest.raises(ValidationError, match="No active game found"):
            ledger.end_game()
        assert ledger.leaderboard == []

    def test_rejected_round_does_not_touch_store(self, ledger: Ledger, store: FileGameStore):
        game = ledger.start_game(["Alice", "Bob"])
        with pytest.raises(ValidationError):
            ledger.add_round(_scores(game, 1, 2)[:1])
        assert store.load_current_game() == game


class TestCompletion:
    def test_target_reached_archives_game(self, ledger: Ledger, store: FileGameStore):
        game = ledger.start_game(["Alice", "Bob"], 20)

        completed = ledger.add_round(_scores(game, 25, 5))

        assert completed.status == GameStatus.COMPLETED
        assert ledger.current_game is None
        assert store.load_current_game() is None
        assert [g.id for g in ledger.history] == [completed.id]
        assert store.load_history() == [completed]

    def test_end_game_archives_game(self, ledger: Ledger):
        game = ledger.start_game(["Alice", "Bob"])
        ledger.add_round(_scores(game, 3, 8))

        completed = ledger.end_game()

        assert completed.winner == game.players[0].id
        assert ledger.current_game is None
        assert ledger.history[0].id == completed.id

    def test_completed_game_stays_queryable_in_engine(self, ledger: Ledger):
        game = ledger.start_game(["Alice", "Bob"])
        ledger.end_game()
        assert ledger.engine.get_winner(game.id).name == "Alice"

    def test_storage_failure_propagates(self, ledger: Ledger):
        game = ledger.start_game(["Alice", "Bob"])
        with (
            patch.object(FileGameStore, "save_game", side_effect=StorageError("boom", operation="save_game")),
            pytest.raises(StorageError),
        ):
            ledger.add_round(_scores(game, 1, 2))


class TestLoad:
    def test_restores_current_game(self, store: FileGameStore):
        first = Ledger(GameSessionEngine(), store)
        first.load()
        game = first.start_game(["Alice", "Bob"])
        game = first.add_round(_scores(game, 5, 6))

        second = Ledger(GameSessionEngine(), store)
        second.load()

        assert second.current_game == game
        assert second.recent_players == ["Alice", "Bob"]
        second.add_round(_scores(game, 1, 1))
        assert second.current_game.rounds[-1].round_number == 2

    def test_archives_completed_game_left_in_current_slot(self, store: FileGameStore):
        engine = GameSessionEngine()
        game = engine.create_game(["Alice", "Bob"])
        completed = engine.end_game(game.id)
        store.save_game(completed)

        ledger = Ledger(GameSessionEngine(), store)
        ledger.load()

        assert ledger.current_game is None
        assert store.load_current_game() is None
        assert [g.id for g in ledger.history] == [completed.id]

    def test_empty_store(self, ledger: Ledger):
        assert ledger.current_game is None
        assert ledger.history == []
        assert ledger.recent_players == []

    def test_close_closes_store(self, store: FileGameStore):
        ledger = Ledger(GameSessionEngine(), store)
        with patch.object(FileGameStore, "close") as close:
            ledger.close()
        close.assert_called_once_with()
