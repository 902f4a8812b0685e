"""Tests for FileGameStore."""

from __future__ import annotations

import json
import logging
import os
import stat
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from ledger.logic.game import add_round, create_game, create_player_score, end_game
from ledger.storage.errors import StorageError
from ledger.storage.file_store import (
    CURRENT_GAME_FILE,
    GAME_HISTORY_FILE,
    RECENT_PLAYERS_FILE,
    FileGameStore,
)

if TYPE_CHECKING:
    from pathlib import Path


def _finished_game(names=("Alice", "Bob")):
    game = create_game(list(names))
    game = add_round(game, [create_player_score(p.id, i + 1) for i, p in enumerate(game.players)])
    return end_game(game)


@pytest.fixture
def store(tmp_path: Path) -> FileGameStore:
    return FileGameStore(tmp_path / "data")


class TestCurrentGame:
    def test_missing_file_returns_none(self, store: FileGameStore):
        assert store.load_current_game() is None

    def test_save_and_load(self, store: FileGameStore):
        game = create_game(["Alice", "Bob"], 50)
        store.save_game(game)
        assert store.load_current_game() == game

    def test_save_replaces_previous(self, store: FileGameStore):
        store.save_game(create_game(["Alice", "Bob"]))
        second = create_game(["Carol", "Dave"])
        store.save_game(second)
        assert store.load_current_game() == second

    def test_file_uses_camel_case_json(self, store: FileGameStore):
        store.save_game(create_game(["Alice", "Bob"], 50))
        data = json.loads((store.data_dir / CURRENT_GAME_FILE).read_text())
        assert data["targetScore"] == 50
        assert "createdAt" in data

    def test_clear(self, store: FileGameStore):
        store.save_game(create_game(["Alice", "Bob"]))
        store.clear_current_game()
        assert store.load_current_game() is None
        store.clear_current_game()

    def test_load_game_by_id(self, store: FileGameStore):
        current = create_game(["Alice", "Bob"])
        archived = _finished_game()
        store.save_game(current)
        store.append_to_history(archived)

        assert store.load_game(current.id) == current
        assert store.load_game(archived.id) == archived
        with pytest.raises(StorageError, match="not found") as exc_info:
            store.load_game("missing")
        assert exc_info.value.operation == "load_game"


class TestHistory:
    def test_newest_first(self, store: FileGameStore):
        first, second = _finished_game(), _finished_game()
        store.append_to_history(first)
        store.append_to_history(second)
        assert [g.id for g in store.load_history()] == [second.id, first.id]

    def test_reappending_moves_to_front_without_duplicate(self, store: FileGameStore):
        first, second = _finished_game(), _finished_game()
        store.append_to_history(first)
        store.append_to_history(second)
        store.append_to_history(first)
        assert [g.id for g in store.load_history()] == [first.id, second.id]

    def test_capped_at_limit(self, tmp_path: Path):
        store = FileGameStore(tmp_path, history_limit=3)
        games = [_finished_game() for _ in range(5)]
        for game in games:
            store.append_to_history(game)

        assert [g.id for g in store.load_history()] == [g.id for g in reversed(games[2:])]

    def test_clear(self, store: FileGameStore):
        store.append_to_history(_finished_game())
        store.clear_history()
        assert store.load_history() == []


class TestRecentPlayers:
    def test_new_names_first_without_duplicates(self, store: FileGameStore):
        store.save_recent_players(["Alice", "Bob"])
        store.save_recent_players(["Carol", "Alice"])
        assert store.load_recent_players() == ["Carol", "Alice", "Bob"]

    def test_capped_at_limit(self, tmp_path: Path):
        store = FileGameStore(tmp_path, recent_players_limit=2)
        store.save_recent_players(["A", "B"])
        store.save_recent_players(["C"])
        assert store.load_recent_players() == ["C", "A"]

    def test_clear_all(self, store: FileGameStore):
        store.save_game(create_game(["Alice", "Bob"]))
        store.append_to_history(_finished_game())
        store.save_recent_players(["Alice"])

        store.clear_all()

        assert store.load_current_game() is None
        assert store.load_history() == []
        assert store.load_recent_players() == []


class TestCorruptFiles:
    @pytest.mark.parametrize(
        ("filename", "loader", "default"),
        [
            (CURRENT_GAME_FILE, "load_current_game", None),
            (GAME_HISTORY_FILE, "load_history", []),
            (RECENT_PLAYERS_FILE, "load_recent_players", []),
        ],
    )
    def test_corrupt_file_is_quarantined(self, store: FileGameStore, caplog, filename, loader, default):
        store.data_dir.mkdir(parents=True)
        (store.data_dir / filename).write_text("{definitely not json")

        with caplog.at_level(logging.WARNING):
            assert getattr(store, loader)() == default

        assert not (store.data_dir / filename).exists()
        quarantined = list(store.data_dir.glob(f"{filename}.corrupt-*"))
        assert len(quarantined) == 1
        assert quarantined[0].read_text() == "{definitely not json"
        assert "quarantined corrupt storage file" in caplog.text

    @pytest.mark.parametrize(
        ("filename", "loader", "default"),
        [
            (CURRENT_GAME_FILE, "load_current_game", None),
            (GAME_HISTORY_FILE, "load_history", []),
            (RECENT_PLAYERS_FILE, "load_recent_players", []),
        ],
    )
    def test_invalid_utf8_is_quarantined(self, store: FileGameStore, filename, loader, default):
        store.data_dir.mkdir(parents=True)
        (store.data_dir / filename).write_bytes(b"\xff\xfe{bad")

        assert getattr(store, loader)() == default

        assert not (store.data_dir / filename).exists()
        assert len(list(store.data_dir.glob(f"{filename}.corrupt-*"))) == 1

    def test_store_keeps_working_after_quarantine(self, store: FileGameStore):
        store.data_dir.mkdir(parents=True)
        (store.data_dir / CURRENT_GAME_FILE).write_text("[]")
        assert store.load_current_game() is None

        game = create_game(["Alice", "Bob"])
        store.save_game(game)
        assert store.load_current_game() == game


class TestWrites:
    def test_creates_data_dir(self, tmp_path: Path):
        store = FileGameStore(tmp_path / "nested" / "dir")
        store.save_recent_players(["Alice"])
        assert (tmp_path / "nested" / "dir" / RECENT_PLAYERS_FILE).exists()

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
    def test_files_are_owner_only(self, store: FileGameStore):
        store.save_game(create_game(["Alice", "Bob"]))
        mode = stat.S_IMODE((store.data_dir / CURRENT_GAME_FILE).stat().st_mode)
        assert mode == 0o600

    def test_no_temp_files_left_behind(self, store: FileGameStore):
        store.save_game(create_game(["Alice", "Bob"]))
        store.save_recent_players(["Alice"])
        assert sorted(p.name for p in store.data_dir.iterdir()) == [CURRENT_GAME_FILE, RECENT_PLAYERS_FILE]

    def test_failed_write_raises_and_keeps_old_file(self, store: FileGameStore):
        first = create_game(["Alice", "Bob"])
        store.save_game(first)

        with (
            patch("ledger.storage.file_store.os.fsync", side_effect=OSError("disk full")),
            pytest.raises(StorageError) as exc_info,
        ):
            store.save_game(create_game(["Carol", "Dave"]))

        assert exc_info.value.operation == "save_game"
        assert store.load_current_game() == first
        assert [p.name for p in store.data_dir.iterdir()] == [CURRENT_GAME_FILE]

    def test_close_is_harmless(self, store: FileGameStore):
        game = create_game(["Alice", "Bob"])
        store.save_game(game)
        store.close()
        assert store.load_current_game() == game
