"""Tests for saving and restoring draft state."""

import json
from datetime import datetime
from unittest.mock import mock_open, patch

import pytest

from draft_assistant.draft.persistence import (
    MAX_BACKUPS,
    DraftStateError,
    DraftStateStore,
    session_from_dict,
    session_to_dict,
)
from draft_assistant.draft.session import DraftSession, DraftStatus


@pytest.fixture
def store(tmp_path):
    return DraftStateStore(
        state_file=str(tmp_path / "state" / "draft_state.json"),
        backup_dir=str(tmp_path / "backups"),
    )


def drafted_ids(session):
    return {team.id: [p.id for p in team.roster] for team in session.teams}


class TestSaveLoad:

    def test_round_trip(self, store, session, players_by_name):
        session.start()
        session.record_pick(players_by_name["Christian McCaffrey"])
        session.record_skip()
        session.record_pick(players_by_name["Josh Allen"])
        session.tick(42)

        store.save(session)
        restored = store.load()

        assert restored.current_pick_number == 4
        assert restored.current_team_index == session.current_team_index
        assert drafted_ids(restored) == drafted_ids(session)
        assert [p.id for p in restored.available_players] == [p.id for p in session.available_players]
        assert [pick.is_skip for pick in restored.picks] == [False, True, False]
        assert restored.is_active
        assert restored.time_remaining == 42
        assert restored.settings == session.settings

    def test_timestamps_survive(self, store, session, players_by_name):
        when = datetime(2024, 8, 25, 19, 30, 5)
        session.record_pick(players_by_name["Justin Jefferson"], timestamp=when)

        store.save(session, backup=False)
        assert store.load().picks[0].timestamp == when

    def test_paused_draft_stays_paused(self, store, session):
        store.save(session, backup=False)
        restored = store.load()
        assert not restored.is_active
        assert restored.current_pick_number == 1

    def test_paused_after_start_stays_paused(self, store, session):
        session.start()
        session.pause()
        store.save(session, backup=False)
        assert store.load().status == DraftStatus.PAUSED

    def test_picks_for_other_teams_replay(self, store, session, players_by_name):
        session.record_pick(players_by_name["Puka Nacua"], team_index=1)
        store.save(session, backup=False)

        restored = store.load()
        assert [p.name for p in restored.teams[1].roster] == ["Puka Nacua"]
        assert restored.teams[0].roster == []

    def test_save_uninitialized(self, store):
        with pytest.raises(DraftStateError, match="not been initialized"):
            store.save(DraftSession())

    def test_exists(self, store, session):
        assert not store.exists()
        store.save(session, backup=False)
        assert store.exists()


class TestLoadErrors:

    def test_missing_file(self, store):
        with pytest.raises(DraftStateError, match="No draft state"):
            store.load()

    def test_corrupt_file(self, store, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(DraftStateError):
            store.load(path)

    def test_pick_log_gap(self, session, players_by_name):
        session.record_pick(players_by_name["Josh Allen"])
        session.record_pick(players_by_name["Derrick Henry"])
        state = session_to_dict(session)
        del state["picks"][0]

        with pytest.raises(DraftStateError, match="gap"):
            session_from_dict(state)

    def test_unknown_player_in_log(self, session, players_by_name):
        session.record_pick(players_by_name["Josh Allen"])
        state = session_to_dict(session)
        state["picks"][0]["player_id"] = "nobody-xx-qb"

        with pytest.raises(DraftStateError):
            session_from_dict(state)

    def test_player_drafted_twice(self, session, players_by_name):
        session.record_pick(players_by_name["Josh Allen"])
        session.record_pick(players_by_name["Derrick Henry"])
        state = session_to_dict(session)
        state["picks"][1]["player_id"] = state["picks"][0]["player_id"]

        with pytest.raises(DraftStateError):
            session_from_dict(state)

    def test_missing_settings(self, session):
        state = session_to_dict(session)
        del state["settings"]
        with pytest.raises(DraftStateError):
            session_from_dict(state)


class TestBackups:

    def test_backup_written(self, store, session):
        store.save(session)
        backups = store.list_backups()
        assert len(backups) == 1
        assert backups[0].name.startswith("draft_backup_")
        assert json.loads(backups[0].read_text())["version"] == 1

    def test_backups_capped(self, store, session):
        store.backup_dir.mkdir(parents=True)
        for i in range(MAX_BACKUPS + 2):
            (store.backup_dir / f"draft_backup_20200101_0000{i:02d}_0000.json").write_text("{}")

        store.save(session)

        backups = store.list_backups()
        assert len(backups) == MAX_BACKUPS
        # Oldest ones go first
        assert not (store.backup_dir / "draft_backup_20200101_000000_0000.json").exists()
        assert not (store.backup_dir / "draft_backup_20200101_000001_0000.json").exists()
        assert not (store.backup_dir / "draft_backup_20200101_000002_0000.json").exists()

    def test_load_latest_backup(self, store, session, players_by_name):
        session.record_pick(players_by_name["Travis Kelce"])
        store.save(session)
        store.state_file.unlink()

        restored = store.load_latest_backup()
        assert restored.current_pick_number == 2

    def test_no_backups(self, store):
        assert store.list_backups() == []
        with pytest.raises(DraftStateError, match="No backups"):
            store.load_latest_backup()


class TestIOErrors:

    def test_write_failure_wrapped(self, store, session):
        with patch("builtins.open", side_effect=OSError("disk full")):
            with pytest.raises(DraftStateError, match="Save failed"):
                store.save(session)

    def test_unreadable_state_wrapped(self, store):
        with patch("builtins.open", mock_open(read_data="{truncated")):
            with pytest.raises(DraftStateError, match="Failed to read"):
                store.load()
