"""Tests for the DuckDB player and preference store."""

from unittest.mock import Mock, patch

import duckdb
import pytest

from draft_assistant.analytics.valuation import PreferenceBook
from draft_assistant.models.players import KickerStats
from draft_assistant.storage.player_store import PlayerStore, PlayerStoreError


@pytest.fixture
def store():
    player_store = PlayerStore(":memory:")
    yield player_store
    player_store.close()


class TestPlayers:

    def test_round_trip(self, store, sample_players):
        assert store.save_players(sample_players) == len(sample_players)

        loaded = store.load_players()
        assert loaded == sorted(sample_players, key=lambda p: p.id)

    def test_stats_family_survives(self, store, players_by_name):
        store.save_players([players_by_name["Justin Tucker"]])
        tucker = store.load_players()[0]
        assert isinstance(tucker.stats, KickerStats)
        assert tucker.stats.field_goals == 2.0

    def test_replace_clears_old_pool(self, store, sample_players):
        store.save_players(sample_players)
        store.save_players(sample_players[:2])
        assert store.player_count() == 2

    def test_append_upserts(self, store, sample_players):
        store.save_players(sample_players[:2])
        store.save_players(sample_players[1:3], replace=False)
        assert store.player_count() == 3

    def test_filter_by_position(self, store, sample_players):
        store.save_players(sample_players)
        names = [p.name for p in store.load_players(position="QB")]
        assert names == ["Josh Allen", "Patrick Mahomes"]

    def test_clear(self, store, sample_players):
        store.save_players(sample_players)
        store.clear_players()
        assert store.player_count() == 0
        assert store.load_players() == []

    def test_file_database(self, tmp_path, sample_players):
        db_path = str(tmp_path / "nested" / "players.duckdb")
        with PlayerStore(db_path) as store:
            store.save_players(sample_players)
        with PlayerStore(db_path) as store:
            assert store.player_count() == len(sample_players)

    def test_existing_connection(self, sample_players):
        conn = duckdb.connect(":memory:")
        store = PlayerStore(connection=conn)
        store.save_players(sample_players[:1])
        assert conn.execute("SELECT COUNT(*) FROM players").fetchone()[0] == 1
        conn.close()

    def test_closed_connection_raises(self, sample_players):
        store = PlayerStore(":memory:")
        store.close()
        with pytest.raises(PlayerStoreError):
            store.load_players()


class TestPreferences:

    def test_round_trip(self, store):
        book = PreferenceBook(favorite_teams=["MIN", "DET"], avoid_teams=["DAL"])
        book.add_note("justin-jefferson-min-wr", "WR1 overall")
        book.set_target("justin-jefferson-min-wr")
        book.set_avoid("ezekiel-elliott-dal-rb")
        book.set_custom_rank("puka-nacua-lar-wr", 9)

        store.save_preferences(book)
        loaded = store.load_preferences()

        assert loaded.favorite_teams == {"MIN", "DET"}
        assert loaded.avoid_teams == {"DAL"}
        assert loaded.get("justin-jefferson-min-wr").note == "WR1 overall"
        assert loaded.is_target("justin-jefferson-min-wr")
        assert loaded.is_avoid("ezekiel-elliott-dal-rb")
        assert loaded.custom_rank("puka-nacua-lar-wr") == 9
        assert len(loaded) == 3

    def test_save_replaces(self, store):
        first = PreferenceBook(avoid_teams=["NYJ"])
        first.add_note("a", "old")
        store.save_preferences(first)

        store.save_preferences(PreferenceBook(favorite_teams=["KC"]))
        loaded = store.load_preferences()
        assert len(loaded) == 0
        assert loaded.favorite_teams == {"KC"}
        assert loaded.avoid_teams == set()

    def test_team_in_both_lists_saved_as_favorite(self, store):
        store.save_preferences(PreferenceBook(favorite_teams=["KC"], avoid_teams=["KC", "LV"]))
        loaded = store.load_preferences()
        assert loaded.favorite_teams == {"KC"}
        assert loaded.avoid_teams == {"LV"}

    def test_empty(self, store):
        loaded = store.load_preferences()
        assert len(loaded) == 0
        assert loaded.favorite_teams == set()


class TestConnectionErrors:

    @pytest.fixture
    def mock_connection(self):
        return Mock(spec=duckdb.DuckDBPyConnection)

    def test_save_error_wrapped(self, mock_connection, sample_players):
        store = PlayerStore(connection=mock_connection)
        mock_connection.execute.side_effect = duckdb.Error("disk I/O error")

        with pytest.raises(PlayerStoreError, match="Failed to save players"):
            store.save_players(sample_players)

    def test_open_error_wrapped(self):
        with patch("draft_assistant.storage.player_store.duckdb.connect", side_effect=duckdb.Error("locked")):
            with pytest.raises(PlayerStoreError, match="Could not open"):
                PlayerStore(":memory:")
