"""DuckDB storage for the canonical player pool and user preferences."""

import json
import os
from typing import List, Optional
import logging

import duckdb

from draft_assistant.analytics.valuation import PlayerPreference, PreferenceBook
from draft_assistant.models.players import Player

logger = logging.getLogger(__name__)

FAVORITE = "favorite"
AVOID = "avoid"

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS players (
        id VARCHAR PRIMARY KEY,
        name VARCHAR NOT NULL,
        team VARCHAR,
        position VARCHAR NOT NULL,
        bye_week INTEGER,
        stats VARCHAR
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS player_preferences (
        player_id VARCHAR PRIMARY KEY,
        note VARCHAR,
        is_target BOOLEAN,
        is_avoid BOOLEAN,
        custom_rank INTEGER
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS team_preferences (
        team VARCHAR PRIMARY KEY,
        preference VARCHAR NOT NULL
    )
    """,
]


class PlayerStoreError(Exception):
    """Custom exception for player store errors."""
    pass


class PlayerStore:
    """Reads and writes players and preferences in a DuckDB database."""

    def __init__(
        self,
        db_path: str = "data/draft_assistant.duckdb",
        connection: Optional[duckdb.DuckDBPyConnection] = None,
    ):
        """
        Open (or create) the database and its tables.

        Args:
            db_path: Path to DuckDB database file, or ":memory:"
            connection: Optional existing DuckDB connection

        Raises:
            PlayerStoreError: If the database cannot be opened
        """
        self.db_path = db_path
        try:
            if connection is None:
                directory = os.path.dirname(db_path)
                if db_path != ":memory:" and directory:
                    os.makedirs(directory, exist_ok=True)
                connection = duckdb.connect(db_path)
            self.conn = connection
            for statement in SCHEMA:
                self.conn.execute(statement)
        except (duckdb.Error, OSError) as e:
            raise PlayerStoreError(f"Could not open player store at {db_path}: {e}")
        logger.info(f"Connected to database: {db_path}")

    def close(self) -> None:
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    def save_players(self, players: List[Player], replace: bool = True) -> int:
        """
        Store players, replacing rows with the same id.

        Args:
            players: Canonical players
            replace: Clear the table first so it holds exactly this pool

        Returns:
            Number of players written
        """
        rows = [
            (
                player.id,
                player.name,
                player.team,
                player.position,
                player.bye_week,
                json.dumps(player.to_dict()["stats"], sort_keys=True),
            )
            for player in players
        ]
        try:
            if replace:
                self.conn.execute("DELETE FROM players")
            if rows:
                self.conn.executemany(
                    "INSERT OR REPLACE INTO players VALUES (?, ?, ?, ?, ?, ?)", rows
                )
        except duckdb.Error as e:
            raise PlayerStoreError(f"Failed to save players: {e}")

        logger.info(f"✓ Saved {len(rows)} players")
        return len(rows)

    def load_players(self, position: Optional[str] = None) -> List[Player]:
        """Load stored players, sorted by id."""
        sql = "SELECT id, name, team, position, bye_week, stats FROM players"
        params = []
        if position:
            sql += " WHERE position = ?"
            params.append(position)
        sql += " ORDER BY id"

        try:
            rows = self.conn.execute(sql, params).fetchall()
        except duckdb.Error as e:
            raise PlayerStoreError(f"Failed to load players: {e}")

        players = []
        for player_id, name, team, pos, bye_week, stats in rows:
            players.append(Player.from_dict({
                "id": player_id,
                "name": name,
                "team": team or "",
                "position": pos,
                "bye_week": bye_week or 0,
                "stats": json.loads(stats) if stats else {},
            }))
        return players

    def player_count(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM players").fetchone()[0]

    def clear_players(self) -> None:
        self.conn.execute("DELETE FROM players")
        logger.info("Cleared players table")

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def save_preferences(self, book: PreferenceBook) -> None:
        """Replace every stored preference with the contents of the book."""
        player_rows = [
            (p.player_id, p.note, p.is_target, p.is_avoid, p.custom_rank)
            for p in book.all_preferences()
        ]
        team_rows = (
            [(team, FAVORITE) for team in sorted(book.favorite_teams)]
            + [(team, AVOID) for team in sorted(book.avoid_teams - book.favorite_teams)]
        )
        try:
            self.conn.execute("DELETE FROM player_preferences")
            self.conn.execute("DELETE FROM team_preferences")
            if player_rows:
                self.conn.executemany(
                    "INSERT INTO player_preferences VALUES (?, ?, ?, ?, ?)", player_rows
                )
            if team_rows:
                self.conn.executemany("INSERT INTO team_preferences VALUES (?, ?)", team_rows)
        except duckdb.Error as e:
            raise PlayerStoreError(f"Failed to save preferences: {e}")

        logger.info(f"✓ Saved {len(player_rows)} player notes and {len(team_rows)} team preferences")

    def load_preferences(self) -> PreferenceBook:
        try:
            player_rows = self.conn.execute(
                "SELECT player_id, note, is_target, is_avoid, custom_rank "
                "FROM player_preferences ORDER BY player_id"
            ).fetchall()
            team_rows = self.conn.execute(
                "SELECT team, preference FROM team_preferences ORDER BY team"
            ).fetchall()
        except duckdb.Error as e:
            raise PlayerStoreError(f"Failed to load preferences: {e}")

        book = PreferenceBook(
            favorite_teams=[team for team, pref in team_rows if pref == FAVORITE],
            avoid_teams=[team for team, pref in team_rows if pref == AVOID],
        )
        book.import_notes(
            PlayerPreference.from_dict({
                "player_id": player_id,
                "note": note,
                "is_target": is_target,
                "is_avoid": is_avoid,
                "custom_rank": custom_rank,
            })
            for player_id, note, is_target, is_avoid, custom_rank in player_rows
        )
        return book
