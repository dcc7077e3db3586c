"""Shared fixtures: a small mixed player pool and compact draft settings."""

import pytest

from draft_assistant.draft.session import DraftSession
from draft_assistant.models.draft import DraftTeam
from draft_assistant.models.players import Player
from draft_assistant.utils.league_config import DraftSettings


@pytest.fixture
def sample_players():
    """Eleven players covering every position family."""
    return [
        Player.create("Patrick Mahomes", "KC", "QB", 6, {"vorp": 6.0, "fps": 22.0, "adp": 30}),
        Player.create("Josh Allen", "BUF", "QB", 12, {"vorp": 8.0, "fps": 24.0, "adp": 20}),
        Player.create("Christian McCaffrey", "SF", "RB", 9, {"vorp": 12.0, "fps": 21.0, "adp": 1}),
        Player.create("Jordan Mason", "SF", "RB", 9, {"vorp": 1.0, "fps": 8.0, "adp": 150}),
        Player.create("Derrick Henry", "BAL", "RB", 14, {"vorp": 9.0, "fps": 18.0, "adp": 10}),
        Player.create("Justin Jefferson", "MIN", "WR", 6, {"vorp": 11.0, "fps": 20.0, "adp": 3}),
        Player.create("Puka Nacua", "LAR", "WR", 8, {"vorp": 7.0, "fps": 16.0, "adp": 15}),
        Player.create("Travis Kelce", "KC", "TE", 6, {"vorp": 4.0, "fps": 12.0, "adp": 40}),
        Player.create("Justin Tucker", "BAL", "K", 14, {"field_goals": 2, "extra_points": 3}),
        Player.create("Ravens D/ST", "BAL", "DST", 14, {"sacks": 3, "interceptions": 1, "points_allowed": 10}),
        Player.create("Roquan Smith", "BAL", "LB", 14, {"solo_tackles": 5, "assist_tackles": 2, "sacks": 1}),
    ]


@pytest.fixture
def players_by_name(sample_players):
    return {p.name: p for p in sample_players}


@pytest.fixture
def small_settings():
    """Two teams, four roster slots each: eight picks in total."""
    return DraftSettings(
        number_of_teams=2,
        user_team_index=0,
        draft_type="snake",
        pick_time_limit_seconds=90,
        roster_position_counts={"QB": 1, "RB": 1, "WR": 1, "FLEX": 1},
    )


@pytest.fixture
def session(small_settings, sample_players):
    draft = DraftSession()
    draft.initialize(
        small_settings,
        DraftTeam.build_league(small_settings.number_of_teams, small_settings.user_team_index),
        sample_players,
    )
    return draft
