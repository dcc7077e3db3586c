"""Tests for the scoring engine."""

import logging

import pytest

from draft_assistant.analytics.scoring import ScoringEngine
from draft_assistant.models.players import (
    IDPStats,
    KickerStats,
    OffensiveStats,
    Player,
    TeamDefenseStats,
)
from draft_assistant.utils.league_config import KickingScoring, PassingScoring, ScoringSettings


@pytest.fixture
def engine():
    return ScoringEngine()


class TestOffense:

    def test_quarterback(self, engine):
        stats = OffensiveStats(passing_yards=300, passing_tds=2, interceptions=1, rushing_yards=20)
        # 6 yardage + 2 bonus + 12 TDs - 2 INT + 1 rushing
        assert engine.offensive_points(stats) == 19.0

    def test_running_back(self, engine):
        stats = OffensiveStats(rushing_yards=100, rushing_tds=1, receptions=4, receiving_yards=30)
        # rushing 6 + 1 bonus + 6 TD, receiving 2 + 2
        assert engine.offensive_points(stats) == 17.0

    def test_fumbles(self, engine):
        assert engine.offensive_points(OffensiveStats(fumbles=1)) == -2.0

    def test_yardage_below_one_point(self, engine):
        assert engine.rushing_points(OffensiveStats(rushing_yards=14)) == 0

    def test_weekly_points_prefers_fps(self, engine):
        player = Player.create("Josh Allen", "BUF", "QB", stats={"fps": 24.5, "passing_yards": 300})
        assert engine.weekly_points(player) == 24.5

    def test_weekly_points_from_stats(self, engine):
        player = Player.create("Josh Allen", "BUF", "QB", stats={"passing_yards": 300, "passing_tds": 2})
        assert engine.weekly_points(player) == 20.0

    def test_custom_settings(self):
        settings = ScoringSettings(passing=PassingScoring(yards_per_point=25, td_points=4, yard_bonus=[]))
        engine = ScoringEngine(settings)
        assert engine.passing_points(OffensiveStats(passing_yards=300, passing_tds=2)) == 20.0

    def test_update_settings(self, engine):
        stats = OffensiveStats(passing_tds=1)
        assert engine.passing_points(stats) == 6
        engine.update_settings(ScoringSettings(passing=PassingScoring(td_points=4)))
        assert engine.passing_points(stats) == 4


class TestKicker:

    def test_small_volume(self, engine):
        # 1 short (3) + 1 medium (4) made, 3 PAT, no estimated misses
        assert engine.kicker_points(KickerStats(field_goals=2, extra_points=3)) == 10.0

    def test_distance_split_and_misses(self, engine):
        # made 15/11/5 -> 45 + 44 + 25, 40 PAT, misses 1 short (-3) and 2 at 20-29 (-4)
        assert engine.kicker_points(KickerStats(field_goals=30, extra_points=40)) == 147.0

    def test_empty(self, engine):
        assert engine.kicker_points(KickerStats()) == 0.0

    def test_default_brackets_all_scored(self, caplog):
        with caplog.at_level(logging.WARNING, logger="draft_assistant.analytics.scoring"):
            ScoringEngine()
        assert "Ignoring" not in caplog.text

    def test_unmatched_bracket_warns(self, engine, caplog):
        kicking = KickingScoring(field_goals=[(0, 29, 3), (30, 49, 4), (50, 99, 5)])
        with caplog.at_level(logging.WARNING, logger="draft_assistant.analytics.scoring"):
            engine.update_settings(ScoringSettings(kicking=kicking))

        assert "Ignoring field goal bracket 30-49" in caplog.text
        assert "missed field goal" not in caplog.text
        # The 30-49 bracket never receives any made kicks
        assert engine.kicker_points(KickerStats(field_goals=2)) == 3.0


class TestDefense:

    def test_team_defense(self, engine):
        stats = TeamDefenseStats(sacks=3, interceptions=1, points_allowed=10)
        assert engine.defense_points(stats) == 12.0

    def test_default_points_allowed(self, engine):
        # 21 allowed scores zero
        assert engine.defense_points(TeamDefenseStats(sacks=2)) == 4.0

    def test_zero_points_allowed_means_no_projection(self, engine):
        assert engine.defense_points(TeamDefenseStats(points_allowed=0)) == 0.0

    @pytest.mark.parametrize("allowed,points", [(3, 7), (14, 1), (30, -1), (40, -4)])
    def test_points_allowed_brackets(self, engine, allowed, points):
        assert engine.defense_points(TeamDefenseStats(points_allowed=allowed)) == points

    def test_idp(self, engine):
        stats = IDPStats(solo_tackles=5, assist_tackles=2, sacks=1)
        assert engine.idp_points(stats) == 9.0

    def test_idp_tier_does_not_score(self, engine):
        assert engine.idp_points(IDPStats(tier=1)) == 0.0


class TestSeasonAndValue:

    def test_season_projection(self, engine):
        player = Player.create("Christian McCaffrey", "SF", "RB", stats={"fps": 15.0, "rushing_yards": 90})
        projection = engine.season_projection(player)
        assert projection.total_points == 255.0
        assert projection.average_points == 15.0
        assert projection.breakdown["rushing"] == 6 * 17
        assert projection.breakdown["passing"] == 0.0

    def test_season_projection_kicker(self, engine, players_by_name):
        projection = engine.season_projection(players_by_name["Justin Tucker"], games_played=10)
        assert projection.total_points == 100.0
        assert projection.breakdown["kicking"] == 100.0

    def test_vorp_small_group(self, engine):
        top = Player.create("Top Guy", "KC", "WR", stats={"fps": 10.0})
        other = Player.create("Other Guy", "KC", "WR", stats={"fps": 6.0})
        assert engine.calculate_vorp(top, [top, other]) == 2.0

    def test_vorp_empty_group(self, engine):
        player = Player.create("Lonely", "KC", "WR", stats={"fps": 10.0})
        assert engine.calculate_vorp(player, []) == 10.0

    def test_positional_scarcity(self, engine):
        assert engine.positional_scarcity("RB", 12) == 36
        assert engine.positional_scarcity("XX", 12) == 12.0

    def test_player_value(self, engine, sample_players, players_by_name):
        value = engine.player_value(players_by_name["Justin Tucker"], sample_players, [], total_teams=10)
        assert value.base_points == 10.0
        assert value.vorp == 0.0
        assert value.scarcity_factor == 12.0
        assert value.roster_need == 1.0
        assert value.final_value == 5.3
