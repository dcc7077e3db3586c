"""Tests for the recommendation engine."""

import pytest

from draft_assistant.analytics.recommendations import (
    NEED_HIGH,
    NEED_LOW,
    NEED_MEDIUM,
    RecommendationEngine,
    recommendations_to_frame,
)
from draft_assistant.analytics.valuation import PreferenceBook
from draft_assistant.models.players import Player
from draft_assistant.utils.league_config import DraftSettings


@pytest.fixture
def settings():
    return DraftSettings(
        number_of_teams=10,
        roster_position_counts={"QB": 1, "RB": 1, "WR": 1, "TE": 1, "FLEX": 1, "K": 1, "BENCH": 2},
    )


@pytest.fixture
def preferences():
    return PreferenceBook()


@pytest.fixture
def engine(settings, preferences):
    return RecommendationEngine(settings, preferences)


def names(recommendations):
    return [rec.player.name for rec in recommendations]


class TestGenerate:

    def test_empty_pool(self, engine):
        assert engine.generate([], []) == []

    def test_ranks_by_value_when_all_needed(self, engine, sample_players):
        recommendations = engine.generate(sample_players, [], limit=4)
        assert names(recommendations) == [
            "Christian McCaffrey", "Justin Jefferson", "Justin Tucker", "Derrick Henry",
        ]
        assert all(rec.positional_need == NEED_HIGH for rec in recommendations)

    def test_limit(self, engine, sample_players):
        assert len(engine.generate(sample_players, [], limit=2)) == 2
        assert engine.generate(sample_players, [], limit=0) == []

    def test_positions_without_slots_are_dropped(self, engine, sample_players):
        """No DEF or LB slot in this league."""
        recommended = {rec.player.position for rec in engine.generate(sample_players, [], limit=20)}
        assert "DEF" not in recommended
        assert "LB" not in recommended

    def test_full_position_falls_back_to_flex(self, engine, players_by_name, sample_players):
        roster = [players_by_name["Christian McCaffrey"]]
        available = [p for p in sample_players if p not in roster]
        by_name = {rec.player.name: rec for rec in engine.generate(available, roster, limit=20)}

        henry = by_name["Derrick Henry"]
        assert henry.positional_need == NEED_MEDIUM
        assert henry.position_count == 1
        assert henry.position_max == 1
        assert "Flex option (0/1)" in henry.reason

    def test_full_position_and_flex_is_dropped(self, engine, players_by_name, sample_players):
        roster = [players_by_name["Christian McCaffrey"], players_by_name["Derrick Henry"]]
        available = [p for p in sample_players if p not in roster]
        recommended = names(engine.generate(available, roster, limit=20))

        assert "Jordan Mason" not in recommended
        assert "Puka Nacua" in recommended
        assert "Patrick Mahomes" in recommended

    def test_needs_come_before_value(self, engine, preferences, players_by_name, sample_players):
        """A high-value player at a full position ranks below every need filler."""
        roster = [players_by_name["Christian McCaffrey"], players_by_name["Derrick Henry"]]
        available = [p for p in sample_players if p not in roster]
        preferences.set_custom_rank(players_by_name["Jordan Mason"].id, 50)

        recommendations = engine.generate(available, roster, limit=20)
        assert recommendations[-1].player.name == "Jordan Mason"
        assert recommendations[-1].value == 100.0
        assert all(rec.fills_need for rec in recommendations[:-1])

    def test_avoid_always_dropped(self, engine, preferences, sample_players, players_by_name):
        preferences.set_avoid(players_by_name["Christian McCaffrey"].id)
        assert "Christian McCaffrey" not in names(engine.generate(sample_players, [], limit=20))

    def test_target_survives_full_position_and_leads(self, engine, preferences, players_by_name, sample_players):
        roster = [players_by_name["Christian McCaffrey"], players_by_name["Derrick Henry"]]
        available = [p for p in sample_players if p not in roster]
        preferences.set_target(players_by_name["Jordan Mason"].id)

        recommendations = engine.generate(available, roster, limit=3)
        first = recommendations[0]
        assert first.player.name == "Jordan Mason"
        assert first.is_target
        assert first.positional_need == NEED_LOW
        assert first.reason.startswith("Target")

    def test_custom_rank_survives_and_uses_rank_value(self, engine, preferences, players_by_name, sample_players):
        roster = [players_by_name["Christian McCaffrey"], players_by_name["Derrick Henry"]]
        available = [p for p in sample_players if p not in roster]
        preferences.set_custom_rank(players_by_name["Jordan Mason"].id, 5)

        by_name = {rec.player.name: rec for rec in engine.generate(available, roster, limit=20)}
        mason = by_name["Jordan Mason"]
        assert mason.value == 10.0
        assert mason.custom_rank == 5
        assert mason.reason.startswith("Custom rank #5")

    def test_ties_broken_by_name(self, engine):
        players = [
            Player.create("Zed Zulu", "KC", "WR", stats={"vorp": 5.0}),
            Player.create("Abe Alpha", "KC", "WR", stats={"vorp": 5.0}),
        ]
        assert names(engine.generate(players, [], limit=2)) == ["Abe Alpha", "Zed Zulu"]

    def test_handcuff(self, engine, players_by_name, sample_players):
        roster = [players_by_name["Christian McCaffrey"]]
        available = [p for p in sample_players if p not in roster]
        preferences = engine.preferences
        preferences.set_target(players_by_name["Jordan Mason"].id)

        mason = engine.generate(available, roster, limit=1)[0]
        assert mason.handcuff_of == "Christian McCaffrey"
        assert "Handcuff for Christian McCaffrey" in mason.reason


class TestBuildReason:

    def test_value_and_need(self, engine, players_by_name):
        reason = engine.build_reason(players_by_name["Josh Allen"], NEED_HIGH, 0, 1)
        assert reason == "VORP 8.0 • Fills QB need (0/1)"

    def test_weekly_points_for_kicker(self, engine, players_by_name):
        reason = engine.build_reason(players_by_name["Justin Tucker"], NEED_HIGH, 0, 1)
        assert reason == "Weekly pts 10.0 • Fills K need (0/1)"

    def test_depth_and_note(self, engine, players_by_name):
        note = "Great target share but the offensive line is a real worry"
        reason = engine.build_reason(players_by_name["Puka Nacua"], NEED_LOW, 2, 1, note=note)
        assert reason == f"VORP 7.0 • Depth • {note[:40]}..."

    def test_short_note_kept_whole(self, engine, players_by_name):
        reason = engine.build_reason(players_by_name["Puka Nacua"], NEED_LOW, 2, 1, is_avoid=True, note="meh")
        assert reason == "Avoid • Depth • meh"


class TestFrame:

    def test_recommendations_to_frame(self, engine, sample_players):
        df = recommendations_to_frame(engine.generate(sample_players, [], limit=3))
        assert list(df.columns) == ["player", "position", "team", "value", "need", "target", "reason"]
        assert len(df) == 3
        assert df.iloc[0]["player"] == "Christian McCaffrey"

    def test_empty_frame(self):
        df = recommendations_to_frame([])
        assert df.empty
