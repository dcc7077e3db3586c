"""Scoring engine - projected fantasy points, VORP and positional scarcity."""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
import logging

from draft_assistant.models.players import (
    FAMILY_IDP,
    FAMILY_KICKER,
    FAMILY_OFFENSIVE,
    FAMILY_TEAM_DEFENSE,
    IDPStats,
    KickerStats,
    OffensiveStats,
    Player,
    TeamDefenseStats,
)
from draft_assistant.utils.league_config import ScoringSettings

logger = logging.getLogger(__name__)

DEFAULT_POINTS_ALLOWED = 21
FUMBLE_PENALTY = -2
GAMES_PER_SEASON = 17

# Kicker projections only carry totals; assume a distance split
FG_DISTANCE_SPLIT = {0: 0.5, 40: 0.35, 50: 0.15}
FG_MISS_RATE = 0.1
FG_MISS_SPLIT = {0: 0.3, 20: 0.7, 30: 0.0}

# Typical rostered count per team, used for scarcity
POSITION_DEMAND = {
    "QB": 1.5,
    "RB": 3,
    "WR": 4,
    "TE": 1.5,
    "K": 1.2,
    "DEF": 1.2,
    "DB": 1.2,
    "DL": 1.2,
    "LB": 1.2,
}

MAX_POSITION_COUNT = {
    "QB": 2,
    "RB": 4,
    "WR": 5,
    "TE": 2,
    "K": 1,
    "DEF": 1,
    "DB": 1,
    "DL": 1,
    "LB": 1,
}


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _round2(value: float) -> float:
    return _round_half_up(value * 100) / 100


def _stat(value: Optional[float]) -> float:
    return value or 0.0


@dataclass
class SeasonProjection:
    player_id: str
    total_points: float
    average_points: float
    breakdown: Dict[str, float] = field(default_factory=lambda: {
        "passing": 0.0, "rushing": 0.0, "receiving": 0.0,
        "kicking": 0.0, "defense": 0.0, "idp": 0.0,
    })


@dataclass
class PlayerValue:
    base_points: float
    vorp: float
    scarcity_factor: float
    roster_need: float
    final_value: float


class ScoringEngine:
    """Turns projected stats into fantasy points under league scoring rules."""

    def __init__(self, settings: Optional[ScoringSettings] = None):
        self.settings = settings or ScoringSettings()
        self._check_kicker_brackets()

    def update_settings(self, settings: ScoringSettings) -> None:
        self.settings = settings
        self._check_kicker_brackets()

    def _check_kicker_brackets(self) -> None:
        """Warn about kicking brackets that the assumed distance split never fills."""
        kicking = self.settings.kicking
        for label, brackets, split in (
            ("field goal", kicking.field_goals, FG_DISTANCE_SPLIT),
            ("missed field goal", kicking.missed_field_goals, FG_MISS_SPLIT),
        ):
            for min_yards, max_yards, _points in brackets:
                if min_yards not in split:
                    logger.warning(
                        f"Ignoring {label} bracket {min_yards}-{max_yards}: "
                        f"projections are only split at {sorted(split)} yards"
                    )

    def weekly_points(self, player: Player) -> float:
        """
        Projected points for a single week.

        Offensive players with a supplied weekly projection (fps) use it
        directly; everyone else is scored from projected stats.
        """
        family = player.family
        if family == FAMILY_OFFENSIVE:
            if player.stats.fps is not None:
                return player.stats.fps
            return self.offensive_points(player.stats)
        if family == FAMILY_KICKER:
            return self.kicker_points(player.stats)
        if family == FAMILY_TEAM_DEFENSE:
            return self.defense_points(player.stats)
        if family == FAMILY_IDP:
            return self.idp_points(player.stats)
        raise ValueError(f"No scoring rules for position family {family!r}")

    def season_projection(self, player: Player, games_played: int = GAMES_PER_SEASON) -> SeasonProjection:
        """Season-long projection with a per-category breakdown."""
        weekly = self.weekly_points(player)
        projection = SeasonProjection(
            player_id=player.id,
            total_points=weekly * games_played,
            average_points=weekly,
        )
        breakdown = projection.breakdown

        if player.position == "QB":
            breakdown["passing"] = self.passing_points(player.stats) * games_played
            breakdown["rushing"] = self.rushing_points(player.stats) * games_played
        elif player.position == "RB":
            breakdown["rushing"] = self.rushing_points(player.stats) * games_played
            breakdown["receiving"] = self.receiving_points(player.stats) * games_played
        elif player.position in ("WR", "TE"):
            breakdown["receiving"] = self.receiving_points(player.stats) * games_played
        elif player.family == FAMILY_KICKER:
            breakdown["kicking"] = projection.total_points
        elif player.family == FAMILY_TEAM_DEFENSE:
            breakdown["defense"] = projection.total_points
        elif player.family == FAMILY_IDP:
            breakdown["idp"] = projection.total_points

        return projection

    def offensive_points(self, stats: OffensiveStats) -> float:
        points = self.passing_points(stats)
        points += self.rushing_points(stats)
        points += self.receiving_points(stats)
        points += _stat(stats.fumbles) * FUMBLE_PENALTY
        return _round2(points)

    def passing_points(self, stats: OffensiveStats) -> float:
        scoring = self.settings.passing
        points = 0.0

        if stats.passing_yards:
            points += math.floor(stats.passing_yards / scoring.yards_per_point)
            for threshold, bonus in scoring.yard_bonus:
                if stats.passing_yards >= threshold:
                    points += bonus

        points += _stat(stats.passing_tds) * scoring.td_points
        points += _stat(stats.interceptions) * scoring.interception_penalty
        return points

    def rushing_points(self, stats: OffensiveStats) -> float:
        scoring = self.settings.rushing
        points = 0.0

        if stats.rushing_yards:
            points += math.floor(stats.rushing_yards / scoring.yards_per_point)
            for threshold, bonus in scoring.yard_bonus:
                if stats.rushing_yards >= threshold:
                    points += bonus

        points += _stat(stats.rushing_tds) * scoring.td_points
        return points

    def receiving_points(self, stats: OffensiveStats) -> float:
        scoring = self.settings.receiving
        points = _stat(stats.receptions) * scoring.reception_points

        if stats.receiving_yards:
            points += math.floor(stats.receiving_yards / scoring.yards_per_point)
            for threshold, bonus in scoring.yard_bonus:
                if stats.receiving_yards >= threshold:
                    points += bonus

        points += _stat(stats.receiving_tds) * scoring.td_points
        return points

    def kicker_points(self, stats: KickerStats) -> float:
        scoring = self.settings.kicking
        field_goals = _stat(stats.field_goals)
        points = 0.0

        made = {min_yards: _round_half_up(field_goals * share) for min_yards, share in FG_DISTANCE_SPLIT.items()}
        for min_yards, _max_yards, value in scoring.field_goals:
            points += made.get(min_yards, 0) * value

        points += _stat(stats.extra_points) * scoring.extra_points

        attempts = stats.field_goal_attempts if stats.field_goal_attempts else field_goals
        missed_total = _round_half_up(attempts * FG_MISS_RATE)
        missed = {min_yards: _round_half_up(missed_total * share) for min_yards, share in FG_MISS_SPLIT.items()}
        for min_yards, _max_yards, penalty in scoring.missed_field_goals:
            points += missed.get(min_yards, 0) * penalty

        return _round2(points)

    def defense_points(self, stats: TeamDefenseStats) -> float:
        scoring = self.settings.team_defense
        points = _stat(stats.sacks) * scoring.sack
        points += _stat(stats.interceptions) * scoring.interception
        points += _stat(stats.fumble_recoveries) * scoring.fumble_recovery
        points += _stat(stats.defensive_tds) * scoring.touchdown
        points += _stat(stats.safeties) * scoring.safety

        points_allowed = stats.points_allowed if stats.points_allowed else DEFAULT_POINTS_ALLOWED
        for min_points, max_points, value in scoring.points_allowed:
            if min_points <= points_allowed <= max_points:
                points += value

        return _round2(points)

    def idp_points(self, stats: IDPStats) -> float:
        scoring = self.settings.idp
        points = _stat(stats.solo_tackles) * scoring.solo_tackle
        points += _stat(stats.assist_tackles) * scoring.assist_tackle
        points += _stat(stats.sacks) * scoring.sack
        points += _stat(stats.interceptions) * scoring.interception
        points += _stat(stats.forced_fumbles) * scoring.forced_fumble
        points += _stat(stats.fumble_recoveries) * scoring.fumble_recovery
        points += _stat(stats.defensive_tds) * scoring.touchdown
        return _round2(points)

    def calculate_vorp(self, player: Player, position_players: Sequence[Player]) -> float:
        """
        Value over a replacement-level player at the same position.

        Replacement level is the mean of the players ranked roughly 24-36 at
        the position, clamped to the size of the position group.
        """
        player_points = self.weekly_points(player)
        ranked = sorted((self.weekly_points(p) for p in position_players), reverse=True)

        start = max(0, min(23, len(ranked) - 13))
        end = max(start + 1, min(35, len(ranked) - 1))
        replacement_points = ranked[start:end + 1]

        replacement_level = (
            sum(replacement_points) / len(replacement_points) if replacement_points else 0.0
        )
        return _round2(player_points - replacement_level)

    def positional_scarcity(self, position: str, total_teams: int = 14) -> float:
        """League-wide demand for a position."""
        demand = POSITION_DEMAND.get(position)
        return total_teams * demand if demand is not None else float(total_teams)

    def player_value(
        self,
        player: Player,
        all_players: Sequence[Player],
        current_roster: List[Player],
        total_teams: int = 14,
    ) -> PlayerValue:
        """Blend points, VORP, scarcity and roster need into one number."""
        base_points = self.weekly_points(player)
        position_players = [p for p in all_players if p.position == player.position]
        vorp = self.calculate_vorp(player, position_players)
        scarcity = self.positional_scarcity(player.position, total_teams)

        position_count = sum(1 for p in current_roster if p.position == player.position)
        position_max = MAX_POSITION_COUNT.get(player.position, 1)
        roster_need = max(0.0, (position_max - position_count) / position_max)

        final_value = (base_points * 0.4) + (vorp * 0.4) + (scarcity * 0.1) + (roster_need * 0.1)
        return PlayerValue(
            base_points=base_points,
            vorp=vorp,
            scarcity_factor=scarcity,
            roster_need=roster_need,
            final_value=_round2(final_value),
        )
