"""Recommendation engine - ranks available players against live roster needs."""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
import logging

import pandas as pd

from draft_assistant.analytics.scoring import ScoringEngine
from draft_assistant.analytics.valuation import PreferenceBook, base_value
from draft_assistant.models.players import FAMILY_OFFENSIVE, Player
from draft_assistant.utils.league_config import DraftSettings

logger = logging.getLogger(__name__)

NEED_HIGH = "high"      # an open slot at the exact position
NEED_MEDIUM = "medium"  # only a flex slot is open
NEED_LOW = "low"        # position already satisfied

NOTE_EXCERPT_LENGTH = 40
REASON_SEPARATOR = " • "


@dataclass
class Recommendation:
    player: Player
    value: float
    reason: str
    positional_need: str
    position_count: int
    position_max: int
    is_target: bool = False
    custom_rank: Optional[int] = None
    note: str = ""
    handcuff_of: Optional[str] = None

    @property
    def fills_need(self) -> bool:
        return self.positional_need != NEED_LOW


@dataclass
class _RosterNeeds:
    position_counts: Dict[str, int]
    flex_count: int
    flex_max: int

    @property
    def flex_open(self) -> bool:
        return self.flex_count < self.flex_max


class RecommendationEngine:
    """Builds ranked pick suggestions for the user's team."""

    def __init__(
        self,
        settings: DraftSettings,
        preferences: Optional[PreferenceBook] = None,
        scoring_engine: Optional[ScoringEngine] = None,
    ):
        self.settings = settings
        self.preferences = preferences or PreferenceBook()
        self.scoring_engine = scoring_engine or ScoringEngine()

    def _roster_needs(self, roster: Sequence[Player]) -> _RosterNeeds:
        counts: Dict[str, int] = {}
        for player in roster:
            counts[player.position] = counts.get(player.position, 0) + 1

        # Flex-eligible players beyond their own position's starters occupy flex slots
        flex_count = sum(
            max(0, counts.get(pos, 0) - self.settings.position_max(pos))
            for pos in self.settings.flex_eligible_positions
        )
        return _RosterNeeds(counts, flex_count, self.settings.flex_slot_count)

    def _positional_need(self, player: Player, needs: _RosterNeeds) -> str:
        count = needs.position_counts.get(player.position, 0)
        if count < self.settings.position_max(player.position):
            return NEED_HIGH
        if player.position in self.settings.flex_eligible_positions and needs.flex_open:
            return NEED_MEDIUM
        return NEED_LOW

    def _handcuff_of(self, player: Player, roster: Sequence[Player]) -> Optional[str]:
        if player.position != "RB" or not player.team:
            return None
        for starter in roster:
            if starter.position == "RB" and starter.team == player.team and starter.id != player.id:
                return starter.name
        return None

    def build_reason(
        self,
        player: Player,
        positional_need: str,
        position_count: int,
        position_max: int,
        needs: Optional[_RosterNeeds] = None,
        custom_rank: Optional[int] = None,
        is_target: bool = False,
        is_avoid: bool = False,
        note: str = "",
        handcuff_of: Optional[str] = None,
    ) -> str:
        """Human-readable rationale for one recommendation."""
        parts = []

        if custom_rank is not None:
            parts.append(f"Custom rank #{custom_rank}")
        elif is_target:
            parts.append("Target")
        elif is_avoid:
            parts.append("Avoid")
        elif player.family == FAMILY_OFFENSIVE:
            parts.append(f"VORP {base_value(player):.1f}")
        else:
            parts.append(f"Weekly pts {self.scoring_engine.weekly_points(player):.1f}")

        if positional_need == NEED_HIGH:
            parts.append(f"Fills {player.position} need ({position_count}/{position_max})")
        elif positional_need == NEED_MEDIUM and needs is not None:
            parts.append(f"Flex option ({needs.flex_count}/{needs.flex_max})")
        else:
            parts.append("Depth")

        if handcuff_of:
            parts.append(f"Handcuff for {handcuff_of}")

        if note:
            excerpt = note if len(note) <= NOTE_EXCERPT_LENGTH else note[:NOTE_EXCERPT_LENGTH] + "..."
            parts.append(excerpt)

        return REASON_SEPARATOR.join(parts)

    def generate(
        self,
        available_players: Sequence[Player],
        user_roster: Sequence[Player],
        limit: int = 5,
    ) -> List[Recommendation]:
        """
        Rank available players for the user's next pick.

        Avoided players are always dropped. Targets and custom-ranked players
        always survive. Anyone else is dropped once their position and every
        flex slot they could use are full.

        Args:
            available_players: Players still on the board
            user_roster: Players already on the user's team
            limit: Maximum number of recommendations to return

        Returns:
            Recommendations, best first
        """
        if not available_players or limit <= 0:
            return []

        needs = self._roster_needs(user_roster)
        candidates = []

        for player in available_players:
            preference = self.preferences.get(player.id)
            is_target = bool(preference and preference.is_target)
            is_avoid = bool(preference and preference.is_avoid)
            custom_rank = preference.custom_rank if preference else None
            note = preference.note if preference else ""

            if is_avoid:
                continue

            positional_need = self._positional_need(player, needs)
            if positional_need == NEED_LOW and not is_target and custom_rank is None:
                continue

            value = self.preferences.adjusted_value(player, base_value(player, self.scoring_engine))
            position_count = needs.position_counts.get(player.position, 0)
            position_max = self.settings.position_max(player.position)
            handcuff_of = self._handcuff_of(player, user_roster)

            candidates.append(Recommendation(
                player=player,
                value=value,
                reason=self.build_reason(
                    player, positional_need, position_count, position_max, needs,
                    custom_rank=custom_rank, is_target=is_target, note=note,
                    handcuff_of=handcuff_of,
                ),
                positional_need=positional_need,
                position_count=position_count,
                position_max=position_max,
                is_target=is_target,
                custom_rank=custom_rank,
                note=note,
                handcuff_of=handcuff_of,
            ))

        candidates.sort(key=lambda rec: (
            not rec.is_target,
            not rec.fills_need,
            -rec.value,
            rec.player.name,
        ))

        logger.debug(f"{len(candidates)} candidates after roster filtering")
        return candidates[:limit]


def recommendations_to_frame(recommendations: List[Recommendation]) -> pd.DataFrame:
    """Tabular view of recommendations for display."""
    rows = [
        {
            "player": rec.player.name,
            "position": rec.player.position,
            "team": rec.player.team,
            "value": rec.value,
            "need": rec.positional_need,
            "target": rec.is_target,
            "reason": rec.reason,
        }
        for rec in recommendations
    ]
    return pd.DataFrame(rows, columns=["player", "position", "team", "value", "need", "target", "reason"])
