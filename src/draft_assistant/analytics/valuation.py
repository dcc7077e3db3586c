"""Player valuation - base values and user-preference adjustments."""

import json
import math
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterable, List, Optional
import logging

from draft_assistant.analytics.scoring import ScoringEngine
from draft_assistant.models.players import (
    FAMILY_IDP,
    FAMILY_KICKER,
    FAMILY_OFFENSIVE,
    FAMILY_TEAM_DEFENSE,
    Player,
)

logger = logging.getLogger(__name__)

CUSTOM_RANK_SCALE = 2
TARGET_MULTIPLIER = 1.2
AVOID_MULTIPLIER = 0.6
FAVORITE_TEAM_MULTIPLIER = 1.1
AVOID_TEAM_MULTIPLIER = 0.9

DRAFT_STRATEGIES = ("conservative", "balanced", "aggressive")


@dataclass
class PlayerPreference:
    """User annotation for one player. Target and avoid never both hold."""
    player_id: str
    note: str = ""
    is_target: bool = False
    is_avoid: bool = False
    custom_rank: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlayerPreference":
        preference = cls(
            player_id=data["player_id"],
            note=data.get("note") or "",
            is_target=bool(data.get("is_target", False)),
            is_avoid=bool(data.get("is_avoid", False)),
            custom_rank=_validate_rank(data.get("custom_rank")),
        )
        if preference.is_target and preference.is_avoid:
            raise ValueError(f"{preference.player_id} cannot be both a target and an avoid")
        return preference


def _validate_rank(rank: Optional[Any]) -> Optional[int]:
    if rank is None:
        return None
    if isinstance(rank, bool) or int(rank) != rank or rank < 1:
        raise ValueError(f"custom rank must be a positive integer, got {rank!r}")
    return int(rank)


def base_value(player: Player, scoring_engine: Optional[ScoringEngine] = None) -> float:
    """
    Position-appropriate base value for a player.

    Offensive skill players are valued by VORP; kickers, team defenses and
    individual defenders by projected weekly points.
    """
    family = player.family
    if family == FAMILY_OFFENSIVE:
        return player.stats.vorp or 0.0
    if family in (FAMILY_KICKER, FAMILY_TEAM_DEFENSE, FAMILY_IDP):
        return (scoring_engine or ScoringEngine()).weekly_points(player)
    raise ValueError(f"No base value for position family {family!r}")


def adjust_value(
    player: Player,
    base: float,
    preference: Optional[PlayerPreference] = None,
    favorite_teams: Iterable[str] = (),
    avoid_teams: Iterable[str] = (),
) -> float:
    """
    Apply user preferences to a base value.

    Order: custom rank replaces the base (rank * 2), then target/avoid,
    then favorite team, then avoided team. Rounded to two decimals.

    Args:
        player: Player being valued
        base: Base value from base_value()
        preference: The player's annotation, if any
        favorite_teams: Teams the user likes
        avoid_teams: Teams the user wants to stay away from

    Returns:
        Adjusted value
    """
    adjusted = base

    if preference is not None:
        if preference.custom_rank is not None:
            adjusted = preference.custom_rank * CUSTOM_RANK_SCALE

        if preference.is_target:
            adjusted *= TARGET_MULTIPLIER
        elif preference.is_avoid:
            adjusted *= AVOID_MULTIPLIER

    if player.team in set(favorite_teams):
        adjusted *= FAVORITE_TEAM_MULTIPLIER
    if player.team in set(avoid_teams):
        adjusted *= AVOID_TEAM_MULTIPLIER

    return math.floor(adjusted * 100 + 0.5) / 100


class PreferenceBook:
    """The user's player notes, flags, custom ranks and team preferences."""

    def __init__(
        self,
        favorite_teams: Optional[Iterable[str]] = None,
        avoid_teams: Optional[Iterable[str]] = None,
        draft_strategy: str = "balanced",
        prioritize_positions: Optional[List[str]] = None,
    ):
        if draft_strategy not in DRAFT_STRATEGIES:
            raise ValueError(f"draft_strategy must be one of {DRAFT_STRATEGIES}")
        self.favorite_teams = set(favorite_teams or [])
        self.avoid_teams = set(avoid_teams or [])
        self.draft_strategy = draft_strategy
        self.prioritize_positions = list(prioritize_positions or ["RB", "WR"])
        self._notes: Dict[str, PlayerPreference] = {}

    def __len__(self) -> int:
        return len(self._notes)

    def _ensure(self, player_id: str) -> PlayerPreference:
        if player_id not in self._notes:
            self._notes[player_id] = PlayerPreference(player_id=player_id)
        return self._notes[player_id]

    def get(self, player_id: str) -> Optional[PlayerPreference]:
        return self._notes.get(player_id)

    def all_preferences(self) -> List[PlayerPreference]:
        return list(self._notes.values())

    def add_note(self, player_id: str, note: str) -> PlayerPreference:
        preference = self._ensure(player_id)
        preference.note = note
        return preference

    def update(self, player_id: str, **updates) -> PlayerPreference:
        """
        Update several fields of a player's preference at once.

        Raises:
            ValueError: For unknown fields, a bad rank or target+avoid together
        """
        allowed = {"note", "is_target", "is_avoid", "custom_rank"}
        unknown = set(updates) - allowed
        if unknown:
            raise ValueError(f"Unknown preference fields: {', '.join(sorted(unknown))}")
        if updates.get("is_target") and updates.get("is_avoid"):
            raise ValueError("A player cannot be both a target and an avoid")
        if "custom_rank" in updates:
            updates["custom_rank"] = _validate_rank(updates["custom_rank"])

        preference = self._ensure(player_id)
        for key, value in updates.items():
            setattr(preference, key, value)
        if updates.get("is_target"):
            preference.is_avoid = False
        if updates.get("is_avoid"):
            preference.is_target = False
        return preference

    def remove(self, player_id: str) -> bool:
        return self._notes.pop(player_id, None) is not None

    def set_target(self, player_id: str, is_target: bool = True) -> PlayerPreference:
        preference = self._ensure(player_id)
        preference.is_target = is_target
        if is_target:
            preference.is_avoid = False
        return preference

    def set_avoid(self, player_id: str, is_avoid: bool = True) -> PlayerPreference:
        preference = self._ensure(player_id)
        preference.is_avoid = is_avoid
        if is_avoid:
            preference.is_target = False
        return preference

    def set_custom_rank(self, player_id: str, rank: int) -> PlayerPreference:
        rank = _validate_rank(rank)
        preference = self._ensure(player_id)
        preference.custom_rank = rank
        return preference

    def clear_custom_rank(self, player_id: str) -> None:
        preference = self._notes.get(player_id)
        if preference:
            preference.custom_rank = None

    def is_target(self, player_id: str) -> bool:
        preference = self._notes.get(player_id)
        return bool(preference and preference.is_target)

    def is_avoid(self, player_id: str) -> bool:
        preference = self._notes.get(player_id)
        return bool(preference and preference.is_avoid)

    def custom_rank(self, player_id: str) -> Optional[int]:
        preference = self._notes.get(player_id)
        return preference.custom_rank if preference else None

    def adjusted_value(self, player: Player, base: float) -> float:
        return adjust_value(
            player,
            base,
            self._notes.get(player.id),
            self.favorite_teams,
            self.avoid_teams,
        )

    def import_notes(self, notes: Iterable[PlayerPreference]) -> None:
        """Replace every player note with the given ones."""
        self._notes = {note.player_id: note for note in notes}

    def export_notes(self) -> str:
        return json.dumps([note.to_dict() for note in self._notes.values()], indent=2)

    def import_notes_json(self, payload: str) -> int:
        """
        Load notes exported by export_notes().

        Raises:
            ValueError: If the payload is not a JSON list of valid notes
        """
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid notes JSON: {e}")
        if not isinstance(data, list):
            raise ValueError("Notes JSON must be a list")
        try:
            notes = [PlayerPreference.from_dict(item) for item in data]
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid note entry: {e}")
        self.import_notes(notes)
        logger.info(f"Imported {len(self._notes)} player notes")
        return len(self._notes)

    def clear_all(self) -> None:
        self._notes.clear()
