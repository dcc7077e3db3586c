"""Draft models - teams and the append-only pick log."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from draft_assistant.models.players import Player


@dataclass
class DraftTeam:
    """A team in the draft. Only the roster changes during a draft."""
    id: str
    name: str
    roster: List[Player] = field(default_factory=list)
    is_user: bool = False

    def position_count(self, position: str) -> int:
        """Number of rostered players at an exact position."""
        return sum(1 for p in self.roster if p.position == position)

    def position_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for player in self.roster:
            counts[player.position] = counts.get(player.position, 0) + 1
        return counts

    @classmethod
    def build_league(cls, number_of_teams: int, user_team_index: int,
                     names: Optional[List[str]] = None) -> List["DraftTeam"]:
        """Create empty teams, naming them "Team N" unless names are given."""
        names = names or [f"Team {i + 1}" for i in range(number_of_teams)]
        return [
            cls(id=f"team-{i + 1}", name=name, is_user=(i == user_team_index))
            for i, name in enumerate(names)
        ]


@dataclass(frozen=True)
class DraftPick:
    """One entry in the pick log. player is None for a skipped slot."""
    pick_number: int
    team_index: int
    player: Optional[Player] = None
    timestamp: Optional[datetime] = None

    @property
    def is_skip(self) -> bool:
        return self.player is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pick_number": self.pick_number,
            "team_index": self.team_index,
            "player_id": self.player.id if self.player else None,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
