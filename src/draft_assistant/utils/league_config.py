"""League Configuration Module - draft settings, scoring rules and YAML loading."""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Mapping, Optional, Any, Set, Tuple
from pathlib import Path
from types import MappingProxyType
import logging

import yaml

from draft_assistant.models.players import ALL_POSITIONS

logger = logging.getLogger(__name__)

DRAFT_TYPES = ("snake", "linear")

FLEX_SLOTS = ("FLEX", "SUPERFLEX", "WR_TE", "RB_WR")
RESERVE_SLOTS = ("BENCH", "IR")
ROSTER_KEYS = ALL_POSITIONS + FLEX_SLOTS + RESERVE_SLOTS


class LeagueConfigError(Exception):
    """Raised for draft settings that cannot start a draft."""
    pass


@dataclass(frozen=True)
class FlexPosition:
    """Represents a flex position with eligible position types."""
    name: str  # FLEX, SUPERFLEX, etc.
    eligible_positions: frozenset  # Which positions can fill this slot

    @classmethod
    def flex(cls) -> "FlexPosition":
        """Standard RB/WR/TE flex."""
        return cls("FLEX", frozenset({"RB", "WR", "TE"}))

    @classmethod
    def superflex(cls) -> "FlexPosition":
        """Superflex - QB/RB/WR/TE."""
        return cls("SUPERFLEX", frozenset({"QB", "RB", "WR", "TE"}))

    @classmethod
    def wr_te_flex(cls) -> "FlexPosition":
        """WR/TE only flex."""
        return cls("WR_TE", frozenset({"WR", "TE"}))

    @classmethod
    def rb_wr_flex(cls) -> "FlexPosition":
        """RB/WR only flex."""
        return cls("RB_WR", frozenset({"RB", "WR"}))

    @classmethod
    def from_slot(cls, slot: str) -> Optional["FlexPosition"]:
        factories = {
            "FLEX": cls.flex,
            "SUPERFLEX": cls.superflex,
            "WR_TE": cls.wr_te_flex,
            "RB_WR": cls.rb_wr_flex,
        }
        factory = factories.get(slot)
        return factory() if factory else None


def default_roster_positions() -> Dict[str, int]:
    return {
        "QB": 1, "RB": 1, "WR": 2, "TE": 1, "FLEX": 2,
        "K": 1, "DEF": 1, "DB": 1, "DL": 1, "LB": 1,
        "BENCH": 6, "IR": 1,
    }


@dataclass(frozen=True)
class DraftSettings:
    """Draft configuration. Replaced wholesale, never edited during a draft."""

    number_of_teams: int = 14
    user_team_index: int = 0
    draft_type: str = "snake"  # snake, linear
    pick_time_limit_seconds: int = 120
    roster_position_counts: Mapping[str, int] = field(default_factory=default_roster_positions)

    def __post_init__(self):
        # Read-only copy, detached from the caller's dict
        object.__setattr__(self, "roster_position_counts", MappingProxyType(dict(self.roster_position_counts)))

    def __hash__(self) -> int:
        return hash((
            self.number_of_teams,
            self.user_team_index,
            self.draft_type,
            self.pick_time_limit_seconds,
            frozenset(self.roster_position_counts.items()),
        ))

    @property
    def total_roster_slots(self) -> int:
        """Roster size per team, bench and reserve slots included."""
        return sum(self.roster_position_counts.values())

    @property
    def total_picks(self) -> int:
        return self.number_of_teams * self.total_roster_slots

    @property
    def flex_positions(self) -> List[FlexPosition]:
        """Parse flex positions from roster configuration."""
        flex_positions = []
        for slot, count in self.roster_position_counts.items():
            flex = FlexPosition.from_slot(slot)
            if flex and count > 0:
                flex_positions.extend([flex] * count)
        return flex_positions

    @property
    def flex_eligible_positions(self) -> Set[str]:
        """Positions that can fill at least one flex slot."""
        positions: Set[str] = set()
        for flex in self.flex_positions:
            positions.update(flex.eligible_positions)
        return positions

    @property
    def flex_slot_count(self) -> int:
        return len(self.flex_positions)

    def position_max(self, position: str) -> int:
        """Required starters at an exact position."""
        return self.roster_position_counts.get(position, 0)

    def validate(self) -> None:
        """
        Reject settings that cannot run a draft.

        Raises:
            LeagueConfigError: On zero teams, an empty roster, an out of range
                user team, an unknown draft type or an unknown roster key
        """
        if self.number_of_teams <= 0:
            raise LeagueConfigError(f"number_of_teams must be positive, got {self.number_of_teams}")
        if not 0 <= self.user_team_index < self.number_of_teams:
            raise LeagueConfigError(
                f"user_team_index ({self.user_team_index}) must be in range "
                f"[0, {self.number_of_teams})"
            )
        if self.draft_type not in DRAFT_TYPES:
            raise LeagueConfigError(f"draft_type must be one of {DRAFT_TYPES}, got {self.draft_type!r}")
        if self.pick_time_limit_seconds < 0:
            raise LeagueConfigError("pick_time_limit_seconds cannot be negative")

        unknown = [key for key in self.roster_position_counts if key not in ROSTER_KEYS]
        if unknown:
            raise LeagueConfigError(f"Unknown roster positions: {', '.join(sorted(unknown))}")
        if any(count < 0 for count in self.roster_position_counts.values()):
            raise LeagueConfigError("Roster position counts cannot be negative")
        if self.total_roster_slots <= 0:
            raise LeagueConfigError("Roster position counts sum to zero")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "number_of_teams": self.number_of_teams,
            "user_team_index": self.user_team_index,
            "draft_type": self.draft_type,
            "pick_time_limit_seconds": self.pick_time_limit_seconds,
            "roster_position_counts": dict(self.roster_position_counts),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DraftSettings":
        """Create from dictionary."""
        return cls(
            number_of_teams=int(data.get("number_of_teams", 14)),
            user_team_index=int(data.get("user_team_index", 0)),
            draft_type=data.get("draft_type", "snake"),
            pick_time_limit_seconds=int(data.get("pick_time_limit_seconds", 120)),
            roster_position_counts=dict(data.get("roster_position_counts") or default_roster_positions()),
        )


# Scoring rules. Bonus tiers are (threshold, points) pairs.

@dataclass
class PassingScoring:
    yards_per_point: float = 50
    td_points: float = 6
    interception_penalty: float = -2
    yard_bonus: List[Tuple[float, float]] = field(default_factory=lambda: [(300, 2)])


@dataclass
class RushingScoring:
    yards_per_point: float = 15
    td_points: float = 6
    yard_bonus: List[Tuple[float, float]] = field(default_factory=lambda: [(100, 1)])


@dataclass
class ReceivingScoring:
    yards_per_point: float = 15
    td_points: float = 6
    reception_points: float = 0.5  # Half-PPR
    yard_bonus: List[Tuple[float, float]] = field(default_factory=lambda: [(100, 1)])


@dataclass
class KickingScoring:
    # (min_yards, max_yards, points)
    field_goals: List[Tuple[float, float, float]] = field(
        default_factory=lambda: [(0, 39, 3), (40, 49, 4), (50, 99, 5)]
    )
    # (min_yards, max_yards, penalty)
    missed_field_goals: List[Tuple[float, float, float]] = field(
        default_factory=lambda: [(0, 19, -3), (20, 29, -2), (30, 39, -1)]
    )
    extra_points: float = 1


@dataclass
class TeamDefenseScoring:
    sack: float = 2
    interception: float = 2
    fumble_recovery: float = 2
    touchdown: float = 6
    safety: float = 2
    # (min_points, max_points, points)
    points_allowed: List[Tuple[float, float, float]] = field(
        default_factory=lambda: [
            (0, 0, 10),
            (1, 6, 7),
            (7, 13, 4),
            (14, 20, 1),
            (21, 27, 0),
            (28, 34, -1),
            (35, 999, -4),
        ]
    )


@dataclass
class IDPScoring:
    solo_tackle: float = 1
    assist_tackle: float = 0.5
    sack: float = 3
    interception: float = 3.5
    forced_fumble: float = 1
    fumble_recovery: float = 1
    touchdown: float = 6
    safety: float = 2


_SCORING_SECTIONS = {
    "passing": PassingScoring,
    "rushing": RushingScoring,
    "receiving": ReceivingScoring,
    "kicking": KickingScoring,
    "team_defense": TeamDefenseScoring,
    "idp": IDPScoring,
}


@dataclass
class ScoringSettings:
    """Complete league scoring system."""

    passing: PassingScoring = field(default_factory=PassingScoring)
    rushing: RushingScoring = field(default_factory=RushingScoring)
    receiving: ReceivingScoring = field(default_factory=ReceivingScoring)
    kicking: KickingScoring = field(default_factory=KickingScoring)
    team_defense: TeamDefenseScoring = field(default_factory=TeamDefenseScoring)
    idp: IDPScoring = field(default_factory=IDPScoring)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ScoringSettings":
        """
        Create from a (possibly partial) dictionary.

        Sections and keys that are not given keep their defaults. Bonus and
        bracket lists are replaced wholesale.
        """
        data = data or {}
        sections = {}
        for name, section_cls in _SCORING_SECTIONS.items():
            overrides = data.get(name) or {}
            section = section_cls()
            for key, value in overrides.items():
                if not hasattr(section, key):
                    logger.warning(f"Ignoring unknown scoring key: {name}.{key}")
                    continue
                if isinstance(value, list):
                    value = [tuple(item) for item in value]
                setattr(section, key, value)
            sections[name] = section
        return cls(**sections)


class ConfigLoader:
    """Load and manage draft configuration."""

    def __init__(self, config_path: str = "config/config.yaml"):
        self.config_path = Path(config_path)

    def load_base_config(self) -> Dict[str, Any]:
        """Load base configuration from config.yaml."""
        try:
            with open(self.config_path, 'r') as f:
                return yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning(f"Config file not found: {self.config_path}")
            return {}
        except yaml.YAMLError as e:
            logger.error(f"Error parsing config file: {e}")
            return {}

    def get_draft_settings(self) -> DraftSettings:
        """
        Get draft settings with fallback hierarchy:
        1. `draft` section of config.yaml (validated)
        2. Default settings
        """
        draft_config = self.load_base_config().get("draft", {})
        if draft_config:
            try:
                settings = DraftSettings.from_dict(draft_config)
                settings.validate()
                logger.info("Using draft settings from config.yaml")
                return settings
            except (LeagueConfigError, TypeError, ValueError) as e:
                logger.warning(f"Invalid draft settings in config: {e}, falling back to defaults")

        logger.info("Using default draft settings")
        return DraftSettings()

    def get_scoring_settings(self) -> ScoringSettings:
        """Scoring rules from config.yaml, defaults for anything missing."""
        return ScoringSettings.from_dict(self.load_base_config().get("scoring"))

    def get_storage_paths(self) -> Dict[str, str]:
        storage = self.load_base_config().get("storage", {}) or {}
        return {
            "db_path": storage.get("db_path", "data/draft_assistant.duckdb"),
            "state_file": storage.get("state_file", "data/draft_state.json"),
            "backup_dir": storage.get("backup_dir", "data/backups"),
        }

    def save_draft_settings(self, settings: DraftSettings) -> None:
        """Write draft settings back into config.yaml, keeping other sections."""
        config = self.load_base_config()
        config["draft"] = settings.to_dict()
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w') as f:
                yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
            logger.info(f"Saved draft settings to {self.config_path}")
        except OSError as e:
            raise LeagueConfigError(f"Error saving draft settings: {e}")
