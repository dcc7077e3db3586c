"""Player models - canonical player records with position-family stat bags."""

import re
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Optional, Union


# Position families
OFFENSIVE_POSITIONS = ("QB", "RB", "WR", "TE")
KICKER_POSITIONS = ("K",)
TEAM_DEFENSE_POSITIONS = ("DEF",)
IDP_POSITIONS = ("DB", "DL", "LB")

ALL_POSITIONS = OFFENSIVE_POSITIONS + KICKER_POSITIONS + TEAM_DEFENSE_POSITIONS + IDP_POSITIONS

FAMILY_OFFENSIVE = "offensive"
FAMILY_KICKER = "kicker"
FAMILY_TEAM_DEFENSE = "team_defense"
FAMILY_IDP = "idp"

POSITION_FAMILIES = {
    **{pos: FAMILY_OFFENSIVE for pos in OFFENSIVE_POSITIONS},
    **{pos: FAMILY_KICKER for pos in KICKER_POSITIONS},
    **{pos: FAMILY_TEAM_DEFENSE for pos in TEAM_DEFENSE_POSITIONS},
    **{pos: FAMILY_IDP for pos in IDP_POSITIONS},
}

# Team abbreviation aliases -> canonical code
TEAM_ABBREVIATIONS = {
    "ARI": "ARI", "ARZ": "ARI", "ARIZ": "ARI",
    "ATL": "ATL",
    "BAL": "BAL", "BALT": "BAL",
    "BUF": "BUF",
    "CAR": "CAR",
    "CHI": "CHI",
    "CIN": "CIN",
    "CLE": "CLE", "CLEV": "CLE",
    "DAL": "DAL",
    "DEN": "DEN", "DENV": "DEN",
    "DET": "DET",
    "GB": "GB", "GBP": "GB", "GNBY": "GB",
    "HOU": "HOU",
    "IND": "IND",
    "JAC": "JAC", "JAX": "JAC",
    "KC": "KC", "KAN": "KC",
    "LV": "LV", "LVR": "LV", "RAI": "LV",
    "LAC": "LAC", "LACH": "LAC", "SD": "LAC",
    "LAR": "LAR", "LARM": "LAR", "STL": "LAR",
    "MIA": "MIA",
    "MIN": "MIN", "MINN": "MIN",
    "NE": "NE", "NEP": "NE", "NWE": "NE",
    "NO": "NO", "NOR": "NO", "NOLA": "NO",
    "NYG": "NYG", "NYGI": "NYG",
    "NYJ": "NYJ", "NYJE": "NYJ",
    "PHI": "PHI", "PHIL": "PHI",
    "PIT": "PIT", "PITT": "PIT",
    "SF": "SF", "SFO": "SF",
    "SEA": "SEA", "SEAT": "SEA",
    "TB": "TB", "TAM": "TB",
    "TEN": "TEN", "TENN": "TEN",
    "WAS": "WAS", "WSH": "WAS", "WASH": "WAS",
}

# Source position labels that map onto the fixed enumeration
POSITION_ALIASES = {
    "FB": "RB",
    "PK": "K",
    "DST": "DEF",
    "D/ST": "DEF",
    "D": "DEF",
    "CB": "DB",
    "S": "DB",
    "SS": "DB",
    "FS": "DB",
    "DE": "DL",
    "DT": "DL",
    "NT": "DL",
    "EDGE": "DL",
    "MLB": "LB",
    "OLB": "LB",
    "ILB": "LB",
}


def normalize_team(team: Optional[str]) -> str:
    """Map a team label onto its canonical 2-3 letter code."""
    if not team:
        return ""
    upper = str(team).upper().strip()
    return TEAM_ABBREVIATIONS.get(upper, upper)


def normalize_position(position: Optional[str]) -> Optional[str]:
    """
    Resolve a source position label to one of ALL_POSITIONS.

    Args:
        position: Raw position label, e.g. "RB1", "D/ST", "OLB"

    Returns:
        Canonical position, or None when it cannot be resolved
    """
    if not position:
        return None

    # "RB1" -> "RB"
    cleaned = re.sub(r"\d+$", "", str(position).upper().strip())
    cleaned = POSITION_ALIASES.get(cleaned, cleaned)

    return cleaned if cleaned in POSITION_FAMILIES else None


def position_family(position: str) -> str:
    """Get the stat-bag family for a position."""
    try:
        return POSITION_FAMILIES[position]
    except KeyError:
        raise ValueError(f"Unknown position: {position}")


def make_player_id(name: str, team: str, position: str) -> str:
    """Stable player id derived from name, team and position."""
    slug = re.sub(r"[^a-z0-9]", "-", name.lower())
    return f"{slug}-{team.lower()}-{position.lower()}"


@dataclass(frozen=True)
class OffensiveStats:
    """Projections for QB/RB/WR/TE."""
    vorp: Optional[float] = None
    fps: Optional[float] = None  # projected weekly fantasy points
    passing_yards: Optional[float] = None
    passing_tds: Optional[float] = None
    interceptions: Optional[float] = None
    rushing_yards: Optional[float] = None
    rushing_tds: Optional[float] = None
    receptions: Optional[float] = None
    receiving_yards: Optional[float] = None
    receiving_tds: Optional[float] = None
    fumbles: Optional[float] = None
    adp: Optional[float] = None
    auction_value: Optional[float] = None


@dataclass(frozen=True)
class KickerStats:
    field_goals: Optional[float] = None
    field_goal_attempts: Optional[float] = None
    extra_points: Optional[float] = None
    extra_point_attempts: Optional[float] = None


@dataclass(frozen=True)
class TeamDefenseStats:
    sacks: Optional[float] = None
    interceptions: Optional[float] = None
    fumble_recoveries: Optional[float] = None
    defensive_tds: Optional[float] = None
    safeties: Optional[float] = None
    points_allowed: Optional[float] = None


@dataclass(frozen=True)
class IDPStats:
    """Individual defensive player projections; tier 1 is the best tier."""
    tier: Optional[float] = None
    solo_tackles: Optional[float] = None
    assist_tackles: Optional[float] = None
    sacks: Optional[float] = None
    interceptions: Optional[float] = None
    forced_fumbles: Optional[float] = None
    fumble_recoveries: Optional[float] = None
    defensive_tds: Optional[float] = None


PlayerStats = Union[OffensiveStats, KickerStats, TeamDefenseStats, IDPStats]

STATS_BY_FAMILY = {
    FAMILY_OFFENSIVE: OffensiveStats,
    FAMILY_KICKER: KickerStats,
    FAMILY_TEAM_DEFENSE: TeamDefenseStats,
    FAMILY_IDP: IDPStats,
}


def stat_field_names(family: str):
    """Names of the numeric fields carried by a family's stat bag."""
    return [f.name for f in fields(STATS_BY_FAMILY[family])]


def build_stats(position: str, values: Optional[Dict[str, Any]] = None) -> PlayerStats:
    """
    Build the stat bag for a position from a flat mapping.

    Unknown keys are ignored and empty values become None.
    """
    family = position_family(position)
    stats_cls = STATS_BY_FAMILY[family]
    values = values or {}

    kwargs = {}
    for name in stat_field_names(family):
        value = values.get(name)
        if value is None or value == "":
            continue
        kwargs[name] = float(value)

    return stats_cls(**kwargs)


@dataclass(frozen=True)
class Player:
    """Canonical player record."""
    id: str
    name: str
    team: str
    position: str
    bye_week: int = 0
    stats: PlayerStats = None

    def __post_init__(self):
        expected = STATS_BY_FAMILY[position_family(self.position)]
        if self.stats is None:
            object.__setattr__(self, "stats", expected())
        elif not isinstance(self.stats, expected):
            raise ValueError(
                f"{self.name} ({self.position}) needs {expected.__name__}, "
                f"got {type(self.stats).__name__}"
            )

    @property
    def family(self) -> str:
        return POSITION_FAMILIES[self.position]

    @classmethod
    def create(
        cls,
        name: str,
        team: str,
        position: str,
        bye_week: int = 0,
        stats: Optional[Dict[str, Any]] = None,
    ) -> "Player":
        """Create a player with a derived id and normalized team/position."""
        resolved = normalize_position(position)
        if resolved is None:
            raise ValueError(f"Unresolvable position for {name}: {position!r}")
        team = normalize_team(team)
        return cls(
            id=make_player_id(name, team, resolved),
            name=name,
            team=team,
            position=resolved,
            bye_week=int(bye_week or 0),
            stats=build_stats(resolved, stats),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "team": self.team,
            "position": self.position,
            "bye_week": self.bye_week,
            "stats": {k: v for k, v in asdict(self.stats).items() if v is not None},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        """Create from dictionary."""
        position = data["position"]
        return cls(
            id=data["id"],
            name=data["name"],
            team=data.get("team", ""),
            position=position,
            bye_week=int(data.get("bye_week") or 0),
            stats=build_stats(position, data.get("stats", {})),
        )
