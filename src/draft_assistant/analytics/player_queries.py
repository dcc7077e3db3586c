"""Player pool queries - search, sort and summary views over a DataFrame."""

from typing import Dict, List, Optional, Sequence
import logging

import pandas as pd

from draft_assistant.analytics.scoring import ScoringEngine
from draft_assistant.analytics.valuation import base_value
from draft_assistant.models.players import Player

logger = logging.getLogger(__name__)

SORT_COLUMNS = ("name", "vorp", "fps", "adp", "projected_points", "value")

FRAME_COLUMNS = [
    "id", "name", "team", "position", "family", "bye_week",
    "vorp", "fps", "adp", "projected_points", "value",
]


def players_to_frame(players: Sequence[Player], scoring_engine: Optional[ScoringEngine] = None) -> pd.DataFrame:
    """
    Flatten players into one row each.

    `projected_points` is the weekly projection under the engine's scoring
    settings and `value` is the position-appropriate base value.
    """
    engine = scoring_engine or ScoringEngine()
    rows = []
    for player in players:
        stats = player.stats
        rows.append({
            "id": player.id,
            "name": player.name,
            "team": player.team,
            "position": player.position,
            "family": player.family,
            "bye_week": player.bye_week,
            "vorp": getattr(stats, "vorp", None),
            "fps": getattr(stats, "fps", None),
            "adp": getattr(stats, "adp", None),
            "projected_points": engine.weekly_points(player),
            "value": base_value(player, engine),
        })
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    numeric = ["vorp", "fps", "adp", "projected_points", "value"]
    df[numeric] = df[numeric].astype(float)
    return df


def search_players(
    players: Sequence[Player],
    position: Optional[str] = None,
    team: Optional[str] = None,
    name: Optional[str] = None,
    min_vorp: Optional[float] = None,
    max_vorp: Optional[float] = None,
    sort_by: str = "value",
    ascending: bool = False,
    limit: Optional[int] = None,
    scoring_engine: Optional[ScoringEngine] = None,
) -> pd.DataFrame:
    """
    Filter and sort the player pool.

    Args:
        players: Players to search
        position: Exact position filter, e.g. "RB"
        team: Exact team filter, e.g. "TEN"
        name: Case-insensitive substring of the player name
        min_vorp: Lower VORP bound (players without VORP are excluded)
        max_vorp: Upper VORP bound (players without VORP are excluded)
        sort_by: One of SORT_COLUMNS
        ascending: Sort direction
        limit: Maximum number of rows

    Returns:
        Matching players as a DataFrame

    Raises:
        ValueError: If sort_by is not a known column
    """
    if sort_by not in SORT_COLUMNS:
        raise ValueError(f"sort_by must be one of {SORT_COLUMNS}, got {sort_by!r}")

    df = players_to_frame(players, scoring_engine)
    if df.empty:
        return df

    if position:
        df = df[df["position"] == position.upper()]
    if team:
        df = df[df["team"] == team.upper()]
    if name:
        df = df[df["name"].str.lower().str.contains(name.lower(), regex=False)]
    if min_vorp is not None:
        df = df[df["vorp"].notna() & (df["vorp"] >= min_vorp)]
    if max_vorp is not None:
        df = df[df["vorp"].notna() & (df["vorp"] <= max_vorp)]

    if sort_by == "name":
        df = df.sort_values("name", ascending=ascending, key=lambda s: s.str.lower())
    else:
        # Missing values always sink to the bottom
        df = df.sort_values([sort_by, "name"], ascending=[ascending, True], na_position="last")

    if limit is not None:
        df = df.head(limit)
    return df.reset_index(drop=True)


def top_performers(
    players: Sequence[Player],
    position: Optional[str] = None,
    limit: int = 10,
    scoring_engine: Optional[ScoringEngine] = None,
) -> pd.DataFrame:
    """Highest projected weekly scorers, optionally for one position."""
    return search_players(
        players,
        position=position,
        sort_by="projected_points",
        limit=limit,
        scoring_engine=scoring_engine,
    )


def sleeper_candidates(
    players: Sequence[Player],
    min_vorp: float = 0.0,
    min_adp: float = 100.0,
    limit: int = 10,
) -> pd.DataFrame:
    """
    Players going late in drafts who still project above replacement.

    Sorted by VORP per ADP slot, best first.
    """
    df = players_to_frame(players)
    if df.empty:
        return df.assign(vorp_per_adp=pd.Series(dtype=float))

    df = df[df["vorp"].notna() & df["adp"].notna()]
    df = df[(df["vorp"] > min_vorp) & (df["adp"] >= min_adp)]
    df = df.assign(vorp_per_adp=(df["vorp"] / df["adp"]).round(3))
    df = df.sort_values(["vorp_per_adp", "name"], ascending=[False, True])
    return df.head(limit).reset_index(drop=True)


def handcuff_candidates(roster: Sequence[Player], available: Sequence[Player]) -> pd.DataFrame:
    """Available running backs sharing a team with a rostered running back."""
    starters: Dict[str, List[str]] = {}
    for player in roster:
        if player.position == "RB" and player.team:
            starters.setdefault(player.team, []).append(player.name)

    rows = [
        {
            "id": player.id,
            "name": player.name,
            "team": player.team,
            "handcuff_for": ", ".join(starters[player.team]),
            "vorp": player.stats.vorp,
        }
        for player in available
        if player.position == "RB" and player.team in starters
    ]
    df = pd.DataFrame(rows, columns=["id", "name", "team", "handcuff_for", "vorp"])
    return df.sort_values(["team", "name"]).reset_index(drop=True)


def pool_stats(players: Sequence[Player], scoring_engine: Optional[ScoringEngine] = None) -> pd.DataFrame:
    """Per-position counts and value summary for the pool, grouped by family."""
    df = players_to_frame(players, scoring_engine)
    columns = ["family", "position", "players", "avg_value", "max_value", "avg_points"]
    if df.empty:
        return pd.DataFrame(columns=columns)

    summary = (
        df.groupby(["family", "position"])
        .agg(
            players=("id", "count"),
            avg_value=("value", "mean"),
            max_value=("value", "max"),
            avg_points=("projected_points", "mean"),
        )
        .reset_index()
    )
    summary[["avg_value", "max_value", "avg_points"]] = summary[["avg_value", "max_value", "avg_points"]].round(2)
    logger.debug(f"Pool stats across {len(summary)} positions")
    return summary[columns].sort_values(["family", "position"]).reset_index(drop=True)
