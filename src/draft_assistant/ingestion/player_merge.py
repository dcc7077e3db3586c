#!/usr/bin/env python3
"""Player merge module for reconciling player records from multiple data sources."""

import pandas as pd
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging
import re

from draft_assistant.models.players import (
    Player,
    make_player_id,
    normalize_position,
)

# Set up logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

CONFLICT_TEAM = "team"
CONFLICT_POSITION = "position"

# Ranking fields where a lower number is the better value
RANK_FIELDS = {"tier", "adp"}

SUFFIX_PATTERN = re.compile(r"\b(jr|sr|iii|ii|iv)\b")


@dataclass
class RawPlayerRecord:
    """A typed player record as handed over by one data source."""
    source: str
    name: str
    position: str
    team: str = ""
    bye_week: Any = 0
    stats: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MergeConflict:
    player_id: str
    player_name: str
    conflict_type: str  # team, position
    sources: tuple

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "player_name": self.player_name,
            "conflict_type": self.conflict_type,
            "sources": list(self.sources),
        }


@dataclass(frozen=True)
class DroppedRecord:
    source: str
    name: str
    reason: str


@dataclass
class MergeResult:
    """Canonical players from one merge run plus its data-quality report."""
    players: Dict[str, Player] = field(default_factory=dict)
    conflicts: List[MergeConflict] = field(default_factory=list)
    dropped: List[DroppedRecord] = field(default_factory=list)
    duplicates_found: int = 0

    @property
    def dropped_count(self) -> int:
        return len(self.dropped)

    def summary(self) -> Dict[str, int]:
        return {
            "players": len(self.players),
            "duplicates_found": self.duplicates_found,
            "conflicts": len(self.conflicts),
            "dropped": self.dropped_count,
        }


class PlayerMerger:
    """Merges player records across sources by normalized name."""

    def normalize_name(self, name: str) -> str:
        """
        Normalize player name for duplicate grouping.

        Args:
            name: Player name to normalize

        Returns:
            Normalized name
        """
        if not name:
            return ""

        # Convert to lowercase
        name = name.lower()

        # Remove punctuation
        name = re.sub(r'[^a-z0-9\s]', '', name)

        # Remove extra spaces
        name = ' '.join(name.split())

        # Remove generational suffixes
        name = SUFFIX_PATTERN.sub('', name)

        return ' '.join(name.split())

    def merge(self, records: Iterable[RawPlayerRecord]) -> MergeResult:
        """
        Merge raw records into canonical players.

        Args:
            records: Ordered raw records, each tagged with its source

        Returns:
            MergeResult with players keyed by id, conflicts and dropped rows
        """
        result = MergeResult()
        groups: Dict[str, List[Tuple[RawPlayerRecord, Player]]] = {}

        for record in records:
            try:
                player = self._to_player(record)
            except ValueError as e:
                logger.warning(f"Dropping record from {record.source}: {record.name!r} ({e})")
                result.dropped.append(DroppedRecord(record.source, record.name or "", str(e)))
                continue
            key = self.normalize_name(record.name)
            groups.setdefault(key, []).append((record, player))

        base_records: Dict[str, RawPlayerRecord] = {}
        for group in groups.values():
            if len(group) == 1:
                player = group[0][1]
            else:
                result.duplicates_found += len(group) - 1
                player = self._merge_group(group, result.conflicts)

            existing = result.players.get(player.id)
            if existing is None:
                base_records[player.id] = group[0][0]
            else:
                # Spellings that group apart can still slug to the same id
                result.duplicates_found += 1
                player = self._merge_group(
                    [(base_records[existing.id], existing), (group[0][0], player)],
                    result.conflicts,
                )
            result.players[player.id] = player

        logger.info(
            f"✓ Merged {len(result.players)} players "
            f"({result.duplicates_found} duplicates, {len(result.conflicts)} conflicts, "
            f"{result.dropped_count} dropped)"
        )
        return result

    def _to_player(self, record: RawPlayerRecord) -> Player:
        """
        Build a canonical player from one record.

        Raises:
            ValueError: If the name is missing, the position cannot be
                resolved or the bye week or a stat is not numeric
        """
        if not record.name or not str(record.name).strip():
            raise ValueError("missing name")
        if normalize_position(record.position) is None:
            raise ValueError(f"unresolvable position {record.position!r}")
        try:
            bye_week = int(record.bye_week or 0)
        except (TypeError, ValueError):
            raise ValueError(f"non-numeric bye week {record.bye_week!r}") from None
        return Player.create(
            name=str(record.name).strip(),
            team=record.team,
            position=record.position,
            bye_week=bye_week,
            stats=record.stats,
        )

    def _merge_group(self, group: List[Tuple[RawPlayerRecord, Player]],
                     conflicts: List[MergeConflict]) -> Player:
        """Fold duplicates into the first record of the group."""
        base_record, merged = group[0]

        for record, incoming in group[1:]:
            sources = tuple(dict.fromkeys([base_record.source, record.source]))

            # Team conflicts
            if incoming.team and merged.team and incoming.team != merged.team:
                conflicts.append(MergeConflict(merged.id, merged.name, CONFLICT_TEAM, sources))
                logger.warning(f"Team conflict for {merged.name}: {merged.team} vs {incoming.team} ({', '.join(sources)})")
            elif incoming.team and not merged.team:
                merged = replace(
                    merged,
                    team=incoming.team,
                    id=make_player_id(merged.name, incoming.team, merged.position),
                )

            # Position never changes once set; stats of another family cannot be folded
            if incoming.position != merged.position:
                conflicts.append(MergeConflict(merged.id, merged.name, CONFLICT_POSITION, sources))
                logger.warning(f"Position conflict for {merged.name}: {merged.position} vs {incoming.position} ({', '.join(sources)})")
                continue

            merged = replace(merged, stats=self._reconcile_stats(merged.stats, incoming.stats))

            if not merged.bye_week and incoming.bye_week:
                merged = replace(merged, bye_week=incoming.bye_week)

        return merged

    def _reconcile_stats(self, base, incoming):
        updates = {}
        for stat in fields(base):
            current = getattr(base, stat.name)
            candidate = getattr(incoming, stat.name)
            if candidate is None:
                continue
            if current is None:
                updates[stat.name] = candidate
            elif stat.name in RANK_FIELDS:
                if candidate < current:
                    updates[stat.name] = candidate
            elif candidate > current:
                updates[stat.name] = candidate
        return replace(base, **updates) if updates else base


class PlayerPool:
    """Canonical player pool keyed by player id."""

    def __init__(self, merger: Optional[PlayerMerger] = None):
        self.merger = merger or PlayerMerger()
        self._players: Dict[str, Player] = {}

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, player_id: str) -> bool:
        return player_id in self._players

    def merge_records(self, records: Iterable[RawPlayerRecord]) -> MergeResult:
        """Merge a batch of records and upsert the results into the pool."""
        result = self.merger.merge(records)
        self._players.update(result.players)
        return result

    def add(self, player: Player) -> None:
        self._players[player.id] = player

    def get(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def remove(self, player_id: str) -> bool:
        return self._players.pop(player_id, None) is not None

    def all_players(self) -> List[Player]:
        return list(self._players.values())

    def as_dict(self) -> Dict[str, Player]:
        return dict(self._players)

    def clear(self) -> None:
        logger.info(f"Clearing player pool ({len(self._players)} players)")
        self._players.clear()


def records_from_frame(df: pd.DataFrame, source: str) -> List[RawPlayerRecord]:
    """
    Convert an already-normalized DataFrame into raw records.

    Expects `name` and `position` columns; `team` and `bye_week` are optional
    and every other column is treated as a stat.

    Args:
        df: Normalized player rows from one source
        source: Source name attached to every record

    Returns:
        List of RawPlayerRecord
    """
    identity_columns = {"name", "team", "position", "bye_week", "id"}
    stat_columns = [c for c in df.columns if c not in identity_columns]

    records = []
    for row in df.to_dict(orient="records"):
        stats = {
            col: row[col] for col in stat_columns
            if row.get(col) is not None and not pd.isna(row[col])
        }
        name = row.get("name")
        team = row.get("team")
        bye_week = row.get("bye_week")
        records.append(RawPlayerRecord(
            source=source,
            name="" if name is None or pd.isna(name) else str(name),
            position="" if pd.isna(row.get("position")) else str(row.get("position")),
            team="" if team is None or pd.isna(team) else str(team),
            bye_week=0 if bye_week is None or pd.isna(bye_week) else bye_week,
            stats=stats,
        ))
    return records
