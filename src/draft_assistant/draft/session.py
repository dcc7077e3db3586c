"""Draft session - turn order, rosters, the pick log and undo."""

from dataclasses import replace
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Sequence
import logging

from draft_assistant.analytics.recommendations import Recommendation, RecommendationEngine
from draft_assistant.analytics.scoring import ScoringEngine
from draft_assistant.analytics.valuation import PreferenceBook
from draft_assistant.draft.turn_order import round_for_pick, team_for_pick
from draft_assistant.models.draft import DraftPick, DraftTeam
from draft_assistant.models.players import Player
from draft_assistant.utils.league_config import DraftSettings, LeagueConfigError

logger = logging.getLogger(__name__)


class DraftStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    CONFIGURED = "configured"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETE = "complete"


class DraftSessionError(Exception):
    """Base class for rejected draft operations."""
    pass


class DraftPreconditionError(DraftSessionError):
    """An operation was called in a state that does not allow it."""
    pass


class DraftNotInitializedError(DraftPreconditionError):
    pass


class DraftCompleteError(DraftPreconditionError):
    pass


class PlayerUnavailableError(DraftPreconditionError):
    pass


class InvalidTeamIndexError(DraftPreconditionError):
    pass


def _player_sort_key(player: Player):
    return (player.name.lower(), player.id)


class DraftSession:
    """
    One live draft for a single operator.

    The pick log is the source of truth. Rosters and the available pool are
    kept in lockstep with it: every pool player is either available or on
    exactly one roster.
    """

    def __init__(self):
        self.settings: Optional[DraftSettings] = None
        self.teams: List[DraftTeam] = []
        self.is_active = False
        self.current_pick_number = 1
        self.current_team_index = 0
        self.time_remaining = 0
        self._picks: List[DraftPick] = []
        self._available: List[Player] = []
        self._pool_ids: frozenset = frozenset()
        self._started = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self, settings: DraftSettings, teams: Sequence[DraftTeam], players: Sequence[Player]) -> None:
        """
        Load settings, teams and the player pool. Does not start the clock.

        Args:
            settings: Draft settings
            teams: One team per draft slot, in draft order
            players: The full player pool, all available

        Raises:
            LeagueConfigError: If settings, teams or pool are inconsistent
        """
        settings.validate()
        if len(teams) != settings.number_of_teams:
            raise LeagueConfigError(
                f"Got {len(teams)} teams for a {settings.number_of_teams}-team draft"
            )

        ids = [p.id for p in players]
        if len(set(ids)) != len(ids):
            raise LeagueConfigError("Player pool contains duplicate player ids")

        self.settings = settings
        self.teams = [
            replace(team, roster=[], is_user=(index == settings.user_team_index))
            for index, team in enumerate(teams)
        ]
        self._available = sorted(players, key=_player_sort_key)
        self._pool_ids = frozenset(ids)
        self._picks = []
        self.current_pick_number = 1
        self.current_team_index = team_for_pick(1, settings.number_of_teams, settings.draft_type)
        self.time_remaining = settings.pick_time_limit_seconds
        self.is_active = False
        self._started = False

        logger.info(
            f"✓ Draft initialized: {settings.number_of_teams} teams, {settings.draft_type}, "
            f"{settings.total_roster_slots} rounds, {len(self._available)} players"
        )

    def update_settings(self, settings: DraftSettings) -> None:
        """Apply new settings and reset the draft, returning every player to the pool."""
        self._require_initialized()
        pool = self._all_pool_players()
        names = [team.name for team in self.teams]
        if len(names) != settings.number_of_teams:
            names = None
        teams = DraftTeam.build_league(settings.number_of_teams, settings.user_team_index, names)
        if names:
            teams = [replace(new, id=old.id) for new, old in zip(teams, self.teams)]
        self.initialize(settings, teams, pool)

    def start(self) -> None:
        self._require_initialized()
        self.is_active = True
        self._started = True

    def pause(self) -> None:
        self._require_initialized()
        self.is_active = False

    # ------------------------------------------------------------------
    # Picks
    # ------------------------------------------------------------------

    def record_pick(self, player: Player, team_index: Optional[int] = None,
                    timestamp: Optional[datetime] = None) -> DraftPick:
        """
        Record a pick for any team, the user's or an opponent's.

        Args:
            player: Player taken; must still be available
            team_index: Team making the pick, defaults to the team on the clock
            timestamp: Pick time, defaults to now

        Returns:
            The new pick log entry

        Raises:
            DraftPreconditionError: If the draft is not initialized or complete,
                the team index is invalid or the player is not available
        """
        team_index = self._check_pick(team_index)
        position = self._available_position(player.id)
        if position is None:
            raise PlayerUnavailableError(f"{player.name} ({player.id}) is not available")

        drafted = self._available.pop(position)
        self.teams[team_index].roster.append(drafted)
        pick = self._append_pick(team_index, drafted, timestamp)

        logger.info(
            f"✓ Pick {pick.pick_number}: {drafted.name} ({drafted.position}) "
            f"to {self.teams[team_index].name}"
        )
        return pick

    def record_skip(self, team_index: Optional[int] = None,
                    timestamp: Optional[datetime] = None) -> DraftPick:
        """Record an empty slot and move the clock on."""
        team_index = self._check_pick(team_index)
        pick = self._append_pick(team_index, None, timestamp)
        logger.info(f"Pick {pick.pick_number} skipped by {self.teams[team_index].name}")
        return pick

    def undo_last_pick(self) -> Optional[DraftPick]:
        """
        Remove the most recent pick and restore the state before it.

        Returns:
            The removed pick, or None when there is nothing to undo
        """
        if not self._picks:
            return None

        last = self._picks.pop()
        if last.player is not None:
            roster = self.teams[last.team_index].roster
            for index in range(len(roster) - 1, -1, -1):
                if roster[index].id == last.player.id:
                    del roster[index]
                    break
            self._available.append(last.player)
            self._available.sort(key=_player_sort_key)

        self.current_pick_number = last.pick_number
        self.current_team_index = self._team_for(last.pick_number)
        self.time_remaining = self.settings.pick_time_limit_seconds

        if last.player is not None:
            logger.info(f"↩️ Undid pick {last.pick_number}: {last.player.name} is available again")
        else:
            logger.info(f"↩️ Undid skipped pick {last.pick_number}")
        return last

    def _check_pick(self, team_index: Optional[int]) -> int:
        self._require_initialized()
        if self.is_complete:
            raise DraftCompleteError(
                f"Draft is complete after {self.total_picks} picks"
            )
        if team_index is None:
            return self.current_team_index
        if not 0 <= team_index < len(self.teams):
            raise InvalidTeamIndexError(f"Team index {team_index} out of range [0, {len(self.teams)})")
        return team_index

    def _append_pick(self, team_index: int, player: Optional[Player],
                     timestamp: Optional[datetime] = None) -> DraftPick:
        pick = DraftPick(
            pick_number=self.current_pick_number,
            team_index=team_index,
            player=player,
            timestamp=timestamp or datetime.now(),
        )
        self._picks.append(pick)
        self.current_pick_number += 1
        self.current_team_index = self._team_for(self.current_pick_number)
        self.time_remaining = self.settings.pick_time_limit_seconds
        return pick

    def _team_for(self, pick_number: int) -> int:
        return team_for_pick(pick_number, self.settings.number_of_teams, self.settings.draft_type)

    def _available_position(self, player_id: str) -> Optional[int]:
        for index, candidate in enumerate(self._available):
            if candidate.id == player_id:
                return index
        return None

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def tick(self, remaining_seconds: int) -> int:
        """
        Timer update from the caller's clock. Ignored while the draft is paused.

        Returns:
            Seconds remaining after the update
        """
        if self.is_active:
            self.time_remaining = max(0, int(remaining_seconds))
        return self.time_remaining

    def set_remaining(self, seconds: int) -> None:
        self.time_remaining = max(0, int(seconds))

    @property
    def is_time_expired(self) -> bool:
        return self.time_remaining <= 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _require_initialized(self) -> None:
        if self.settings is None:
            raise DraftNotInitializedError("Draft has not been initialized")

    def _all_pool_players(self) -> List[Player]:
        players = list(self._available)
        for team in self.teams:
            players.extend(team.roster)
        return players

    @property
    def status(self) -> DraftStatus:
        if self.settings is None:
            return DraftStatus.UNINITIALIZED
        if self.is_complete:
            return DraftStatus.COMPLETE
        if self.is_active:
            return DraftStatus.ACTIVE
        if self._started:
            return DraftStatus.PAUSED
        return DraftStatus.CONFIGURED

    @property
    def has_started(self) -> bool:
        """Whether the clock has ever been started, paused drafts included."""
        return self._started

    @property
    def total_picks(self) -> int:
        return self.settings.total_picks if self.settings else 0

    @property
    def is_complete(self) -> bool:
        return self.settings is not None and self.current_pick_number > self.total_picks

    @property
    def current_round(self) -> int:
        self._require_initialized()
        return round_for_pick(self.current_pick_number, self.settings.number_of_teams)

    @property
    def current_team(self) -> Optional[DraftTeam]:
        if not self.teams or self.is_complete:
            return None
        return self.teams[self.current_team_index]

    @property
    def is_user_turn(self) -> bool:
        team = self.current_team
        return bool(team and team.is_user)

    @property
    def user_team(self) -> Optional[DraftTeam]:
        for team in self.teams:
            if team.is_user:
                return team
        return None

    @property
    def picks(self) -> List[DraftPick]:
        return list(self._picks)

    @property
    def available_players(self) -> List[Player]:
        return list(self._available)

    @property
    def pool_ids(self) -> frozenset:
        return self._pool_ids

    def is_available(self, player_id: str) -> bool:
        return self._available_position(player_id) is not None

    def find_available(self, player_id: str) -> Optional[Player]:
        position = self._available_position(player_id)
        return self._available[position] if position is not None else None

    def rosters(self) -> Dict[str, List[Player]]:
        return {team.name: list(team.roster) for team in self.teams}

    def recommendations(
        self,
        limit: int = 5,
        preferences: Optional[PreferenceBook] = None,
        scoring_engine: Optional[ScoringEngine] = None,
    ) -> List[Recommendation]:
        """Ranked suggestions for the user's roster against the current board."""
        self._require_initialized()
        engine = RecommendationEngine(self.settings, preferences, scoring_engine)
        user_roster = self.user_team.roster if self.user_team else []
        return engine.generate(self._available, user_roster, limit=limit)
