"""Draft state persistence - JSON state file with timestamped backups."""

import json
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
import logging

from draft_assistant.draft.session import DraftSession, DraftSessionError
from draft_assistant.models.draft import DraftTeam
from draft_assistant.models.players import Player
from draft_assistant.utils.league_config import DraftSettings, LeagueConfigError

logger = logging.getLogger(__name__)

STATE_VERSION = 1
MAX_BACKUPS = 10


class DraftStateError(Exception):
    """Raised when a draft state file cannot be written or rebuilt."""
    pass


def session_to_dict(session: DraftSession) -> Dict[str, Any]:
    """
    Serialize a session.

    Only the inputs and the pick log are stored; rosters and the available
    pool are rebuilt from them on load.
    """
    if session.settings is None:
        raise DraftStateError("Cannot save a draft that has not been initialized")

    pool = session.available_players
    for team in session.teams:
        pool.extend(team.roster)
    pool.sort(key=lambda p: p.id)

    return {
        "version": STATE_VERSION,
        "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
        "settings": session.settings.to_dict(),
        "teams": [{"id": team.id, "name": team.name} for team in session.teams],
        "players": [player.to_dict() for player in pool],
        "picks": [pick.to_dict() for pick in session.picks],
        "is_active": session.is_active,
        "has_started": session.has_started,
        "time_remaining": session.time_remaining,
    }


def session_from_dict(state: Dict[str, Any]) -> DraftSession:
    """
    Rebuild a session by replaying its pick log.

    Raises:
        DraftStateError: If the state is malformed or the log does not replay
    """
    try:
        settings = DraftSettings.from_dict(state["settings"])
        teams = [
            DraftTeam(id=team["id"], name=team["name"])
            for team in state["teams"]
        ]
        players = {data["id"]: Player.from_dict(data) for data in state["players"]}

        session = DraftSession()
        session.initialize(settings, teams, list(players.values()))

        for entry in sorted(state.get("picks", []), key=lambda e: e["pick_number"]):
            if entry["pick_number"] != session.current_pick_number:
                raise DraftStateError(
                    f"Pick log gap: expected pick {session.current_pick_number}, "
                    f"found {entry['pick_number']}"
                )
            player_id = entry.get("player_id")
            timestamp = datetime.fromisoformat(entry["timestamp"]) if entry.get("timestamp") else None
            if player_id is None:
                session.record_skip(entry["team_index"], timestamp=timestamp)
            else:
                session.record_pick(players[player_id], entry["team_index"], timestamp=timestamp)

        if state.get("is_active"):
            session.start()
        elif state.get("has_started"):
            session.start()
            session.pause()
        if "time_remaining" in state:
            session.set_remaining(state["time_remaining"])
        return session

    except (KeyError, TypeError, ValueError, LeagueConfigError, DraftSessionError) as e:
        raise DraftStateError(f"Invalid draft state: {e}")


class DraftStateStore:
    """Saves and restores a draft session on disk."""

    def __init__(self, state_file: str = "data/draft_state.json", backup_dir: str = "data/backups"):
        self.state_file = Path(state_file)
        self.backup_dir = Path(backup_dir)

    def exists(self) -> bool:
        return self.state_file.exists()

    def save(self, session: DraftSession, backup: bool = True) -> Path:
        """
        Save current draft state to the state file, plus a timestamped backup.

        Returns:
            Path of the state file

        Raises:
            DraftStateError: If the state cannot be written
        """
        state = session_to_dict(session)

        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.state_file, "w") as f:
                json.dump(state, f, indent=2)

            if backup:
                self.backup_dir.mkdir(parents=True, exist_ok=True)
                backup_file = (
                    self.backup_dir
                    / f"draft_backup_{time.strftime('%Y%m%d_%H%M%S')}_{len(state['picks']):04d}.json"
                )
                with open(backup_file, "w") as f:
                    json.dump(state, f, indent=2)
                self._cleanup_old_backups()

        except OSError as e:
            raise DraftStateError(f"Save failed: {e}")

        logger.info(f"✓ Draft state saved (pick {session.current_pick_number})")
        return self.state_file

    def load(self, path: Optional[Path] = None) -> DraftSession:
        """
        Load draft state from the state file (or a given backup).

        Raises:
            DraftStateError: If the file is missing, unreadable or invalid
        """
        path = Path(path) if path else self.state_file
        try:
            with open(path, "r") as f:
                state = json.load(f)
        except FileNotFoundError:
            raise DraftStateError(f"No draft state found at {path}")
        except (OSError, json.JSONDecodeError) as e:
            raise DraftStateError(f"Failed to read draft state: {e}")

        session = session_from_dict(state)
        logger.info(
            f"✓ Draft state loaded from {state.get('timestamp', 'unknown time')}, "
            f"resuming at pick {session.current_pick_number}"
        )
        return session

    def list_backups(self):
        """Backups, newest first."""
        if not self.backup_dir.exists():
            return []
        backups = list(self.backup_dir.glob("draft_backup_*.json"))
        backups.sort(key=lambda p: p.name, reverse=True)
        return backups

    def load_latest_backup(self) -> DraftSession:
        backups = self.list_backups()
        if not backups:
            raise DraftStateError(f"No backups found in {self.backup_dir}")
        return self.load(backups[0])

    def _cleanup_old_backups(self) -> None:
        """Keep only the most recent backup files."""
        for old_file in self.list_backups()[MAX_BACKUPS:]:
            try:
                old_file.unlink()
            except OSError as e:
                logger.warning(f"Could not remove old backup {old_file}: {e}")
