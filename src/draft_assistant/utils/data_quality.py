"""Data quality checks for a live draft and for merged player pools.

Each check produces a dict with `check`, `status` ('PASS'/'FAIL') and
`message`, and each validator rolls its checks up into an overall status.
"""

from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional
import logging

from draft_assistant.draft.session import DraftSession
from draft_assistant.ingestion.player_merge import MergeResult

logger = logging.getLogger(__name__)


def _check(name: str, passed: bool, message: str) -> Dict:
    return {
        'check': name,
        'status': 'PASS' if passed else 'FAIL',
        'message': message,
    }


def _summarize(checks: List[Dict], **extra) -> Dict:
    passed = len([c for c in checks if c['status'] == 'PASS'])
    results = {
        'timestamp': datetime.now().isoformat(),
        'overall_status': 'PASS' if passed == len(checks) else 'FAIL',
        'checks': checks,
        'summary': f"{passed}/{len(checks)} checks passed",
    }
    results.update(extra)
    return results


class DraftIntegrityValidator:
    """Checks that a draft session's rosters, pool and pick log agree."""

    def __init__(self, session: DraftSession):
        self.session = session

    def validate_pool_partition(self) -> List[Dict]:
        """Every pool player is available or on exactly one roster, never both."""
        available_ids = [p.id for p in self.session.available_players]
        rostered_ids = [p.id for team in self.session.teams for p in team.roster]

        rostered_counts = Counter(rostered_ids)
        multi_rostered = sorted(pid for pid, n in rostered_counts.items() if n > 1)
        overlap = sorted(set(available_ids) & set(rostered_ids))
        covered = set(available_ids) | set(rostered_ids)
        missing = sorted(self.session.pool_ids - covered)
        unknown = sorted(covered - self.session.pool_ids)

        return [
            _check(
                'Available/Rostered Disjoint',
                not overlap and not multi_rostered,
                f"{len(overlap)} players both available and rostered, "
                f"{len(multi_rostered)} on more than one roster",
            ),
            _check(
                'Pool Coverage',
                not missing and not unknown,
                f"{len(missing)} pool players unaccounted for, {len(unknown)} players not in the pool",
            ),
        ]

    def validate_pick_log(self) -> List[Dict]:
        """Pick numbers run 1..n and the log matches the rosters."""
        picks = self.session.picks
        numbers = [pick.pick_number for pick in picks]
        expected = list(range(1, len(picks) + 1))

        checks = [
            _check(
                'Pick Sequence',
                numbers == expected,
                f"{len(picks)} picks logged" if numbers == expected
                else f"Pick numbers out of sequence: {numbers[:10]}",
            ),
            _check(
                'Current Pick',
                self.session.current_pick_number == len(picks) + 1,
                f"On pick {self.session.current_pick_number} with {len(picks)} logged",
            ),
        ]

        mismatched = []
        for index, team in enumerate(self.session.teams):
            logged = sorted(
                pick.player.id for pick in picks
                if pick.player is not None and pick.team_index == index
            )
            if logged != sorted(p.id for p in team.roster):
                mismatched.append(team.name)

        checks.append(_check(
            'Rosters Match Pick Log',
            not mismatched,
            "All rosters match the log" if not mismatched
            else f"Mismatched rosters: {', '.join(mismatched)}",
        ))
        return checks

    def validate_roster_sizes(self) -> List[Dict]:
        settings = self.session.settings
        if settings is None:
            return [_check('Roster Sizes', False, "Draft has not been initialized")]

        oversized = [
            team.name for team in self.session.teams
            if len(team.roster) > settings.total_roster_slots
        ]
        return [_check(
            'Roster Sizes',
            not oversized,
            f"All rosters within {settings.total_roster_slots} slots" if not oversized
            else f"Oversized rosters: {', '.join(oversized)}",
        )]

    def run_automated_validation(self) -> Dict:
        logger.info("Running draft integrity validation...")
        checks = (
            self.validate_pool_partition()
            + self.validate_pick_log()
            + self.validate_roster_sizes()
        )
        return _summarize(checks, status=self.session.status.value)


class MergeQualityValidator:
    """Summarizes how clean a merge was."""

    def __init__(self, result: MergeResult, max_drop_rate: float = 0.1):
        self.result = result
        self.max_drop_rate = max_drop_rate

    def run_automated_validation(self, total_records: Optional[int] = None) -> Dict:
        """
        Args:
            total_records: Number of raw records that went into the merge,
                used to compute the drop rate
        """
        logger.info("Running merge quality validation...")
        result = self.result
        checks = []

        mismatched_ids = [key for key, player in result.players.items() if key != player.id]
        checks.append(_check(
            'Player Ids',
            not mismatched_ids,
            f"{len(result.players)} players, {len(mismatched_ids)} keyed under a stale id",
        ))

        checks.append(_check(
            'Merge Conflicts',
            not result.conflicts,
            f"{len(result.conflicts)} conflicts ("
            f"{len([c for c in result.conflicts if c.conflict_type == 'team'])} team, "
            f"{len([c for c in result.conflicts if c.conflict_type == 'position'])} position)",
        ))

        if total_records:
            drop_rate = result.dropped_count / total_records
            checks.append(_check(
                'Dropped Records',
                drop_rate <= self.max_drop_rate,
                f"{result.dropped_count} of {total_records} records dropped ({drop_rate:.1%})",
            ))
        else:
            checks.append(_check(
                'Dropped Records',
                result.dropped_count == 0,
                f"{result.dropped_count} records dropped",
            ))

        return _summarize(checks, **result.summary())


def print_validation_report(title: str, results: Dict) -> None:
    """
    Print a formatted validation report.

    Args:
        title: Report heading
        results: Output of a validator's run_automated_validation()
    """
    print("\n" + "=" * 70)
    print(title.upper())
    print("=" * 70)
    print(f"Timestamp: {results['timestamp']}")
    print(f"Overall Status: {results['overall_status']}")
    print(f"Summary: {results['summary']}")
    print("-" * 50)

    for check in results['checks']:
        status_icon = "✅" if check['status'] == 'PASS' else "❌"
        print(f"{status_icon} {check['check']}: {check['message']}")

    print("=" * 70)
