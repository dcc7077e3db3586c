#!/usr/bin/env python3
"""
Draft Assistant CLI - Main entry point

Usage:
    draft-assistant --help
    draft-assistant merge data/fantasypros.csv data/idp_rankings.csv
    draft-assistant draft init --teams 12 --user-index 3
    draft-assistant draft pick derrick-henry-bal-rb
    draft-assistant draft recommend
"""

from pathlib import Path
import logging
import sys

import click
import pandas as pd
from tqdm import tqdm

from draft_assistant.analytics.player_queries import (
    SORT_COLUMNS,
    handcuff_candidates,
    pool_stats,
    search_players,
    sleeper_candidates,
    top_performers,
)
from draft_assistant.analytics.recommendations import recommendations_to_frame
from draft_assistant.analytics.scoring import ScoringEngine
from draft_assistant.draft.persistence import DraftStateError, DraftStateStore
from draft_assistant.draft.session import DraftSession, DraftSessionError
from draft_assistant.ingestion.player_merge import PlayerMerger, records_from_frame
from draft_assistant.models.draft import DraftTeam
from draft_assistant.models.players import normalize_team
from draft_assistant.storage.player_store import PlayerStore, PlayerStoreError
from draft_assistant.utils.data_quality import (
    DraftIntegrityValidator,
    MergeQualityValidator,
    print_validation_report,
)
from draft_assistant.utils.league_config import (
    DRAFT_TYPES,
    ConfigLoader,
    DraftSettings,
    LeagueConfigError,
)

# Set up logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

CLI_ERRORS = (
    DraftSessionError,
    DraftStateError,
    PlayerStoreError,
    LeagueConfigError,
    ValueError,
    OSError,
)


def _fail(message: str) -> None:
    click.echo(f"❌ {message}", err=True)
    sys.exit(1)


def _loader(ctx: click.Context) -> ConfigLoader:
    return ctx.obj["config"]


def _state_store(ctx: click.Context) -> DraftStateStore:
    paths = _loader(ctx).get_storage_paths()
    return DraftStateStore(paths["state_file"], paths["backup_dir"])


def _player_store(ctx: click.Context) -> PlayerStore:
    return PlayerStore(_loader(ctx).get_storage_paths()["db_path"])


def _scoring_engine(ctx: click.Context) -> ScoringEngine:
    return ScoringEngine(_loader(ctx).get_scoring_settings())


def _resolve_player(session: DraftSession, ref: str):
    """Find an available player by id, falling back to an exact name match."""
    player = session.find_available(ref)
    if player:
        return player

    matches = [p for p in session.available_players if p.name.lower() == ref.lower()]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        ids = ", ".join(p.id for p in matches)
        raise ValueError(f"'{ref}' matches several available players: {ids}")
    raise ValueError(f"No available player matches '{ref}'")


def _print_frame(df: pd.DataFrame, empty_message: str) -> None:
    if df.empty:
        click.echo(empty_message)
    else:
        click.echo(df.to_string(index=False))


@click.group()
@click.version_option(version="0.1.0")
@click.option('--config', 'config_path', default='config/config.yaml', show_default=True,
              help='Path to config.yaml')
@click.pass_context
def cli(ctx: click.Context, config_path: str):
    """Fantasy Draft Assistant CLI

    Merge projections, run a live draft and get pick recommendations.
    """
    ctx.ensure_object(dict)
    ctx.obj["config"] = ConfigLoader(config_path)


@cli.command()
@click.argument('csv_files', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option('--append', is_flag=True, help='Upsert into the stored pool instead of replacing it')
@click.option('--report', is_flag=True, help='Print the merge quality report')
@click.pass_context
def merge(ctx: click.Context, csv_files, append: bool, report: bool):
    """Merge normalized player CSV files into the player store.

    Each file is one source, named after the file. Earlier files win ties.
    """
    try:
        records = []
        for path in tqdm(csv_files, desc="Reading sources"):
            df = pd.read_csv(path)
            records.extend(records_from_frame(df, Path(path).stem))

        result = PlayerMerger().merge(records)

        with _player_store(ctx) as store:
            saved = store.save_players(list(result.players.values()), replace=not append)

        summary = result.summary()
        click.echo(f"✅ Stored {saved} players from {len(csv_files)} sources")
        click.echo(
            f"   {summary['duplicates_found']} duplicates merged, "
            f"{summary['conflicts']} conflicts, {summary['dropped']} records dropped"
        )
        for conflict in result.conflicts:
            click.echo(
                f"  ⚠️  {conflict.conflict_type} conflict: {conflict.player_name} "
                f"({' vs '.join(conflict.sources)})"
            )
        for dropped in result.dropped:
            click.echo(f"  🗑️  {dropped.source}: {dropped.name or '<no name>'} - {dropped.reason}")

        if report:
            results = MergeQualityValidator(result).run_automated_validation(len(records))
            print_validation_report("Merge Quality Report", results)

    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        _fail(f"Could not read CSV: {e}")
    except CLI_ERRORS as e:
        _fail(f"Merge failed: {e}")


@cli.command()
@click.pass_context
def validate(ctx: click.Context):
    """Check the saved draft for roster and pick log consistency."""
    try:
        session = _state_store(ctx).load()
        results = DraftIntegrityValidator(session).run_automated_validation()
        print_validation_report("Draft Integrity Report", results)
    except CLI_ERRORS as e:
        _fail(f"Validation failed: {e}")


# ----------------------------------------------------------------------
# Player queries
# ----------------------------------------------------------------------

@cli.group()
def players():
    """Query the stored player pool."""
    pass


@players.command('search')
@click.option('--position', help='Filter by position')
@click.option('--team', help='Filter by team')
@click.option('--name', help='Name contains')
@click.option('--min-vorp', type=float, help='Minimum VORP')
@click.option('--max-vorp', type=float, help='Maximum VORP')
@click.option('--sort-by', type=click.Choice(SORT_COLUMNS), default='value', help='Sort column')
@click.option('--ascending', is_flag=True, help='Sort ascending')
@click.option('--limit', type=int, default=20, help='Number of results to show')
@click.option('--available', is_flag=True, help='Only players still available in the saved draft')
@click.pass_context
def players_search(ctx, position, team, name, min_vorp, max_vorp, sort_by, ascending, limit, available):
    """Search and sort players."""
    try:
        if available:
            pool = _state_store(ctx).load().available_players
        else:
            with _player_store(ctx) as store:
                pool = store.load_players()

        df = search_players(
            pool,
            position=position,
            team=normalize_team(team) if team else None,
            name=name,
            min_vorp=min_vorp,
            max_vorp=max_vorp,
            sort_by=sort_by,
            ascending=ascending,
            limit=limit,
            scoring_engine=_scoring_engine(ctx),
        )
        _print_frame(df, "No players found")
    except CLI_ERRORS as e:
        _fail(f"Search failed: {e}")


@players.command('top')
@click.option('--position', help='Filter by position')
@click.option('--limit', type=int, default=10, help='Number of results to show')
@click.pass_context
def players_top(ctx, position, limit: int):
    """Highest projected weekly scorers under league scoring."""
    try:
        with _player_store(ctx) as store:
            pool = store.load_players()
        df = top_performers(pool, position=position, limit=limit, scoring_engine=_scoring_engine(ctx))
        _print_frame(df, "No players found")
    except CLI_ERRORS as e:
        _fail(f"Query failed: {e}")


@players.command('sleepers')
@click.option('--min-adp', type=float, default=100.0, help='Only players drafted at or after this ADP')
@click.option('--limit', type=int, default=10, help='Number of results to show')
@click.pass_context
def players_sleepers(ctx, min_adp: float, limit: int):
    """Late-ADP players with positive VORP."""
    try:
        with _player_store(ctx) as store:
            pool = store.load_players()
        _print_frame(sleeper_candidates(pool, min_adp=min_adp, limit=limit), "No sleepers found")
    except CLI_ERRORS as e:
        _fail(f"Query failed: {e}")


@players.command('stats')
@click.pass_context
def players_stats(ctx):
    """Per-position summary of the pool."""
    try:
        with _player_store(ctx) as store:
            pool = store.load_players()
        _print_frame(pool_stats(pool, _scoring_engine(ctx)), "Player store is empty")
    except CLI_ERRORS as e:
        _fail(f"Query failed: {e}")


# ----------------------------------------------------------------------
# Draft
# ----------------------------------------------------------------------

@cli.group()
def draft():
    """Run a live draft."""
    pass


@draft.command('init')
@click.option('--teams', type=int, help='Number of teams (default from config)')
@click.option('--user-index', type=int, help="Your team's draft slot, 0-based")
@click.option('--draft-type', type=click.Choice(DRAFT_TYPES), help='Draft type')
@click.option('--time-limit', type=int, help='Seconds per pick')
@click.option('--team-name', 'team_names', multiple=True, help='Team names in draft order (repeatable)')
@click.option('--save-settings', is_flag=True, help='Write these settings back to config.yaml')
@click.option('--force', is_flag=True, help='Overwrite an existing draft')
@click.pass_context
def draft_init(ctx, teams, user_index, draft_type, time_limit, team_names, save_settings, force):
    """Start a new draft from the stored player pool."""
    try:
        store = _state_store(ctx)
        if store.exists() and not force:
            _fail(f"A draft already exists at {store.state_file}; use --force to replace it")

        base = _loader(ctx).get_draft_settings()
        settings = DraftSettings(
            number_of_teams=teams if teams is not None else base.number_of_teams,
            user_team_index=user_index if user_index is not None else base.user_team_index,
            draft_type=draft_type or base.draft_type,
            pick_time_limit_seconds=time_limit if time_limit is not None else base.pick_time_limit_seconds,
            roster_position_counts=dict(base.roster_position_counts),
        )
        settings.validate()

        names = list(team_names) or None
        if names and len(names) != settings.number_of_teams:
            raise LeagueConfigError(
                f"Got {len(names)} team names for {settings.number_of_teams} teams"
            )

        with _player_store(ctx) as player_store:
            pool = player_store.load_players()
        if not pool:
            _fail("Player store is empty; run `merge` first")

        session = DraftSession()
        session.initialize(
            settings,
            DraftTeam.build_league(settings.number_of_teams, settings.user_team_index, names),
            pool,
        )
        store.save(session)

        if save_settings:
            _loader(ctx).save_draft_settings(settings)

        click.echo(
            f"✅ Draft ready: {settings.number_of_teams} teams, {settings.draft_type}, "
            f"{settings.total_roster_slots} rounds, {len(pool)} players"
        )
        click.echo(f"   You are {session.user_team.name} (slot {settings.user_team_index})")
    except CLI_ERRORS as e:
        _fail(f"Draft init failed: {e}")


@draft.command('start')
@click.pass_context
def draft_start(ctx):
    """Start or resume the pick clock."""
    try:
        store = _state_store(ctx)
        session = store.load()
        session.start()
        store.save(session, backup=False)
        click.echo(f"▶️  Draft active at pick {session.current_pick_number}")
    except CLI_ERRORS as e:
        _fail(f"Could not start draft: {e}")


@draft.command('pause')
@click.pass_context
def draft_pause(ctx):
    """Pause the pick clock."""
    try:
        store = _state_store(ctx)
        session = store.load()
        session.pause()
        store.save(session, backup=False)
        click.echo(f"⏸️  Draft paused at pick {session.current_pick_number}")
    except CLI_ERRORS as e:
        _fail(f"Could not pause draft: {e}")


@draft.command('pick')
@click.argument('player')
@click.option('--team', 'team_index', type=int, help='Team index making the pick (default: team on the clock)')
@click.pass_context
def draft_pick(ctx, player: str, team_index):
    """Record a pick by player id or exact name."""
    try:
        store = _state_store(ctx)
        session = store.load()
        drafted = _resolve_player(session, player)
        pick = session.record_pick(drafted, team_index)
        store.save(session)

        click.echo(
            f"✅ Pick {pick.pick_number}: {drafted.name} ({drafted.position}, {drafted.team}) "
            f"→ {session.teams[pick.team_index].name}"
        )
        if session.is_complete:
            click.echo("🎉 Draft complete!")
        elif session.is_user_turn:
            click.echo("⏰ You're on the clock!")
    except CLI_ERRORS as e:
        _fail(f"Pick failed: {e}")


@draft.command('skip')
@click.option('--team', 'team_index', type=int, help='Team index skipping (default: team on the clock)')
@click.pass_context
def draft_skip(ctx, team_index):
    """Record an empty pick and move on."""
    try:
        store = _state_store(ctx)
        session = store.load()
        pick = session.record_skip(team_index)
        store.save(session)
        click.echo(f"⏭️  Pick {pick.pick_number} skipped by {session.teams[pick.team_index].name}")
    except CLI_ERRORS as e:
        _fail(f"Skip failed: {e}")


@draft.command('undo')
@click.pass_context
def draft_undo(ctx):
    """Undo the most recent pick."""
    try:
        store = _state_store(ctx)
        session = store.load()
        undone = session.undo_last_pick()
        if undone is None:
            click.echo("Nothing to undo")
            return
        store.save(session)
        if undone.player:
            click.echo(f"↩️  Undid pick {undone.pick_number}: {undone.player.name} is available again")
        else:
            click.echo(f"↩️  Undid skipped pick {undone.pick_number}")
    except CLI_ERRORS as e:
        _fail(f"Undo failed: {e}")


@draft.command('restore')
@click.pass_context
def draft_restore(ctx):
    """Replace the current draft with the newest backup."""
    try:
        store = _state_store(ctx)
        session = store.load_latest_backup()
        store.save(session, backup=False)
        click.echo(f"✅ Restored draft at pick {session.current_pick_number}")
    except CLI_ERRORS as e:
        _fail(f"Restore failed: {e}")


@draft.command('status')
@click.option('--recent', type=int, default=5, help='Number of recent picks to show')
@click.pass_context
def draft_status(ctx, recent: int):
    """Show where the draft stands."""
    try:
        session = _state_store(ctx).load()
        click.echo(f"📊 Status: {session.status.value}")
        if session.is_complete:
            click.echo(f"   All {session.total_picks} picks made")
        else:
            marker = " (you)" if session.is_user_turn else ""
            click.echo(
                f"   Pick {session.current_pick_number}/{session.total_picks}, "
                f"round {session.current_round}: {session.current_team.name}{marker}"
            )
            click.echo(f"   Time remaining: {session.time_remaining}s")
        click.echo(f"   Available players: {len(session.available_players)}")

        recent_picks = session.picks[-recent:] if recent > 0 else []
        if recent_picks:
            click.echo("\nRecent picks:")
            for pick in reversed(recent_picks):
                who = f"{pick.player.name} ({pick.player.position})" if pick.player else "(skipped)"
                click.echo(f"  {pick.pick_number:>3}. {session.teams[pick.team_index].name}: {who}")
    except CLI_ERRORS as e:
        _fail(f"Status check failed: {e}")


@draft.command('roster')
@click.option('--team', 'team_index', type=int, help='Team index (default: your team)')
@click.pass_context
def draft_roster(ctx, team_index):
    """Show a team's roster."""
    try:
        session = _state_store(ctx).load()
        if team_index is None:
            team = session.user_team
        elif 0 <= team_index < len(session.teams):
            team = session.teams[team_index]
        else:
            raise ValueError(f"Team index {team_index} out of range")

        click.echo(f"📋 {team.name} ({len(team.roster)}/{session.settings.total_roster_slots})")
        for player in team.roster:
            click.echo(f"  • {player.position:<4} {player.name} ({player.team or 'FA'}, bye {player.bye_week})")
    except CLI_ERRORS as e:
        _fail(f"Roster lookup failed: {e}")


@draft.command('recommend')
@click.option('--limit', type=int, default=5, help='Number of recommendations')
@click.pass_context
def draft_recommend(ctx, limit: int):
    """Recommend picks for your team."""
    try:
        session = _state_store(ctx).load()
        with _player_store(ctx) as player_store:
            preferences = player_store.load_preferences()

        recommendations = session.recommendations(limit, preferences, _scoring_engine(ctx))
        _print_frame(recommendations_to_frame(recommendations), "No recommendations available")
    except CLI_ERRORS as e:
        _fail(f"Recommendation failed: {e}")


@draft.command('handcuffs')
@click.pass_context
def draft_handcuffs(ctx):
    """Available backups for your running backs."""
    try:
        session = _state_store(ctx).load()
        df = handcuff_candidates(session.user_team.roster, session.available_players)
        _print_frame(df, "No handcuffs available")
    except CLI_ERRORS as e:
        _fail(f"Query failed: {e}")


# ----------------------------------------------------------------------
# Preferences
# ----------------------------------------------------------------------

@cli.group()
def prefs():
    """Manage player notes, targets, avoids, custom ranks and team preferences."""
    pass


def _update_preferences(ctx, action) -> None:
    """Load preferences, apply action(book), save them back."""
    with _player_store(ctx) as store:
        book = store.load_preferences()
        action(book)
        store.save_preferences(book)


@prefs.command('target')
@click.argument('player_id')
@click.option('--clear', is_flag=True, help='Remove the target flag')
@click.pass_context
def prefs_target(ctx, player_id: str, clear: bool):
    """Flag a player as a target."""
    try:
        _update_preferences(ctx, lambda book: book.set_target(player_id, not clear))
        click.echo(f"🎯 {player_id} {'is no longer' if clear else 'is now'} a target")
    except CLI_ERRORS as e:
        _fail(f"Could not update preferences: {e}")


@prefs.command('avoid')
@click.argument('player_id')
@click.option('--clear', is_flag=True, help='Remove the avoid flag')
@click.pass_context
def prefs_avoid(ctx, player_id: str, clear: bool):
    """Flag a player to avoid."""
    try:
        _update_preferences(ctx, lambda book: book.set_avoid(player_id, not clear))
        click.echo(f"🚫 {player_id} {'is no longer' if clear else 'is now'} avoided")
    except CLI_ERRORS as e:
        _fail(f"Could not update preferences: {e}")


@prefs.command('rank')
@click.argument('player_id')
@click.argument('rank', type=int, required=False)
@click.option('--clear', is_flag=True, help='Remove the custom rank')
@click.pass_context
def prefs_rank(ctx, player_id: str, rank, clear: bool):
    """Set a custom rank for a player."""
    try:
        if clear:
            _update_preferences(ctx, lambda book: book.clear_custom_rank(player_id))
            click.echo(f"✅ Cleared custom rank for {player_id}")
            return
        if rank is None:
            raise ValueError("Give a rank or --clear")
        _update_preferences(ctx, lambda book: book.set_custom_rank(player_id, rank))
        click.echo(f"✅ {player_id} ranked #{rank}")
    except CLI_ERRORS as e:
        _fail(f"Could not update preferences: {e}")


@prefs.command('note')
@click.argument('player_id')
@click.argument('text')
@click.pass_context
def prefs_note(ctx, player_id: str, text: str):
    """Attach a note to a player."""
    try:
        _update_preferences(ctx, lambda book: book.add_note(player_id, text))
        click.echo(f"📝 Note saved for {player_id}")
    except CLI_ERRORS as e:
        _fail(f"Could not update preferences: {e}")


@prefs.command('team')
@click.argument('team')
@click.option('--favorite', 'action', flag_value='favorite', help='Mark as a favorite team')
@click.option('--avoid', 'action', flag_value='avoid', help='Mark as a team to avoid')
@click.option('--clear', 'action', flag_value='clear', help='Remove any team preference')
@click.pass_context
def prefs_team(ctx, team: str, action):
    """Set a favorite or avoided team."""
    if action is None:
        _fail("Choose one of --favorite, --avoid or --clear")

    code = normalize_team(team)

    def apply(book):
        book.favorite_teams.discard(code)
        book.avoid_teams.discard(code)
        if action == 'favorite':
            book.favorite_teams.add(code)
        elif action == 'avoid':
            book.avoid_teams.add(code)

    try:
        _update_preferences(ctx, apply)
        click.echo(f"✅ {code}: {action}")
    except CLI_ERRORS as e:
        _fail(f"Could not update preferences: {e}")


@prefs.command('list')
@click.pass_context
def prefs_list(ctx):
    """Show all preferences."""
    try:
        with _player_store(ctx) as store:
            book = store.load_preferences()

        click.echo(f"Favorite teams: {', '.join(sorted(book.favorite_teams)) or '-'}")
        click.echo(f"Avoided teams: {', '.join(sorted(book.avoid_teams)) or '-'}")
        for pref in sorted(book.all_preferences(), key=lambda p: p.player_id):
            flags = []
            if pref.is_target:
                flags.append("target")
            if pref.is_avoid:
                flags.append("avoid")
            if pref.custom_rank is not None:
                flags.append(f"rank #{pref.custom_rank}")
            line = f"  • {pref.player_id}"
            if flags:
                line += f" [{', '.join(flags)}]"
            if pref.note:
                line += f" - {pref.note}"
            click.echo(line)
    except CLI_ERRORS as e:
        _fail(f"Could not read preferences: {e}")


@prefs.command('export')
@click.argument('output', type=click.Path(dir_okay=False))
@click.pass_context
def prefs_export(ctx, output: str):
    """Export player notes to a JSON file."""
    try:
        with _player_store(ctx) as store:
            book = store.load_preferences()
        Path(output).write_text(book.export_notes())
        click.echo(f"✅ Exported {len(book)} player notes to {output}")
    except CLI_ERRORS as e:
        _fail(f"Export failed: {e}")


@prefs.command('import')
@click.argument('source', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def prefs_import(ctx, source: str):
    """Replace player notes with those in a JSON export."""
    try:
        payload = Path(source).read_text()
        counts = []
        _update_preferences(ctx, lambda book: counts.append(book.import_notes_json(payload)))
        click.echo(f"✅ Imported {counts[0]} player notes")
    except CLI_ERRORS as e:
        _fail(f"Import failed: {e}")


if __name__ == '__main__':
    cli()
