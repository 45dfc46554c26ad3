# quick_notes/cli.py
# Description: Command-line entry for running syncs outside the editor.
#
# Imports
import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional
#
# 3rd-Party Imports
from loguru import logger
#
# Local Imports
from .Logging_Config import configure_logging
from .Notes.Notes_Library import NotesDataManager, NotesDataError
from .Sync.Sync_Engine import NotesSyncEngine
from .Sync.scheduler import AutoSyncScheduler
from .Sync.status import SyncStatus
from .config import get_notes_file_path, get_sync_settings, load_settings, save_sync_settings, get_config_path
from .github_api.exceptions import QuickNotesSyncError
#
########################################################################################################################
#
# Functions:

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quick-notes-sync", description="Sync Quick Notes with a GitHub repository.")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.toml")
    parser.add_argument("--notes-file", type=Path, default=None, help="Local notes JSON file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("sync", help="Pull, merge and push once")
    subparsers.add_parser("push", help="Push local notes without merging")
    subparsers.add_parser("status", help="Show sync configuration")
    subparsers.add_parser("watch", help="Run background sync at the configured interval")

    configure = subparsers.add_parser("configure", help="Save sync settings")
    configure.add_argument("--repo-url", default=None)
    configure.add_argument("--token-env", default=None)
    configure.add_argument("--auto-sync-interval", type=float, default=None)
    return parser


async def _run_sync(engine: NotesSyncEngine, data_manager: NotesDataManager) -> int:
    merged = await engine.sync(data_manager.export_data())
    if merged is None:
        print(f"Nothing synced ({engine.status.latest.value}).")
        return 0
    data_manager.import_data(merged)
    print(f"Synced {len(merged.projects)} projects and {len(merged.archived_projects)} archived projects.")
    return 0


async def _run_push(engine: NotesSyncEngine, data_manager: NotesDataManager) -> int:
    pushed = await engine.push(data_manager.export_data())
    print("Pushed local notes." if pushed else f"Nothing pushed ({engine.status.latest.value}).")
    return 0


async def _run_watch(engine: NotesSyncEngine, data_manager: NotesDataManager, interval: float) -> int:
    scheduler = AutoSyncScheduler(engine, data_manager, interval)
    if not scheduler.start():
        print("Auto-sync is disabled; set sync.auto_sync_interval to a positive number of seconds.")
        return 1
    subscription = engine.status.subscribe()
    try:
        async for status in subscription:
            if status in (SyncStatus.SYNCED, SyncStatus.ERROR):
                print(f"[{status.value}]")
    finally:
        subscription.close()
        await scheduler.stop()
    return 0


async def _dispatch(args: argparse.Namespace, engine: NotesSyncEngine, data_manager: NotesDataManager,
                    interval: float) -> int:
    try:
        if args.command == "sync":
            return await _run_sync(engine, data_manager)
        if args.command == "push":
            return await _run_push(engine, data_manager)
        return await _run_watch(engine, data_manager, interval)
    finally:
        await engine.aclose()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config_path = args.config or get_config_path()

    if args.command == "configure":
        updates = {key: value for key, value in {
            "repo_url": args.repo_url,
            "token_env": args.token_env,
            "auto_sync_interval": args.auto_sync_interval,
        }.items() if value is not None}
        try:
            saved = save_sync_settings(config_path=config_path, **updates)
        except QuickNotesSyncError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2
        print(f"Saved sync settings to {config_path} (configured: {saved.is_configured}).")
        return 0

    config = load_settings(config_path=config_path)
    configure_logging(config)
    try:
        settings = get_sync_settings(config)
        engine = NotesSyncEngine.from_settings(settings)
    except QuickNotesSyncError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.command == "status":
        print(f"Config file:   {config_path}")
        print(f"Repository:    {settings.repo_url or '(not configured)'}")
        print(f"Remote file:   {settings.file_path}")
        print(f"Auto-sync:     {'every %ss' % settings.auto_sync_interval if settings.auto_sync_enabled else 'disabled'}")
        return 0

    data_manager = NotesDataManager(args.notes_file or get_notes_file_path(config), sync_engine=engine)
    try:
        return asyncio.run(_dispatch(args, engine, data_manager, settings.auto_sync_interval))
    except (QuickNotesSyncError, NotesDataError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130

#
# End of cli.py
########################################################################################################################
