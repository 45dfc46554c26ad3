# quick_notes/Sync/__init__.py
from .merge import merge_snapshots, merge_notes, note_timestamp
from .status import SyncStatus, SyncStatusChannel, StatusSubscription
from .Sync_Engine import NotesSyncEngine, SyncPhase, SyncSession, RemoteStore
from .scheduler import AutoSyncScheduler

__all__ = [
    "merge_snapshots", "merge_notes", "note_timestamp",
    "SyncStatus", "SyncStatusChannel", "StatusSubscription",
    "NotesSyncEngine", "SyncPhase", "SyncSession", "RemoteStore",
    "AutoSyncScheduler",
]
