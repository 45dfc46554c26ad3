# quick_notes/Sync/scheduler.py
# Description: Timer-driven background sync. Funnels through the same engine entry point as manual syncs.
#
# Imports
import asyncio
from typing import Optional, TYPE_CHECKING
#
# 3rd-Party Imports
from loguru import logger
#
# Local Imports
from .merge import merge_snapshots
from ..Notes.models import Snapshot
from ..github_api.exceptions import QuickNotesSyncError
#
if TYPE_CHECKING:
    from .Sync_Engine import NotesSyncEngine
    from ..Notes.Notes_Library import NotesDataManager
#
########################################################################################################################
#
# Functions:

class AutoSyncScheduler:
    def __init__(self, engine: 'NotesSyncEngine', data_manager: 'NotesDataManager', interval_seconds: float):
        self.engine = engine
        self.data_manager = data_manager
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return self.interval_seconds > 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Starts the background loop. Returns False when auto-sync is disabled."""
        if not self.enabled:
            logger.info("Auto-sync disabled (interval <= 0).")
            return False
        if self.running:
            return True
        self._task = asyncio.get_running_loop().create_task(self._run(), name="quick-notes-auto-sync")
        logger.info(f"Auto-sync started, every {self.interval_seconds}s.")
        return True

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None
        logger.info("Auto-sync stopped.")

    async def run_once(self) -> Optional[Snapshot]:
        """
        Exports local data, syncs it and imports the result.

        Sync failures are logged and reported through the engine's status channel; the
        local data is left untouched in that case.
        """
        local = self.data_manager.export_data()
        try:
            merged = await self.engine.sync(local)
        except QuickNotesSyncError as e:
            logger.warning(f"Auto-sync failed: {e}")
            return None
        if merged is None:
            return None

        current = self.data_manager.export_data()
        if current != local:
            # Local edits landed while the network calls were pending; fold them in.
            logger.debug("Local data changed during sync; merging those edits into the result.")
            merged = merge_snapshots(current, merged)
        self.data_manager.import_data(merged)
        return merged

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.run_once()
            except Exception as e:
                logger.opt(exception=e).error(f"Unexpected error in auto-sync loop: {e}")

#
# End of scheduler.py
########################################################################################################################
