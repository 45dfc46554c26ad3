# Sync_Engine.py
# Description: Drives pull -> merge -> push of the notes Snapshot against the remote store,
#              with optimistic concurrency and a single conflict retry.
#
# Imports
import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Protocol, Set, Tuple
#
# Third-Party Imports
import httpx
from loguru import logger
#
# Local Imports
from .merge import merge_snapshots
from .status import SyncStatus, SyncStatusChannel
from ..Constants import TOKEN_ENV_VARS
from ..Notes.models import Snapshot
from ..config import SyncSettings
from ..github_api.auth import EnvTokenProvider, TokenProvider
from ..github_api.client import GitHubContentsClient
from ..github_api.exceptions import ConflictError, QuickNotesSyncError
from ..github_api.utils import parse_repo_url
#
#######################################################################################################################
#
# Functions:

class RemoteStore(Protocol):
    async def fetch(self) -> Tuple[Optional[Snapshot], Optional[str]]: ...
    async def write(self, snapshot: Snapshot, expected_token: Optional[str] = None) -> str: ...


class SyncPhase(str, Enum):
    IDLE = "idle"
    PULLING = "pulling"
    MERGING = "merging"
    PUSHING = "pushing"
    SYNCED = "synced"
    CONFLICT_RETRY = "conflict-retry"
    ERROR = "error"


_PHASE_STATUS = {
    SyncPhase.IDLE: SyncStatus.IDLE,
    SyncPhase.PULLING: SyncStatus.SYNCING,
    SyncPhase.MERGING: SyncStatus.SYNCING,
    SyncPhase.PUSHING: SyncStatus.SYNCING,
    SyncPhase.CONFLICT_RETRY: SyncStatus.SYNCING,
    SyncPhase.SYNCED: SyncStatus.SYNCED,
    SyncPhase.ERROR: SyncStatus.ERROR,
}

_ACTIVE_PHASES = (SyncPhase.PULLING, SyncPhase.MERGING, SyncPhase.PUSHING, SyncPhase.CONFLICT_RETRY)


@dataclass
class SyncSession:
    """Concurrency state for one remote resource. `token` only changes after a confirmed fetch or write."""
    token: Optional[str] = None
    last_sync_time: Optional[datetime] = None


class NotesSyncEngine:
    """
    Reconciles the local Snapshot with the remote document.

    Foreground syncs, background syncs and fire-and-forget pushes all pass through the
    same in-flight flag: while one of them runs, the others are skipped, never queued.
    """

    MAX_ATTEMPTS = 2  # the first try plus exactly one retry after a conflict

    def __init__(
        self,
        store: Optional[RemoteStore],
        status_channel: Optional[SyncStatusChannel] = None,
        merge_fn: Callable[[Optional[Snapshot], Optional[Snapshot]], Snapshot] = merge_snapshots,
    ):
        self.store = store
        self.status = status_channel or SyncStatusChannel()
        self.merge_fn = merge_fn
        self.session = SyncSession()
        self._phase = SyncPhase.IDLE
        self._in_flight = False
        self._background_tasks: Set[asyncio.Task] = set()

        if self.store is None:
            self.status.publish(SyncStatus.NOT_CONFIGURED)
        logger.debug(f"NotesSyncEngine initialized (configured: {self.is_configured}).")

    @classmethod
    def from_settings(
        cls,
        settings: SyncSettings,
        token_provider: Optional[TokenProvider] = None,
        status_channel: Optional[SyncStatusChannel] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "NotesSyncEngine":
        """
        Builds an engine backed by the GitHub Contents API, or an unconfigured one when no
        repo URL is set.

        Raises:
            ConfigurationError: If the repo URL is not https://<host>/<owner>/<repo>[.git].
        """
        if not settings.is_configured:
            return cls(store=None, status_channel=status_channel)

        repo = parse_repo_url(settings.repo_url)
        if token_provider is None:
            env_vars = (settings.token_env,) + tuple(v for v in TOKEN_ENV_VARS if v != settings.token_env)
            token_provider = EnvTokenProvider(env_vars)
        store = GitHubContentsClient(
            repo,
            token_provider,
            file_path=settings.file_path,
            base_url=settings.api_base_url,
            timeout=settings.timeout,
            branch=settings.branch,
            transport=transport,
        )
        logger.info(f"Remote sync configured for {repo.full_name}/{settings.file_path}")
        return cls(store=store, status_channel=status_channel)

    # --- State ---

    @property
    def is_configured(self) -> bool:
        return self.store is not None

    @property
    def is_syncing(self) -> bool:
        return self._in_flight

    @property
    def phase(self) -> SyncPhase:
        return self._phase

    @property
    def last_sync_time(self) -> Optional[datetime]:
        return self.session.last_sync_time

    def _set_phase(self, phase: SyncPhase) -> None:
        self._phase = phase
        logger.debug(f"Sync phase -> {phase.value}")
        self.status.publish(_PHASE_STATUS[phase])

    def _finish_in_flight(self) -> None:
        self._in_flight = False
        # Only reached mid-phase when the task was cancelled.
        if self._phase in _ACTIVE_PHASES:
            logger.info(f"Sync cancelled during {self._phase.value}.")
            self._set_phase(SyncPhase.IDLE)

    def _not_configured(self) -> None:
        logger.debug("Remote sync is not configured; nothing to do.")
        self.status.publish(SyncStatus.NOT_CONFIGURED)

    # --- Core Sync Logic ---

    async def sync(self, local: Snapshot) -> Optional[Snapshot]:
        """
        Pulls the remote document, merges it with `local` and pushes the result.

        Returns:
            The merged Snapshot, which the caller must import as its new local state,
            or None when nothing ran (not configured, or another sync/push in flight).

        Raises:
            AuthError, TransportError: From the first failing request, without retry.
            ConflictError: When the write conflicted on both attempts.
        """
        if not self.is_configured:
            self._not_configured()
            return None
        if self._in_flight:
            logger.info("Sync already in progress; skipping overlapping sync request.")
            return None

        self._in_flight = True
        try:
            return await self._sync_with_retry(local)
        finally:
            self._finish_in_flight()

    async def _sync_with_retry(self, local: Snapshot) -> Snapshot:
        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            try:
                merged = await self._run_cycle(local, self.session)
            except ConflictError as e:
                if attempt < self.MAX_ATTEMPTS:
                    logger.warning(f"Version conflict on sync attempt {attempt}: {e}. Retrying with a fresh pull.")
                    self._set_phase(SyncPhase.CONFLICT_RETRY)
                    continue
                logger.error(f"Sync failed: still conflicting after {attempt} attempts: {e}")
                self._set_phase(SyncPhase.ERROR)
                raise
            except QuickNotesSyncError as e:
                logger.error(f"Sync failed during {self._phase.value}: {e}")
                self._set_phase(SyncPhase.ERROR)
                raise
            except Exception as e:
                logger.opt(exception=e).error(f"Unexpected error during sync ({self._phase.value}): {e}")
                self._set_phase(SyncPhase.ERROR)
                raise

            self.session.last_sync_time = datetime.now(timezone.utc)
            self._set_phase(SyncPhase.SYNCED)
            logger.info(f"Sync complete after {attempt} attempt(s): "
                        f"{len(merged.projects)} projects, {len(merged.archived_projects)} archived.")
            return merged

    async def _run_cycle(self, local: Snapshot, session: SyncSession) -> Snapshot:
        self._set_phase(SyncPhase.PULLING)
        remote, token = await self.store.fetch()
        session.token = token

        self._set_phase(SyncPhase.MERGING)
        merged = self.merge_fn(local, remote)

        self._set_phase(SyncPhase.PUSHING)
        session.token = await self.store.write(merged, session.token)
        return merged

    # --- Background persistence ---

    async def push(self, snapshot: Snapshot) -> bool:
        """
        Writes `snapshot` with the held token, without pulling or merging first.

        Returns:
            True if written, False if skipped (not configured or something in flight).

        Raises:
            ConflictError, AuthError, TransportError: Not retried here; a later `sync` reconciles.
        """
        if not self.is_configured:
            self._not_configured()
            return False
        if self._in_flight:
            logger.info("Sync in progress; skipping background push.")
            return False

        self._in_flight = True
        try:
            self._set_phase(SyncPhase.PUSHING)
            self.session.token = await self.store.write(snapshot, self.session.token)
        except Exception as e:
            logger.error(f"Push failed: {e}")
            self._set_phase(SyncPhase.ERROR)
            raise
        else:
            self.session.last_sync_time = datetime.now(timezone.utc)
            self._set_phase(SyncPhase.SYNCED)
        finally:
            self._finish_in_flight()
        return True

    def schedule_push(self, snapshot: Snapshot) -> Optional[asyncio.Task]:
        """Fire-and-forget `push`. Failures are logged and reflected in the status channel only."""
        if not self.is_configured:
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; background push not scheduled.")
            return None
        task = loop.create_task(self._push_in_background(snapshot), name="quick-notes-background-push")
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def _push_in_background(self, snapshot: Snapshot) -> None:
        try:
            await self.push(snapshot)
        except QuickNotesSyncError as e:
            logger.warning(f"Background push failed: {e}")
        except Exception as e:
            logger.opt(exception=e).error(f"Unexpected error in background push: {e}")

    async def aclose(self) -> None:
        for task in list(self._background_tasks):
            task.cancel()
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        close = getattr(self.store, "close", None)
        if close is not None:
            await close()

#
# End of Sync_Engine.py
#######################################################################################################################
