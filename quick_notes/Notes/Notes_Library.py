# Notes_Library.py
# Description: Local notes store: project/note CRUD over a single Snapshot, plus the
#              export/import boundary used by the sync engine.
#
# Imports
import base64
import logging
import os
import secrets
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union, TYPE_CHECKING
#
# Third-Party Imports
from pydantic import ValidationError
#
# Local Imports
from .models import ArchivedProject, Note, Project, Snapshot, parse_timestamp
from ..Constants import DEFAULT_NOTE_PRIORITY, NOTE_PRIORITIES
#
if TYPE_CHECKING:
    from ..Sync.Sync_Engine import NotesSyncEngine
#
#######################################################################################################################
#
# Functions:

logger = logging.getLogger(__name__)

_BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_NOTE_FIELDS = {"content", "title", "description", "priority", "completed"}
# Owned by the manager; never taken from caller supplied project info.
_RESERVED_PROJECT_KEYS = {"id", "notes", "createdAt", "created_at"}


class NotesDataError(Exception):
    """Raised for missing projects/notes and for unreadable local data."""
    pass


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def utc_now_iso() -> str:
    """Current time as `2024-01-31T12:00:00.000Z`."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_project_id(project_path: str) -> str:
    """Stable project ID: the same path always yields the same ID."""
    encoded = base64.b64encode(project_path.encode("utf-8")).decode("ascii")
    return encoded.replace("/", "_").replace("+", "_").replace("=", "_")


def generate_note_id() -> str:
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(9))
    return f"note_{_to_base36(millis)}_{suffix}"


class NotesDataManager:
    """
    Holds the local Snapshot, persisted as a JSON file (or kept in memory when no
    path is given).

    Every read returns a fresh copy, so callers can never mutate the stored state
    by accident. `save_data` also schedules a background push when a configured
    sync engine is attached; `import_data` never does.
    """

    def __init__(self, storage_path: Optional[Union[str, Path]] = None,
                 sync_engine: Optional['NotesSyncEngine'] = None):
        self.storage_path = Path(storage_path).expanduser().resolve() if storage_path else None
        self.sync_engine = sync_engine
        self._data: Optional[Snapshot] = None
        self._lock = threading.RLock()

    def set_sync_engine(self, sync_engine: Optional['NotesSyncEngine']) -> None:
        self.sync_engine = sync_engine

    # --- Persistence ---

    def _load(self) -> Snapshot:
        if self.storage_path is None or not self.storage_path.exists():
            return Snapshot.empty()
        try:
            return Snapshot.model_validate_json(self.storage_path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.error(f"Failed to load notes data from {self.storage_path}: {e}")
            raise NotesDataError(f"Failed to load notes data from {self.storage_path}: {e}") from e

    def _persist(self, data: Snapshot) -> None:
        if self.storage_path is not None:
            try:
                self.storage_path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path = self.storage_path.with_suffix(self.storage_path.suffix + ".tmp")
                tmp_path.write_text(data.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
                os.replace(tmp_path, self.storage_path)
            except OSError as e:
                logger.error(f"Failed to write notes data to {self.storage_path}: {e}")
                raise NotesDataError(f"Failed to write notes data to {self.storage_path}: {e}") from e
        self._data = data.model_copy(deep=True)

    def get_data(self) -> Snapshot:
        with self._lock:
            if self._data is None:
                self._data = self._load()
            return self._data.model_copy(deep=True)

    def save_data(self, data: Snapshot) -> None:
        with self._lock:
            self._persist(data)
        if self.sync_engine is not None and self.sync_engine.is_configured:
            self.sync_engine.schedule_push(data.model_copy(deep=True))

    def export_data(self) -> Snapshot:
        return self.get_data()

    def import_data(self, data: Snapshot) -> None:
        """Replaces the local state wholesale (e.g. with a sync result)."""
        with self._lock:
            self._persist(data)
        logger.info(f"Imported notes data: {len(data.projects)} projects, {len(data.archived_projects)} archived.")

    # --- Project Methods ---

    def ensure_project(self, project_id: str, project_info: Dict[str, Any]) -> Project:
        """
        Creates the project if needed, otherwise refreshes its metadata and keeps its notes.

        Any extra keys in `project_info` (e.g. `lastAccessed`) are stored on the project as-is.
        """
        info = {key: value for key, value in project_info.items() if key not in _RESERVED_PROJECT_KEYS}
        with self._lock:
            data = self.get_data()
            existing = data.projects.get(project_id)
            if existing is None:
                base = {"id": project_id, "notes": [], "createdAt": utc_now_iso()}
            else:
                base = existing.model_dump(by_alias=True)
            try:
                project = Project.model_validate({**base, **info})
            except ValidationError as e:
                raise ValueError(f"Invalid project info for {project_id}: {e}") from e
            data.projects[project_id] = project
            self.save_data(data)
            return project.model_copy(deep=True)

    def _require_project(self, data: Snapshot, project_id: str) -> Project:
        project = data.projects.get(project_id)
        if project is None:
            raise NotesDataError(f"Project not found: {project_id}")
        return project

    def remove_project(self, project_id: str) -> None:
        with self._lock:
            data = self.get_data()
            data.projects.pop(project_id, None)
            self.save_data(data)

    def archive_project(self, project_id: str) -> bool:
        """Moves an active project (with its notes) to the archive. Returns False if it isn't active."""
        with self._lock:
            data = self.get_data()
            project = data.projects.pop(project_id, None)
            if project is None:
                return False
            archived = ArchivedProject.model_validate({**project.model_dump(by_alias=True),
                                                      "archivedAt": utc_now_iso()})
            data.archived_projects[project_id] = archived
            self.save_data(data)
            return True

    def restore_project(self, project_id: str) -> bool:
        with self._lock:
            data = self.get_data()
            archived = data.archived_projects.pop(project_id, None)
            if archived is None:
                return False
            restored = archived.model_dump(by_alias=True)
            restored.pop("archivedAt", None)
            data.projects[project_id] = Project.model_validate(restored)
            self.save_data(data)
            return True

    def get_archived_projects(self) -> Dict[str, ArchivedProject]:
        return self.get_data().archived_projects

    def delete_archived_project(self, project_id: str) -> None:
        with self._lock:
            data = self.get_data()
            data.archived_projects.pop(project_id, None)
            self.save_data(data)

    def update_project_path(self, project_id: str, new_path: str) -> bool:
        # The ID stays the same: it is never regenerated once assigned.
        with self._lock:
            data = self.get_data()
            project = data.projects.get(project_id)
            if project is None:
                return False
            data.projects[project_id] = project.model_copy(update={"path": new_path})
            self.save_data(data)
            return True

    # --- Note Methods ---

    def get_notes_for_project(self, project_id: str) -> List[Note]:
        project = self.get_data().projects.get(project_id)
        return project.notes if project else []

    def get_note(self, project_id: str, note_id: str) -> Optional[Note]:
        return next((note for note in self.get_notes_for_project(project_id) if note.id == note_id), None)

    def add_note(self, project_id: str, content: str = "", priority: str = DEFAULT_NOTE_PRIORITY,
                 title: Optional[str] = None, description: Optional[str] = None) -> Note:
        if priority not in NOTE_PRIORITIES:
            raise ValueError(f"Invalid priority '{priority}'. Expected one of {NOTE_PRIORITIES}.")
        with self._lock:
            data = self.get_data()
            project = self._require_project(data, project_id)
            now = utc_now_iso()
            note = Note(id=generate_note_id(), content=content, title=title, description=description,
                        priority=priority, completed=False, created_at=now, updated_at=now)
            project.notes.append(note)
            self.save_data(data)
            logger.debug(f"Added note {note.id} to project {project_id}")
            return note.model_copy(deep=True)

    def update_note(self, project_id: str, note_id: str, **updates: Any) -> Note:
        """Updates content/title/description/priority/completed and bumps `updatedAt`."""
        unknown = set(updates) - _NOTE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update note field(s): {', '.join(sorted(unknown))}")
        if "priority" in updates and updates["priority"] not in NOTE_PRIORITIES:
            raise ValueError(f"Invalid priority '{updates['priority']}'. Expected one of {NOTE_PRIORITIES}.")
        with self._lock:
            data = self.get_data()
            project = self._require_project(data, project_id)
            for index, note in enumerate(project.notes):
                if note.id == note_id:
                    break
            else:
                raise NotesDataError(f"Note not found: {note_id}")

            updated_at = utc_now_iso()
            # Keep updatedAt >= createdAt even if the clock moved backwards.
            created = parse_timestamp(note.created_at)
            if created is not None and created > parse_timestamp(updated_at):
                updated_at = note.created_at
            project.notes[index] = note.model_copy(update={**updates, "updated_at": updated_at})
            self.save_data(data)
            return project.notes[index].model_copy(deep=True)

    def delete_note(self, project_id: str, note_id: str) -> None:
        with self._lock:
            data = self.get_data()
            project = self._require_project(data, project_id)
            project.notes = [note for note in project.notes if note.id != note_id]
            self.save_data(data)

#
# End of Notes_Library.py
#######################################################################################################################
