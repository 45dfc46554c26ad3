# quick_notes/Sync/merge.py
# Description: Deterministic merge of a local and a remote Snapshot by entity identity and recency.
#
# Imports
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Type, Union
#
# 3rd-Party Imports
#
# Local Imports
from ..Constants import DEFAULT_SNAPSHOT_VERSION
from ..Notes.models import ArchivedProject, Note, Project, Snapshot, parse_timestamp
#
########################################################################################################################
#
# Functions:

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)

AnyProject = Union[Project, ArchivedProject]


def note_timestamp(note: Note) -> datetime:
    """Recency of a note: `updatedAt`, else `createdAt`, else the oldest possible instant."""
    return parse_timestamp(note.updated_at) or parse_timestamp(note.created_at) or _OLDEST


def merge_notes(local_notes: Iterable[Note], remote_notes: Iterable[Note]) -> List[Note]:
    """
    Merges two note sequences by ID.

    Starts from the remote notes, then each local note is inserted if new, or replaces
    the existing one when its timestamp is greater or equal (local wins ties).
    """
    merged: Dict[str, Note] = {}
    for note in remote_notes:
        merged[note.id] = note

    for note in local_notes:
        existing = merged.get(note.id)
        if existing is None or note_timestamp(note) >= note_timestamp(existing):
            merged[note.id] = note

    return [note.model_copy(deep=True) for note in merged.values()]


def _merge_project(local: AnyProject, remote: AnyProject, model_cls: Type[AnyProject]) -> AnyProject:
    # Remote first so that fields only the remote knows about survive, then local wins every field it has.
    data = remote.model_dump(by_alias=True, exclude={"notes"})
    data.update(local.model_dump(by_alias=True, exclude={"notes"}))
    if model_cls is Project:
        data.pop("archivedAt", None)
    data["notes"] = merge_notes(local.notes, remote.notes)
    return model_cls.model_validate(data)


def _as_model(project: AnyProject, model_cls: Type[AnyProject]) -> AnyProject:
    if type(project) is model_cls:
        return project.model_copy(deep=True)
    data = project.model_dump(by_alias=True)
    if model_cls is Project:
        data.pop("archivedAt", None)
    return model_cls.model_validate(data)


def _ordered_ids(*mappings: Dict[str, AnyProject]) -> List[str]:
    seen: Dict[str, None] = {}
    for mapping in mappings:
        for project_id in mapping:
            seen.setdefault(project_id, None)
    return list(seen)


def merge_snapshots(local: Optional[Snapshot], remote: Optional[Snapshot]) -> Snapshot:
    """
    Combines a local and a remote Snapshot into a new one.

    - No remote: the local snapshot is the result (first sync).
    - No local, or an empty one: the remote snapshot is the result.
    - Otherwise projects and archived projects are unioned by ID. A project present on both
      sides takes its scalar fields from local and gets its notes from `merge_notes`.

    A project that is active on one side and archived on the other keeps the placement it
    has locally, so an ID never ends up in both maps.

    Deletions are not tracked: anything removed on one side but still present on the other
    comes back after the merge.

    The inputs are never modified and the result shares no mutable state with them.
    """
    if remote is None:
        return local.model_copy(deep=True) if local is not None else Snapshot.empty()
    if local is None or local.is_empty:
        return remote.model_copy(deep=True)

    projects: Dict[str, Project] = {}
    archived: Dict[str, ArchivedProject] = {}

    for project_id in _ordered_ids(local.projects, local.archived_projects,
                                   remote.projects, remote.archived_projects):
        if project_id in local.projects:
            is_archived = False
        elif project_id in local.archived_projects:
            is_archived = True
        else:
            is_archived = project_id not in remote.projects

        if is_archived:
            model_cls, target = ArchivedProject, archived
            local_project = local.archived_projects.get(project_id) or local.projects.get(project_id)
            remote_project = remote.archived_projects.get(project_id) or remote.projects.get(project_id)
        else:
            model_cls, target = Project, projects
            local_project = local.projects.get(project_id) or local.archived_projects.get(project_id)
            remote_project = remote.projects.get(project_id) or remote.archived_projects.get(project_id)

        if local_project is not None and remote_project is not None:
            target[project_id] = _merge_project(local_project, remote_project, model_cls)
        else:
            target[project_id] = _as_model(local_project or remote_project, model_cls)

    data = remote.model_dump(by_alias=True, exclude={"version", "projects", "archived_projects"})
    data.update(local.model_dump(by_alias=True, exclude={"version", "projects", "archived_projects"}))
    data.update({
        "version": local.version or remote.version or DEFAULT_SNAPSHOT_VERSION,
        "projects": projects,
        "archivedProjects": archived,
    })
    return Snapshot.model_validate(data)

#
# End of merge.py
########################################################################################################################
