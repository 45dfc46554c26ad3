# quick_notes/Notes/models.py
# Description: Pydantic models for the notes Snapshot document (projects, archived projects, notes).
#
# Imports
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional
#
# 3rd-party Libraries
from pydantic import BaseModel, ConfigDict, Field
#
# Local Imports
from ..Constants import DEFAULT_NOTE_PRIORITY, DEFAULT_SNAPSHOT_VERSION
#
########################################################################################################################
#
# Functions:

Priority = Literal['high', 'medium', 'low']


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parses an ISO-8601 string into an aware datetime (naive values are taken as UTC)."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class _SnapshotModel(BaseModel):
    # Documents are written with camelCase keys; fields we don't know about are
    # kept so that a round trip through the remote never drops data.
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class Note(_SnapshotModel):
    id: str
    content: str = ""
    # Written by the note editor; older notes only carry `content`.
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Priority = DEFAULT_NOTE_PRIORITY
    completed: bool = False
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")


class Project(_SnapshotModel):
    # Older documents store the ID only as the mapping key, so it may be missing here.
    id: Optional[str] = None
    name: str = ""
    path: str = ""
    icon: Optional[str] = None
    color: Optional[str] = None
    notes: List[Note] = Field(default_factory=list)
    created_at: Optional[str] = Field(default=None, alias="createdAt")


class ArchivedProject(Project):
    archived_at: Optional[str] = Field(default=None, alias="archivedAt")


class Snapshot(_SnapshotModel):
    """The full notes document, identical in shape locally and remotely."""
    version: str = DEFAULT_SNAPSHOT_VERSION
    projects: Dict[str, Project] = Field(default_factory=dict)
    archived_projects: Dict[str, ArchivedProject] = Field(default_factory=dict, alias="archivedProjects")

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.projects and not self.archived_projects

#
# End of models.py
########################################################################################################################
