# quick_notes/Notes/__init__.py
from .models import Note, Project, ArchivedProject, Snapshot, Priority

__all__ = ["Note", "Project", "ArchivedProject", "Snapshot", "Priority"]
