# quick_notes/github_api/utils.py
#
#
# Imports
import base64
import json
import re
from datetime import datetime, timezone
from typing import Optional, Union
#
# 3rd-party Libraries
#
# Local Imports
from .exceptions import ConfigurationError
from .schemas import RepoRef
from ..Notes.models import Snapshot
#
#######################################################################################################################
#
# Functions:

_REPO_URL_RE = re.compile(
    r"^https://(?P<host>[^/\s]+)/(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+?)(?:\.git)?/?$"
)


def parse_repo_url(repo_url: str) -> RepoRef:
    """
    Parses `https://<host>/<owner>/<repo>[.git]` into a RepoRef.

    Raises:
        ConfigurationError: If the URL does not have that shape.
    """
    match = _REPO_URL_RE.match((repo_url or "").strip())
    if not match:
        raise ConfigurationError(f"Invalid repository URL: {repo_url!r}. Expected https://<host>/<owner>/<repo>")
    return RepoRef(host=match.group("host"), owner=match.group("owner"), repo=match.group("repo"))


def encode_snapshot(snapshot: Snapshot) -> bytes:
    """Serializes a Snapshot to the UTF-8 JSON stored in the remote file."""
    return json.dumps(snapshot.to_json_dict(), indent=2, ensure_ascii=False).encode("utf-8")


def decode_snapshot(data: Union[bytes, str]) -> Snapshot:
    """
    Parses the remote file back into a Snapshot.

    Raises:
        ValueError: If the data is not JSON or does not describe a Snapshot
                    (pydantic's ValidationError and JSONDecodeError are both ValueErrors).
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    return Snapshot.model_validate(json.loads(data))


def snapshot_to_base64(snapshot: Snapshot) -> str:
    return base64.b64encode(encode_snapshot(snapshot)).decode("ascii")


def snapshot_from_base64(content: str) -> Snapshot:
    # The Contents API wraps base64 payloads at 60 columns.
    raw = base64.b64decode("".join(content.split()), validate=True)
    return decode_snapshot(raw)


def build_commit_message(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"Sync notes — {now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')}"

#
# End of utils.py
#######################################################################################################################
