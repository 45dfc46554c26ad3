# quick_notes/github_api/__init__.py
from .client import GitHubContentsClient
from .auth import TokenProvider, StaticTokenProvider, EnvTokenProvider, CallableTokenProvider
from .exceptions import (
    QuickNotesSyncError, ConfigurationError,
    AuthError, ConflictError, TransportError, MergeAmbiguityError
)
from .schemas import RepoRef, ContentsFile, PutContentsRequest, PutContentsResponse
from .utils import parse_repo_url, encode_snapshot, decode_snapshot

__all__ = [
    "GitHubContentsClient",
    "TokenProvider", "StaticTokenProvider", "EnvTokenProvider", "CallableTokenProvider",
    "QuickNotesSyncError", "ConfigurationError",
    "AuthError", "ConflictError", "TransportError", "MergeAmbiguityError",
    "RepoRef", "ContentsFile", "PutContentsRequest", "PutContentsResponse",
    "parse_repo_url", "encode_snapshot", "decode_snapshot",
]
