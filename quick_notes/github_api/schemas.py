# quick_notes/github_api/schemas.py
from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict


class RepoRef(BaseModel):
    """owner/repo pair parsed from a user supplied repository URL."""
    model_config = ConfigDict(frozen=True)

    host: str
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def contents_endpoint(self, file_path: str) -> str:
        return f"/repos/{self.owner}/{self.repo}/contents/{file_path.lstrip('/')}"


# --- Contents API payloads ---
class ContentsFile(BaseModel):
    """Response of GET /repos/{owner}/{repo}/contents/{path} for a file."""
    model_config = ConfigDict(extra="ignore")

    sha: str
    content: str = ""
    encoding: str = "base64"
    path: Optional[str] = None
    size: Optional[int] = None


class PutContentsRequest(BaseModel):
    message: str
    content: str  # base64 encoded document
    sha: Optional[str] = None  # required by the API when updating an existing file
    branch: Optional[str] = None


class ContentsFileRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sha: str
    path: Optional[str] = None


class PutContentsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: ContentsFileRef
    commit: Optional[Dict[str, Any]] = None
