# quick_notes/github_api/client.py
#
#
# Imports
import asyncio
from typing import Optional, Dict, Any, Tuple
#
# 3rd-party Libraries
import httpx
from loguru import logger
from pydantic import ValidationError
#
# Local Imports
from .auth import TokenProvider
from .exceptions import AuthError, ConflictError, TransportError
from .schemas import RepoRef, ContentsFile, PutContentsRequest, PutContentsResponse
from .utils import snapshot_from_base64, snapshot_to_base64, build_commit_message
from ..Constants import (
    GITHUB_API_BASE_URL, GITHUB_ACCEPT_HEADER, USER_AGENT,
    REMOTE_NOTES_FILE, DEFAULT_REQUEST_TIMEOUT_SECONDS,
)
from ..Notes.models import Snapshot
#
########################################################################################################################
#
# Functions:

class GitHubContentsClient:
    """
    Reads and conditionally writes the single remote notes document through the
    GitHub Contents API.

    The client is stateless with respect to concurrency control: `fetch` hands the
    version token (blob sha) back to the caller and `write` takes the expected token
    as an argument.
    """

    def __init__(
        self,
        repo: RepoRef,
        token_provider: TokenProvider,
        file_path: str = REMOTE_NOTES_FILE,
        base_url: str = GITHUB_API_BASE_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        branch: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.repo = repo
        self.token_provider = token_provider
        self.file_path = file_path
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.branch = branch
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def endpoint(self) -> str:
        return self.repo.contents_endpoint(self.file_path)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Accept": GITHUB_ACCEPT_HEADER, "User-Agent": USER_AGENT},
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "GitHubContentsClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _request(self, method: str, json_body: Optional[Dict[str, Any]] = None) -> httpx.Response:
        # Credential acquisition may wait on the user and is not covered by the request timeout.
        token = await self.token_provider.get_token()
        client = await self._get_client()
        headers = {"Authorization": f"token {token}"}
        params = {"ref": self.branch} if (self.branch and method == "GET") else None
        url = f"{self.base_url}{self.endpoint}"

        try:
            return await asyncio.wait_for(
                client.request(method, self.endpoint, json=json_body, headers=headers, params=params),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise TransportError(f"Request timed out after {self.timeout}s: {method} {url}") from e
        except httpx.RequestError as e: # Covers ConnectError, ReadError, etc.
            raise TransportError(f"Network error: {method} {url}: {e}") from e

    @staticmethod
    def _json_or_none(response: httpx.Response) -> Optional[Dict[str, Any]]:
        try:
            data = response.json()
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        response_data = self._json_or_none(response)
        detail = (response_data or {}).get("message") or response.reason_phrase or "Unknown error"

        status = response.status_code
        if status == 401:
            raise AuthError(f"Authentication failed: {detail}")
        if status == 403 and response.headers.get("x-ratelimit-remaining") != "0":
            raise AuthError(f"Access denied to {self.repo.full_name}: {detail}")
        raise TransportError(detail, status_code=status, response_data=response_data)

    async def fetch(self) -> Tuple[Optional[Snapshot], Optional[str]]:
        """
        Retrieves the remote document.

        Returns:
            (snapshot, version_token), or (None, None) when the document does not exist yet.
        """
        logger.debug(f"Fetching {self.file_path} from {self.repo.full_name}")
        response = await self._request("GET")
        if response.status_code == 404:
            logger.info(f"{self.file_path} not found in {self.repo.full_name}; treating as first sync.")
            return None, None
        self._raise_for_status(response)

        payload = self._json_or_none(response)
        if payload is None:
            raise TransportError("Failed to decode JSON response", status_code=response.status_code,
                                 response_data={"raw_text": response.text})
        try:
            contents = ContentsFile.model_validate(payload)
        except ValidationError as e:
            raise TransportError(f"Unexpected contents response: {e}", status_code=response.status_code,
                                 response_data=payload) from e
        if contents.encoding != "base64":
            raise TransportError(f"Unsupported content encoding '{contents.encoding}' for {self.file_path}",
                                 status_code=response.status_code, response_data=payload)
        try:
            snapshot = snapshot_from_base64(contents.content)
        except ValueError as e:
            raise TransportError(f"Remote {self.file_path} is not a valid notes document: {e}") from e

        logger.debug(f"Fetched {self.file_path} at sha {contents.sha}")
        return snapshot, contents.sha

    async def write(self, snapshot: Snapshot, expected_token: Optional[str] = None) -> str:
        """
        Creates the document (no token) or updates it (token must match the current sha).

        Returns:
            The new version token.

        Raises:
            ConflictError: The token is stale, or the document appeared since it was found missing.
            AuthError: Credentials were rejected.
            TransportError: Network failure, timeout or any other non-2xx response.
        """
        body = PutContentsRequest(
            message=build_commit_message(),
            content=snapshot_to_base64(snapshot),
            sha=expected_token,
            branch=self.branch,
        )
        logger.debug(f"Writing {self.file_path} to {self.repo.full_name} (expected sha: {expected_token})")
        response = await self._request("PUT", body.model_dump(exclude_none=True))

        if response.status_code == 409:
            raise ConflictError(f"{self.file_path} changed remotely since sha {expected_token}",
                                expected_token=expected_token)
        if response.status_code == 422 and expected_token is None:
            # The API answers 422 ("sha wasn't supplied") when creating a file that now exists.
            raise ConflictError(f"{self.file_path} was created remotely since it was last fetched")
        self._raise_for_status(response)

        payload = self._json_or_none(response)
        try:
            new_token = PutContentsResponse.model_validate(payload or {}).content.sha
        except ValidationError as e:
            raise TransportError(f"Unexpected write response: {e}", status_code=response.status_code,
                                 response_data=payload) from e
        logger.debug(f"Wrote {self.file_path}; new sha {new_token}")
        return new_token

#
# End of client.py
########################################################################################################################
