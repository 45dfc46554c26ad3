# test_client.py
#
#
# Imports
import asyncio
import base64
import json
#
# Third-Party Imports
import httpx
import pytest
#
# Local Imports
from quick_notes.Notes.models import Note, Project, Snapshot
from quick_notes.github_api.auth import CallableTokenProvider, StaticTokenProvider
from quick_notes.github_api.client import GitHubContentsClient
from quick_notes.github_api.exceptions import AuthError, ConflictError, TransportError
from quick_notes.github_api.utils import encode_snapshot, parse_repo_url
#
########################################################################################################################
#
# Functions:

REPO = parse_repo_url("https://github.com/alice/notes")
CONTENTS_PATH = "/repos/alice/notes/contents/notes.json"


@pytest.fixture
def snapshot():
    return Snapshot(projects={
        "p1": Project(id="p1", name="Café", path="/work/p1", notes=[
            Note(id="n1", content="ship it ✅", created_at="2024-01-01T10:00:00.000Z",
                 updated_at="2024-01-01T10:00:00.000Z"),
        ]),
    })


def contents_payload(snapshot: Snapshot, sha: str = "abc123") -> dict:
    encoded = base64.b64encode(encode_snapshot(snapshot)).decode("ascii")
    # The API line-wraps base64 content.
    wrapped = "\n".join(encoded[i:i + 60] for i in range(0, len(encoded), 60))
    return {"type": "file", "encoding": "base64", "sha": sha, "path": "notes.json", "content": wrapped}


def make_client(handler, **kwargs) -> GitHubContentsClient:
    kwargs.setdefault("token_provider", StaticTokenProvider("t0k"))
    return GitHubContentsClient(REPO, transport=httpx.MockTransport(handler), **kwargs)


# --- fetch ---

@pytest.mark.asyncio
async def test_fetch_decodes_document_and_returns_sha(snapshot):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=contents_payload(snapshot, sha="abc123"))

    async with make_client(handler) as client:
        remote, sha = await client.fetch()

    assert remote == snapshot
    assert sha == "abc123"
    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == CONTENTS_PATH
    assert request.headers["Authorization"] == "token t0k"
    assert request.headers["Accept"] == "application/vnd.github.v3+json"
    assert "ref" not in request.url.params


@pytest.mark.asyncio
async def test_fetch_sends_branch_as_ref(snapshot):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=contents_payload(snapshot))

    async with make_client(handler, branch="notes-sync") as client:
        await client.fetch()
    assert seen[0].url.params["ref"] == "notes-sync"


@pytest.mark.asyncio
async def test_fetch_missing_document_is_first_sync():
    async with make_client(lambda request: httpx.Response(404, json={"message": "Not Found"})) as client:
        assert await client.fetch() == (None, None)


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"sha": "x", "encoding": "base64", "content": base64.b64encode(b"not json").decode()},
    {"sha": "x", "encoding": "base64", "content": "!!!not-base64!!!"},
    {"sha": "x", "encoding": "none", "content": ""},
    {"content": "missing sha"},
])
async def test_fetch_rejects_unreadable_documents(payload):
    async with make_client(lambda request: httpx.Response(200, json=payload)) as client:
        with pytest.raises(TransportError):
            await client.fetch()


@pytest.mark.asyncio
async def test_fetch_non_json_body_is_transport_error():
    async with make_client(lambda request: httpx.Response(200, text="<html>")) as client:
        with pytest.raises(TransportError) as exc_info:
            await client.fetch()
    assert exc_info.value.status_code == 200


# --- write ---

@pytest.mark.asyncio
async def test_write_sends_base64_document_with_expected_sha(snapshot):
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"content": {"sha": "def456", "path": "notes.json"}, "commit": {"sha": "c1"}})

    async with make_client(handler, branch="main") as client:
        new_sha = await client.write(snapshot, expected_token="abc123")

    assert new_sha == "def456"
    body = bodies[0]
    assert body["sha"] == "abc123"
    assert body["branch"] == "main"
    assert body["message"].startswith("Sync notes")
    assert Snapshot.model_validate_json(base64.b64decode(body["content"])) == snapshot


@pytest.mark.asyncio
async def test_create_omits_sha(snapshot):
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"content": {"sha": "first"}})

    async with make_client(handler) as client:
        assert await client.write(snapshot) == "first"
    assert "sha" not in bodies[0]
    assert "branch" not in bodies[0]


@pytest.mark.asyncio
async def test_write_stale_sha_is_conflict(snapshot):
    async with make_client(lambda request: httpx.Response(409, json={"message": "does not match"})) as client:
        with pytest.raises(ConflictError) as exc_info:
            await client.write(snapshot, expected_token="stale")
    assert exc_info.value.expected_token == "stale"


@pytest.mark.asyncio
async def test_create_over_existing_file_is_conflict(snapshot):
    response = httpx.Response(422, json={"message": "Invalid request. \"sha\" wasn't supplied."})
    async with make_client(lambda request: response) as client:
        with pytest.raises(ConflictError):
            await client.write(snapshot)


@pytest.mark.asyncio
async def test_unprocessable_update_is_transport_error(snapshot):
    async with make_client(lambda request: httpx.Response(422, json={"message": "bad"})) as client:
        with pytest.raises(TransportError) as exc_info:
            await client.write(snapshot, expected_token="abc")
    assert exc_info.value.status_code == 422


# --- error mapping ---

@pytest.mark.asyncio
@pytest.mark.parametrize("status, headers, expected", [
    (401, {}, AuthError),
    (403, {}, AuthError),
    (403, {"x-ratelimit-remaining": "0"}, TransportError),
    (500, {}, TransportError),
    (502, {}, TransportError),
])
async def test_error_status_mapping(status, headers, expected):
    handler = lambda request: httpx.Response(status, headers=headers, json={"message": "nope"})
    async with make_client(handler) as client:
        with pytest.raises(expected):
            await client.fetch()


@pytest.mark.asyncio
async def test_server_error_keeps_status_and_detail():
    async with make_client(lambda request: httpx.Response(500, json={"message": "Server Error"})) as client:
        with pytest.raises(TransportError) as exc_info:
            await client.fetch()
    assert exc_info.value.status_code == 500
    assert "Server Error" in str(exc_info.value)


@pytest.mark.asyncio
async def test_network_failure_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(TransportError):
            await client.fetch()


@pytest.mark.asyncio
async def test_slow_response_times_out():
    async def handler(request):
        await asyncio.sleep(5)
        return httpx.Response(200, json={})

    async with make_client(handler, timeout=0.05) as client:
        with pytest.raises(TransportError, match="timed out"):
            await client.fetch()


# --- credentials ---

@pytest.mark.asyncio
async def test_cancelled_credential_prompt_is_auth_error():
    requests = []
    provider = CallableTokenProvider(lambda: None)
    async with make_client(lambda request: requests.append(request), token_provider=provider) as client:
        with pytest.raises(AuthError, match="cancelled"):
            await client.fetch()
    assert requests == []


@pytest.mark.asyncio
async def test_async_credential_provider_is_awaited(snapshot):
    seen = []

    async def fetch_token():
        return "from-keychain"

    def handler(request):
        seen.append(request.headers["Authorization"])
        return httpx.Response(200, json=contents_payload(snapshot))

    async with make_client(handler, token_provider=CallableTokenProvider(fetch_token)) as client:
        await client.fetch()
    assert seen == ["token from-keychain"]

#
# End of test_client.py
########################################################################################################################
