"""Tests for the httpx platform client."""

import uuid

import httpx
import pytest

from gateflow_setup.core.models import ApiKey, Project
from gateflow_setup.exceptions import ProjectNotFound, TransportFailure
from gateflow_setup.platform_client import SupabasePlatformClient

SESSION_ID = uuid.UUID("6f1c2c3e-8a51-4d8e-9a57-3b2a8f4e1d00")


def _client(handler) -> SupabasePlatformClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SupabasePlatformClient("https://api.example.test/", timeout=5, client=http)


@pytest.mark.asyncio
async def test_poll_login_sends_session_and_code():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"access_token": "aa", "public_key": "bb", "nonce": "cc", "extra": 1},
        )

    response = await _client(handler).poll_login(SESSION_ID, "ABCD1234")

    assert response.has_token
    assert response.public_key == "bb"
    assert seen[0].url.path == f"/platform/cli/login/{SESSION_ID}"
    assert seen[0].url.params["device_code"] == "ABCD1234"
    assert "authorization" not in seen[0].headers


@pytest.mark.parametrize(
    "reply",
    [
        httpx.Response(404, json={"message": "Not found"}),
        httpx.Response(200, text="<html>blocked</html>"),
        httpx.Response(200, json=["unexpected"]),
        httpx.Response(200, json={"message": "pending"}),
    ],
    ids=["not-found", "html", "array", "no-token"],
)
@pytest.mark.asyncio
async def test_poll_login_without_usable_token(reply):
    response = await _client(lambda request: reply).poll_login(SESSION_ID, "X")

    assert not response.has_token


@pytest.mark.asyncio
async def test_timeout_is_retryable_transport_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(TransportFailure) as excinfo:
        await _client(handler).poll_login(SESSION_ID, "X")

    assert excinfo.value.retryable


@pytest.mark.asyncio
async def test_connect_error_is_transport_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransportFailure):
        await _client(handler).list_projects("sbp_token")


@pytest.mark.asyncio
async def test_list_projects_uses_bearer_token():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[
                {"id": "abc", "name": "Shop", "region": "eu-central-1"},
                {"id": "def", "name": "Blog"},
            ],
        )

    projects = await _client(handler).list_projects("sbp_token")

    assert projects == [Project(id="abc", name="Shop"), Project(id="def", name="Blog")]
    assert seen[0].headers["authorization"] == "Bearer sbp_token"
    assert seen[0].url.path == "/v1/projects"


@pytest.mark.asyncio
async def test_list_projects_non_array_is_empty():
    client = _client(lambda request: httpx.Response(500, json={"message": "oops"}))

    assert await client.list_projects("sbp_token") == []


@pytest.mark.parametrize("status", [401, 403])
@pytest.mark.asyncio
async def test_validate_token_rejected(status):
    client = _client(lambda request: httpx.Response(status, json={"message": "no"}))

    assert await client.validate_token("sbp_stale") is None


@pytest.mark.asyncio
async def test_validate_token_accepted():
    client = _client(lambda request: httpx.Response(200, json=[{"id": "a", "name": "A"}]))

    assert await client.validate_token("sbp_token") == [Project(id="a", name="A")]


@pytest.mark.asyncio
async def test_list_api_keys_reveals_keys():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[
                {"name": "anon", "api_key": "anon-value", "id": "1"},
                {"name": "default", "type": "secret", "api_key": "sb_secret_x"},
            ],
        )

    keys = await _client(handler).list_api_keys("sbp_token", "proj-1")

    assert keys == [
        ApiKey(name="anon", api_key="anon-value"),
        ApiKey(name="default", type="secret", api_key="sb_secret_x"),
    ]
    assert seen[0].url.path == "/v1/projects/proj-1/api-keys"
    assert seen[0].url.params["reveal"] == "true"


@pytest.mark.asyncio
async def test_list_api_keys_unknown_project():
    client = _client(lambda request: httpx.Response(404, json={"message": "missing"}))

    with pytest.raises(ProjectNotFound):
        await client.list_api_keys("sbp_token", "nope")


@pytest.mark.asyncio
async def test_owned_client_is_closed():
    client = SupabasePlatformClient("https://api.example.test")

    async with client:
        pass

    assert client._client.is_closed
