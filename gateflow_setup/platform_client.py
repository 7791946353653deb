"""httpx implementation of the platform API client."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any
from uuid import UUID

import httpx
from pydantic import TypeAdapter, ValidationError

from .const import DEFAULT_API_URL, DEFAULT_HTTP_TIMEOUT
from .core.models import ApiKey, LoginPollResponse, Project
from .core.platform_interface import PlatformInterface
from .exceptions import ProjectNotFound, TransportFailure

_LOGGER = logging.getLogger(__name__)

_PROJECTS = TypeAdapter(list[Project])
_API_KEYS = TypeAdapter(list[ApiKey])


class SupabasePlatformClient(PlatformInterface):
    """Concrete implementation of PlatformInterface over HTTPS.

    Every request uses a bounded timeout. Network failures surface as
    :class:`TransportFailure`; everything the platform actually answered is
    passed back for the caller to classify.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the platform client.

        Args:
            api_url: Base URL of the management API.
            timeout: Per-request timeout in seconds.
            client: Optional preconfigured client; the caller then owns it.
        """
        self._api_url = api_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._timeout = timeout

    async def __aenter__(self) -> SupabasePlatformClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _get(
        self,
        path: str,
        *,
        token: str | None = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            response = await self._client.get(
                f"{self._api_url}{path}",
                params=params,
                headers=headers,
                timeout=self._timeout,
            )
        except httpx.TimeoutException as err:
            _LOGGER.warning("Timed out calling %s", path)
            raise TransportFailure(f"Request to the platform timed out ({path}).") from err
        except httpx.HTTPError as err:
            _LOGGER.warning("Error calling %s: %s", path, err)
            raise TransportFailure(f"Failed to connect to the platform: {err}") from err
        _LOGGER.debug("GET %s -> %s", path, response.status_code)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    async def poll_login(
        self, session_id: UUID, device_code: str
    ) -> LoginPollResponse:
        response = await self._get(
            f"/platform/cli/login/{session_id}",
            params={"device_code": device_code},
        )
        body = self._json(response)
        if not response.is_success or not isinstance(body, dict):
            _LOGGER.debug("Login poll returned no usable body (%s)", response.status_code)
            return LoginPollResponse()
        try:
            return LoginPollResponse.model_validate(body)
        except ValidationError:
            return LoginPollResponse()

    @staticmethod
    def _projects(body: Any) -> list[Project] | None:
        if not isinstance(body, list):
            return None
        try:
            return _PROJECTS.validate_python(body)
        except ValidationError as err:
            _LOGGER.warning("Malformed project listing (%d errors)", err.error_count())
            return None

    async def list_projects(self, token: str) -> list[Project]:
        response = await self._get("/v1/projects", token=token)
        projects = self._projects(self._json(response))
        if projects is None:
            _LOGGER.warning("Project listing was not an array (%s)", response.status_code)
            return []
        return projects

    async def validate_token(self, token: str) -> list[Project] | None:
        response = await self._get("/v1/projects", token=token)
        if response.status_code in (401, 403):
            _LOGGER.info("Stored access token was rejected")
            return None
        return self._projects(self._json(response))

    async def list_api_keys(self, token: str, project_ref: str) -> list[ApiKey]:
        response = await self._get(
            f"/v1/projects/{project_ref}/api-keys",
            token=token,
            params={"reveal": "true"},
        )
        body = self._json(response)
        if isinstance(body, list):
            try:
                return _API_KEYS.validate_python(body)
            except ValidationError as err:
                _LOGGER.warning(
                    "Malformed key listing for %s (%d errors)",
                    project_ref,
                    err.error_count(),
                )
        raise ProjectNotFound(
            f"Failed to fetch API keys for project {project_ref} "
            f"(status {response.status_code})."
        )
