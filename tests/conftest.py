"""Shared fixtures and fakes for the GateFlow setup tests."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from uuid import UUID

import pytest

from gateflow_setup.core import crypto
from gateflow_setup.core.models import ApiKey, LoginPollResponse, PendingSession, Project
from gateflow_setup.core.platform_interface import PlatformInterface
from gateflow_setup.core.stores import SessionStore, TokenStore

# Fixed scalars, both well below the P-256 group order
CLIENT_PRIVATE_KEY = bytes.fromhex("11" * 32)
SERVER_PRIVATE_KEY = bytes.fromhex("22" * 32)
NONCE = bytes(range(12))
TOKEN_PLAINTEXT = "sbp_0123456789abcdef0123456789abcdef01234567"

LEGACY_KEYS = [
    ApiKey(name="anon", api_key="anon-key-value"),
    ApiKey(name="service_role", api_key="service-key-value"),
]


def make_session(private_key: bytes = CLIENT_PRIVATE_KEY) -> PendingSession:
    key = crypto.load_private_key(private_key)
    return PendingSession(
        session_id=uuid.UUID("6f1c2c3e-8a51-4d8e-9a57-3b2a8f4e1d00"),
        private_key=private_key.hex(),
        public_key=crypto.get_public_key_bytes(key).hex(),
        token_name="mikrus_mcp_1700000000000",
    )


def seal_token(
    client_public_key_hex: str,
    plaintext: str = TOKEN_PLAINTEXT,
    server_private_key: bytes = SERVER_PRIVATE_KEY,
    nonce: bytes = NONCE,
) -> LoginPollResponse:
    """Build the poll response the platform sends for a given client key."""
    server_key = crypto.load_private_key(server_private_key)
    shared_secret = crypto.compute_shared_secret(
        server_key, bytes.fromhex(client_public_key_hex)
    )
    sealed = crypto.aes_gcm_encrypt(shared_secret, nonce, plaintext.encode("utf-8"))
    return LoginPollResponse(
        access_token=sealed.hex(),
        public_key=crypto.get_public_key_bytes(server_key).hex(),
        nonce=nonce.hex(),
    )


class MemorySessionStore(SessionStore):
    def __init__(self, session: PendingSession | None = None) -> None:
        self.session = session
        self.saves = 0
        self.clears = 0

    def save(self, session: PendingSession) -> None:
        self.session = session
        self.saves += 1

    def load(self) -> PendingSession | None:
        return self.session

    def clear(self) -> None:
        self.session = None
        self.clears += 1


class MemoryTokenStore(TokenStore):
    def __init__(self, token: str | None = None) -> None:
        self.token = token

    def load(self) -> str | None:
        return self.token

    def save(self, token: str) -> None:
        self.token = token


class FakePlatform(PlatformInterface):
    """Records every call; answers from canned data."""

    def __init__(
        self,
        projects: list[Project] | None = None,
        api_keys: list[ApiKey] | None = None,
        token_valid: bool = True,
    ) -> None:
        self.projects = projects if projects is not None else []
        self.api_keys = api_keys if api_keys is not None else list(LEGACY_KEYS)
        self.token_valid = token_valid
        self.poll_response: LoginPollResponse = LoginPollResponse()
        self.on_poll: Callable[[UUID, str], LoginPollResponse] | None = None
        self.poll_error: Exception | None = None
        self.calls: list[tuple[str, ...]] = []

    async def poll_login(self, session_id: UUID, device_code: str) -> LoginPollResponse:
        self.calls.append(("poll_login", str(session_id), device_code))
        if self.poll_error is not None:
            raise self.poll_error
        if self.on_poll is not None:
            return self.on_poll(session_id, device_code)
        return self.poll_response

    async def list_projects(self, token: str) -> list[Project]:
        self.calls.append(("list_projects", token))
        return list(self.projects)

    async def validate_token(self, token: str) -> list[Project] | None:
        self.calls.append(("validate_token", token))
        return list(self.projects) if self.token_valid else None

    async def list_api_keys(self, token: str, project_ref: str) -> list[ApiKey]:
        self.calls.append(("list_api_keys", token, project_ref))
        return list(self.api_keys)


@pytest.fixture
def pending_session() -> PendingSession:
    return make_session()


@pytest.fixture
def session_store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def token_store() -> MemoryTokenStore:
    return MemoryTokenStore()


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()
