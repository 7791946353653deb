"""Ephemeral key exchange for the platform's CLI device login.

Step one generates a P-256 key pair and hands the public half to the
platform through the authorization URL. Step two polls with the code the
user relays back and opens the token the platform sealed to that key.
A pending session is single-use: step two clears it once the platform answers.
"""

from __future__ import annotations

import logging
import uuid
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass

from ..exceptions import (
    CodeInvalidOrExpired,
    DecryptionFailed,
    NoPendingSession,
    TransportFailure,
)
from .crypto import (
    generate_key_pair,
    get_private_key_bytes,
    load_private_key,
    open_sealed_token,
)
from .models import LoginPollResponse, PendingSession
from .platform_interface import PlatformInterface
from .protocol import build_authorization_url, make_token_name
from .stores import SessionStore, TokenStore

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginStarted:
    """Result of step one: what the user needs to continue."""

    session_id: uuid.UUID
    url: str
    browser_opened: bool


def open_in_browser(url: str) -> bool:
    """Best-effort open of ``url`` in the default handler."""
    try:
        return webbrowser.open(url)
    except webbrowser.Error as err:
        _LOGGER.debug("Could not open browser: %s", err)
        return False


class KeyExchangeInitiator:
    """Starts a login by creating and persisting a fresh pending session."""

    def __init__(
        self,
        session_store: SessionStore,
        dashboard_url: str,
        open_browser: Callable[[str], bool] = open_in_browser,
    ) -> None:
        self._session_store = session_store
        self._dashboard_url = dashboard_url
        self._open_browser = open_browser

    def start(self) -> LoginStarted:
        private_key, public_key_bytes = generate_key_pair()
        session = PendingSession(
            session_id=uuid.uuid4(),
            private_key=get_private_key_bytes(private_key).hex(),
            public_key=public_key_bytes.hex(),
            token_name=make_token_name(),
        )

        # Overwrites any earlier session; its id can no longer be exchanged
        self._session_store.save(session)
        _LOGGER.info("Started login session %s", session.session_id)

        url = build_authorization_url(self._dashboard_url, session)
        try:
            opened = bool(self._open_browser(url))
        except Exception as err:  # pylint: disable=broad-except
            _LOGGER.debug("Browser opener failed: %s", err)
            opened = False

        return LoginStarted(session_id=session.session_id, url=url, browser_opened=opened)


class TokenExchanger:
    """Trades a verification code for the bearer token sealed to the session key."""

    def __init__(
        self,
        session_store: SessionStore,
        token_store: TokenStore,
        platform: PlatformInterface,
    ) -> None:
        self._session_store = session_store
        self._token_store = token_store
        self._platform = platform

    async def exchange(self, verification_code: str) -> str:
        """Exchange ``verification_code`` and persist the resulting token.

        Returns:
            The decrypted bearer token.

        Raises:
            NoPendingSession: No session was started; nothing is sent.
            CodeInvalidOrExpired: The platform issued no token.
            DecryptionFailed: The sealed token did not authenticate.
            TransportFailure: The platform could not be reached; the session is kept.
        """
        session = self._session_store.load()
        if session is None:
            raise NoPendingSession("No pending login session.")

        try:
            response = await self._platform.poll_login(
                session.session_id, verification_code
            )
        except TransportFailure:
            # No answer from the platform: the session stays usable for a retry
            _LOGGER.info("Kept session %s after transport failure", session.session_id)
            raise

        try:
            if not response.has_token:
                _LOGGER.info("No token issued for session %s", session.session_id)
                raise CodeInvalidOrExpired(
                    "Failed to get token. The verification code may be incorrect or expired."
                )
            token = self._open(session, response)
            self._token_store.save(token)
        finally:
            self._session_store.clear()

        _LOGGER.info("Exchanged verification code for session %s", session.session_id)
        return token

    @staticmethod
    def _open(session: PendingSession, response: LoginPollResponse) -> str:
        try:
            server_public_key = bytes.fromhex(response.public_key or "")
            nonce = bytes.fromhex(response.nonce or "")
            sealed = bytes.fromhex(response.access_token or "")
        except ValueError as err:
            raise DecryptionFailed("Login response is not valid hex.") from err

        if not server_public_key or not nonce:
            raise DecryptionFailed("Login response lacks the server key or nonce.")

        try:
            private_key = load_private_key(session.get_private_key_bytes())
        except ValueError as err:
            raise DecryptionFailed("Stored session key is not a usable P-256 key.") from err

        try:
            return open_sealed_token(private_key, server_public_key, nonce, sealed)
        except DecryptionFailed:
            _LOGGER.warning(
                "Failed to decrypt token for session %s", session.session_id
            )
            raise
