"""Durable single-slot stores for the pending session and the bearer token."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import stat
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError

from ..exceptions import PersistenceFailure
from .models import PendingSession

_LOGGER = logging.getLogger(__name__)


def write_private_file(path: Path, content: str) -> None:
    """Atomically write ``content`` to ``path`` readable only by the owner.

    Raises:
        PersistenceFailure: If the directory or file cannot be written.
    """
    temp_path = path.with_name(f".{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.parent.chmod(stat.S_IRWXU)  # 0700

        # Create the temp file 0600 up front so the secret is never world-readable
        fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        temp_path.chmod(stat.S_IRUSR | stat.S_IWUSR)
        temp_path.replace(path)
    except OSError as err:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise PersistenceFailure(f"Could not write {path}: {err}") from err


class SessionStore(ABC):
    """Abstract single-slot store for the pending login session."""

    @abstractmethod
    def save(self, session: PendingSession) -> None:
        """Persist ``session``, replacing any previous one."""

    @abstractmethod
    def load(self) -> PendingSession | None:
        """Return the pending session, or None if there is none."""

    @abstractmethod
    def clear(self) -> None:
        """Forget the pending session. Idempotent."""


class TokenStore(ABC):
    """Abstract store for the long-lived bearer token.

    The file implementation can be swapped for an OS secret store without
    changing callers.
    """

    @abstractmethod
    def load(self) -> str | None:
        """Return the stored token, or None."""

    @abstractmethod
    def save(self, token: str) -> None:
        """Persist ``token``, overwriting the previous value."""


class FileSessionStore(SessionStore):
    """Pending session kept as JSON at a fixed per-user path."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def save(self, session: PendingSession) -> None:
        write_private_file(self._path, json.dumps(session.to_state()))
        _LOGGER.debug("Saved pending session %s to %s", session.session_id, self._path)

    def load(self) -> PendingSession | None:
        if not self._path.exists():
            return None
        try:
            return PendingSession.model_validate_json(
                self._path.read_text(encoding="utf-8")
            )
        except (OSError, UnicodeDecodeError, ValidationError) as err:
            # Only the error type is logged; the message could echo key material
            _LOGGER.warning(
                "Ignoring unreadable session state at %s (%s)",
                self._path,
                type(err).__name__,
            )
            return None

    def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as err:
            raise PersistenceFailure(f"Could not remove {self._path}: {err}") from err
        _LOGGER.debug("Cleared pending session state at %s", self._path)


class FileTokenStore(TokenStore):
    """Bearer token kept as plain text, owner-only."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> str | None:
        try:
            token = self._path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as err:
            _LOGGER.warning(
                "Could not read token file %s (%s)", self._path, type(err).__name__
            )
            return None
        return token or None

    def save(self, token: str) -> None:
        write_private_file(self._path, token)
        _LOGGER.info("Saved access token to %s", self._path)
