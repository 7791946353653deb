"""Interface for the remote platform's management API."""

from abc import ABC, abstractmethod
from uuid import UUID

from .models import ApiKey, LoginPollResponse, Project


class PlatformInterface(ABC):
    """Abstract base class for platform API clients."""

    @abstractmethod
    async def poll_login(
        self, session_id: UUID, device_code: str
    ) -> LoginPollResponse:
        """Poll the CLI login endpoint once.

        Args:
            session_id: The pending session identifier.
            device_code: The verification code the user relayed.

        Returns:
            The parsed response; ``has_token`` is False when no token was issued.
        """

    @abstractmethod
    async def list_projects(self, token: str) -> list[Project]:
        """List projects visible to the bearer token, in upstream order."""

    @abstractmethod
    async def validate_token(self, token: str) -> list[Project] | None:
        """List projects, or return None if the platform rejects the token."""

    @abstractmethod
    async def list_api_keys(self, token: str, project_ref: str) -> list[ApiKey]:
        """Fetch the revealed API keys of a project.

        Args:
            token: The bearer token.
            project_ref: The project reference id.
        """
