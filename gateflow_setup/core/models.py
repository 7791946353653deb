"""
Core models for the GateFlow setup flow.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from .crypto import PRIVATE_KEY_SIZE, PUBLIC_KEY_SIZE


def _check_hex(value: str, size: int, field: str) -> str:
    try:
        raw = bytes.fromhex(value)
    except ValueError as err:
        raise ValueError(f"{field} is not valid hex") from err
    if len(raw) != size:
        raise ValueError(f"{field} must be {size} bytes, got {len(raw)}")
    return value.lower()


class PendingSession(BaseModel):
    """
    The ephemeral key material for one login attempt, kept between calls.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    session_id: UUID = Field(alias="sessionId")
    private_key: SecretStr = Field(alias="privateKey")  # hex, 32 bytes
    public_key: str = Field(alias="publicKeyHex")  # hex, 65 bytes
    token_name: str = Field(alias="tokenName")

    @field_validator("private_key")
    @classmethod
    def _validate_private_key(cls, value: SecretStr) -> SecretStr:
        return SecretStr(
            _check_hex(value.get_secret_value(), PRIVATE_KEY_SIZE, "privateKey")
        )

    @field_validator("public_key")
    @classmethod
    def _validate_public_key(cls, value: str) -> str:
        value = _check_hex(value, PUBLIC_KEY_SIZE, "publicKeyHex")
        if not value.startswith("04"):
            raise ValueError("publicKeyHex must be an uncompressed point")
        return value

    def get_private_key_bytes(self) -> bytes:
        """
        Returns the raw private key bytes.
        """
        return bytes.fromhex(self.private_key.get_secret_value())

    def to_state(self) -> dict[str, str]:
        """Serialize to the on-disk JSON shape, secret included."""
        return {
            "sessionId": str(self.session_id),
            "privateKey": self.private_key.get_secret_value(),
            "publicKeyHex": self.public_key,
            "tokenName": self.token_name,
        }


class LoginPollResponse(BaseModel):
    """Body of the CLI login poll endpoint; every field hex-encoded."""

    model_config = ConfigDict(extra="ignore")

    access_token: str | None = None
    public_key: str | None = None
    nonce: str | None = None

    @property
    def has_token(self) -> bool:
        return bool(self.access_token)


class Project(BaseModel):
    """A project visible to the bearer token."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""


class ApiKey(BaseModel):
    """One entry of a project's API key listing."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    type: str | None = None
    api_key: str | None = None


class ProjectChoice(BaseModel):
    """More than one project is available; the caller must pick one."""

    projects: list[Project]

    def entries(self) -> list[tuple[int, str, str]]:
        """Return (1-based index, name, id) in upstream order."""
        return [(i, p.name, p.id) for i, p in enumerate(self.projects, start=1)]


class DeployConfig(BaseModel):
    """The deployment configuration written at the end of the flow."""

    platform_url: str
    project_ref: str
    publishable_key: SecretStr
    secret_key: SecretStr
    domain: str
    domain_type: str
