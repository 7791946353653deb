from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from urllib.parse import urlencode

from ..const import TOKEN_NAME_PREFIX
from ..exceptions import MissingRequiredKeys
from .models import ApiKey, DeployConfig, PendingSession, ProjectChoice

_LOGGER = logging.getLogger(__name__)

# Legacy listings name the keys; newer ones tag them by type and name them "default"
_LEGACY_PUBLISHABLE_NAME = "anon"
_LEGACY_SECRET_NAME = "service_role"
_TYPED_KEY_NAME = "default"


def make_token_name(now: float | None = None) -> str:
    """Build a timestamp-qualified token label so repeated logins don't collide."""
    millis = int((time.time() if now is None else now) * 1000)
    return f"{TOKEN_NAME_PREFIX}{millis}"


def build_authorization_url(dashboard_url: str, session: PendingSession) -> str:
    """Build the browser URL the user opens to approve the login."""
    query = urlencode(
        {
            "session_id": str(session.session_id),
            "token_name": session.token_name,
            "public_key": session.public_key,
        }
    )
    return f"{dashboard_url}/dashboard/cli/login?{query}"


def project_url(project_ref: str) -> str:
    """Return the API URL derived from a project reference."""
    return f"https://{project_ref}.supabase.co"


def _is_publishable(key: ApiKey) -> bool:
    return (
        key.type == "publishable" and key.name == _TYPED_KEY_NAME
    ) or key.name == _LEGACY_PUBLISHABLE_NAME


def _is_secret(key: ApiKey) -> bool:
    return (
        key.type == "secret" and key.name == _TYPED_KEY_NAME
    ) or key.name == _LEGACY_SECRET_NAME


def select_api_keys(keys: Iterable[ApiKey]) -> tuple[str, str]:
    """Pick the publishable and secret key values from a key listing.

    Returns:
        A ``(publishable, secret)`` tuple.

    Raises:
        MissingRequiredKeys: If either role is absent or has no value.
    """
    publishable = ""
    secret = ""
    for key in keys:
        if not key.api_key:
            continue
        if _is_publishable(key):
            publishable = key.api_key
        if _is_secret(key):
            secret = key.api_key

    missing = [
        role
        for role, value in (("anon", publishable), ("service_role", secret))
        if not value
    ]
    if missing:
        _LOGGER.debug("Key listing lacks roles: %s", ", ".join(missing))
        raise MissingRequiredKeys(
            f"Could not find {'/'.join(missing)} key for this project."
        )
    return publishable, secret


def render_deploy_config(config: DeployConfig) -> str:
    """Render the deploy config as the env-style file deploy scripts source."""
    lines = [
        "# GateFlow Deploy Configuration",
        "# Generated by MCP setup_gateflow_config",
        "",
        f'SUPABASE_URL="{config.platform_url}"',
        f'PROJECT_REF="{config.project_ref}"',
        f'SUPABASE_ANON_KEY="{config.publishable_key.get_secret_value()}"',
        f'SUPABASE_SERVICE_KEY="{config.secret_key.get_secret_value()}"',
        "",
        "# Domain (auto = Cytrus subdomain)",
        f'DOMAIN="{config.domain}"',
        f'DOMAIN_TYPE="{config.domain_type}"',
    ]
    return "\n".join(lines) + "\n"


def format_project_list(choice: ProjectChoice) -> str:
    """Render the choice as a numbered list in upstream order."""
    return "\n".join(
        f"  {index}. {name} ({project_id})"
        for index, name, project_id in choice.entries()
    )
