"""The GateFlow setup tool."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Final

from .config import SetupSettings
from .const import CONF_PROJECT_REF, CONF_VERIFICATION_CODE, TOOL_NAME
from .core.key_exchange import open_in_browser
from .core.platform_interface import PlatformInterface
from .core.stores import FileSessionStore, FileTokenStore, SessionStore, TokenStore
from .flow import FlowResult, GateflowSetupFlow
from .platform_client import SupabasePlatformClient

_LOGGER = logging.getLogger(__name__)

TOOL_DEFINITION: Final[dict[str, Any]] = {
    "name": TOOL_NAME,
    "description": (
        "Configure GateFlow deployment credentials (Supabase keys) securely, "
        "without exposing secrets in the conversation.\n\n"
        "This is a multi-step tool:\n"
        "  1. Call with no params: opens browser for Supabase login, returns instructions\n"
        "  2. Call with verification_code: exchanges code for token, returns project list\n"
        "  3. Call with project_ref: fetches API keys and saves config to "
        "~/.config/gateflow/deploy-config.env\n\n"
        "The only user input needed in conversation is a one-time verification "
        "code (not a secret) and project selection."
    ),
    "inputSchema": {
        "type": "object",
        "properties": {
            CONF_VERIFICATION_CODE: {
                "type": "string",
                "description": (
                    "8-character verification code from the Supabase login page. "
                    "Only needed in step 2."
                ),
            },
            CONF_PROJECT_REF: {
                "type": "string",
                "description": (
                    "Supabase project reference ID. Only needed in step 3 "
                    "(from the project list returned in step 2)."
                ),
            },
        },
    },
}

__all__ = [
    "TOOL_DEFINITION",
    "FlowResult",
    "GateflowSetupFlow",
    "SetupSettings",
    "async_setup_gateflow",
]


async def async_setup_gateflow(
    args: dict[str, Any] | None = None,
    settings: SetupSettings | None = None,
    *,
    platform: PlatformInterface | None = None,
    session_store: SessionStore | None = None,
    token_store: TokenStore | None = None,
    open_browser: Callable[[str], bool] = open_in_browser,
) -> FlowResult:
    """Run one call of the setup flow.

    Any collaborator left as None is built from ``settings``.
    """
    settings = settings or SetupSettings.from_env()
    session_store = session_store or FileSessionStore(settings.session_state_path)
    token_store = token_store or FileTokenStore(settings.token_path)

    owned_client: SupabasePlatformClient | None = None
    if platform is None:
        owned_client = SupabasePlatformClient(settings.api_url, settings.http_timeout)
        platform = owned_client

    flow = GateflowSetupFlow(
        platform=platform,
        session_store=session_store,
        token_store=token_store,
        deploy_config_path=settings.deploy_config_path,
        dashboard_url=settings.dashboard_url,
        open_browser=open_browser,
    )
    try:
        result = await flow.async_handle(args)
    finally:
        if owned_client is not None:
            await owned_client.aclose()

    _LOGGER.debug("Setup call finished at step %s (error=%s)", result.step_id, result.is_error)
    return result
