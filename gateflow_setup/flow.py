"""Step dispatch for the GateFlow setup flow."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import voluptuous as schemas

from .const import CONF_PROJECT_REF, CONF_VERIFICATION_CODE, TOOL_NAME
from .core.key_exchange import KeyExchangeInitiator, TokenExchanger, open_in_browser
from .core.models import DeployConfig, Project, ProjectChoice
from .core.platform_interface import PlatformInterface
from .core.protocol import format_project_list
from .core.provisioning import ConfigMaterializer, ProjectResolver
from .core.stores import SessionStore, TokenStore
from .exceptions import GateflowSetupError, InvalidArguments, MissingToken

_LOGGER = logging.getLogger(__name__)

_OPTIONAL_TEXT = schemas.Any(None, schemas.All(str, schemas.Strip))

# Platform project refs are lowercase alphanumerics; blank is dropped later
_PROJECT_REF = schemas.Any(
    None,
    schemas.All(
        str,
        schemas.Strip,
        schemas.Match(
            r"^[a-z0-9]*$", msg="project_ref must be lowercase letters and digits"
        ),
    ),
)

ARGS_SCHEMA = schemas.Schema(
    {
        schemas.Optional(CONF_VERIFICATION_CODE): _OPTIONAL_TEXT,
        schemas.Optional(CONF_PROJECT_REF): _PROJECT_REF,
    }
)

STEP_START = "start"
STEP_EXCHANGE = "exchange"
STEP_PROJECT = "project"
STEP_CONFIGURED = "configured"


@dataclass(frozen=True)
class FlowResult:
    """Human-readable outcome of one call."""

    step_id: str
    text: str
    is_error: bool = False


def validate_args(user_input: dict[str, Any] | None) -> dict[str, str]:
    """Validate tool arguments, dropping blank values.

    Raises:
        InvalidArguments: If the input does not match ``ARGS_SCHEMA``.
    """
    try:
        args = ARGS_SCHEMA(user_input or {})
    except schemas.Invalid as err:
        raise InvalidArguments(f"Invalid arguments: {err}") from err
    return {key: value for key, value in args.items() if value}


class GateflowSetupFlow:
    """Handle one call of the setup flow.

    No step is remembered between calls: which step runs is derived from the
    arguments and from which files exist.
    """

    def __init__(
        self,
        platform: PlatformInterface,
        session_store: SessionStore,
        token_store: TokenStore,
        deploy_config_path: Path,
        dashboard_url: str,
        open_browser: Callable[[str], bool] = open_in_browser,
    ) -> None:
        self._token_store = token_store
        self._deploy_config_path = deploy_config_path
        self._initiator = KeyExchangeInitiator(session_store, dashboard_url, open_browser)
        self._exchanger = TokenExchanger(session_store, token_store, platform)
        self._resolver = ProjectResolver(platform)
        self._materializer = ConfigMaterializer(
            platform, deploy_config_path, session_store
        )

    async def async_handle(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Run whichever step the arguments and local state call for."""
        try:
            args = validate_args(user_input)
        except InvalidArguments as err:
            return FlowResult(step_id=STEP_START, text=err.describe(), is_error=True)

        if code := args.get(CONF_VERIFICATION_CODE):
            # A fresh login supersedes any cached token or config
            return await self._run(
                STEP_EXCHANGE, lambda: self.async_step_exchange(code)
            )
        if project_ref := args.get(CONF_PROJECT_REF):
            return await self._run(
                STEP_PROJECT, lambda: self.async_step_project(project_ref)
            )
        if self._deploy_config_path.exists():
            return self.async_step_configured()
        return await self._run(STEP_START, self.async_step_start)

    async def _run(
        self, step_id: str, step: Callable[[], Awaitable[FlowResult]]
    ) -> FlowResult:
        try:
            return await step()
        except GateflowSetupError as err:
            _LOGGER.info(
                "Step %s failed with %s (retryable=%s)",
                step_id,
                type(err).__name__,
                err.retryable,
            )
            return FlowResult(step_id=step_id, text=err.describe(), is_error=True)

    async def async_step_start(self) -> FlowResult:
        """Reuse a stored token if the platform still accepts it, else start a login."""
        if token := self._token_store.load():
            resolution = await self._resolver.resolve_cached(token)
            if resolution is not None:
                _LOGGER.info("Reusing stored access token")
                return await self._async_finish(
                    STEP_START, token, resolution, "Found existing Supabase token."
                )
            _LOGGER.info("Stored access token is no longer valid, starting a new login")

        started = self._initiator.start()
        opened = (
            "Opening browser for Supabase login..."
            if started.browser_opened
            else "Could not open a browser for Supabase login."
        )
        return FlowResult(
            step_id=STEP_START,
            text=(
                f"{opened}\n\n"
                f"If the browser didn't open, tell the user to open this URL:\n{started.url}\n\n"
                "After logging in, the user will see an 8-character verification code.\n"
                "Ask them for the code, then call:\n"
                f'{TOOL_NAME}(verification_code="<the_code>")'
            ),
        )

    async def async_step_exchange(self, verification_code: str) -> FlowResult:
        """Exchange the code, then resolve the project."""
        token = await self._exchanger.exchange(verification_code)
        resolution = await self._resolver.resolve(token)
        return await self._async_finish(
            STEP_EXCHANGE, token, resolution, "Supabase login successful!"
        )

    async def async_step_project(self, project_ref: str) -> FlowResult:
        """Write the deploy config for an explicitly chosen project."""
        token = self._token_store.load()
        if not token:
            raise MissingToken("No Supabase token found.")
        config = await self._materializer.materialize(token, project_ref)
        return self._saved(STEP_PROJECT, config)

    def async_step_configured(self) -> FlowResult:
        """Report an existing deploy config instead of starting over."""
        return FlowResult(
            step_id=STEP_CONFIGURED,
            text=(
                f"GateFlow config already exists at {self._deploy_config_path}.\n"
                "To reconfigure, delete the file and run this tool again.\n"
                'You can now deploy with: deploy_app(app_name="gateflow")'
            ),
        )

    async def _async_finish(
        self,
        step_id: str,
        token: str,
        resolution: Project | ProjectChoice,
        intro: str,
    ) -> FlowResult:
        if isinstance(resolution, Project):
            _LOGGER.info("Single project %s, selecting it", resolution.id)
            config = await self._materializer.materialize(token, resolution.id)
            return self._saved(step_id, config)

        return FlowResult(
            step_id=step_id,
            text=(
                f"{intro} Found {len(resolution.projects)} projects:\n\n"
                f"{format_project_list(resolution)}\n\n"
                "Ask the user which project to use for GateFlow, then call:\n"
                f'{TOOL_NAME}(project_ref="<selected_project_id>")'
            ),
        )

    def _saved(self, step_id: str, config: DeployConfig) -> FlowResult:
        return FlowResult(
            step_id=step_id,
            text=(
                f"GateFlow configuration saved to {self._materializer.path}\n\n"
                f"Project: {config.project_ref}\n"
                f"Supabase URL: {config.platform_url}\n\n"
                'You can now deploy with: deploy_app(app_name="gateflow", '
                'domain_type="cytrus", domain="auto")'
            ),
        )
