"""Errors raised by the GateFlow setup flow.

Every error carries ``guidance``: the next step the operator should take.
Only :mod:`gateflow_setup.flow` turns these into result text.
"""

from __future__ import annotations

from .const import PROJECTS_DASHBOARD_URL, TOKENS_DASHBOARD_URL, TOOL_NAME

RESTART_GUIDANCE = f"Start over by calling {TOOL_NAME}() again (with no parameters)."


class GateflowSetupError(Exception):
    """Base class for setup flow failures."""

    retryable = False
    guidance = RESTART_GUIDANCE

    def __init__(self, message: str, *, guidance: str | None = None) -> None:
        super().__init__(message)
        if guidance is not None:
            self.guidance = guidance

    def describe(self) -> str:
        """Return the message followed by the next-step guidance."""
        return f"{self}\n{self.guidance}"


class InvalidArguments(GateflowSetupError):
    """Tool arguments did not match the expected schema."""

    guidance = (
        "Pass at most one of verification_code or project_ref, as strings. "
        "project_ref is the project id from the list (lowercase letters and digits)."
    )


class NoPendingSession(GateflowSetupError):
    """A verification code arrived but no login session is pending."""


class CodeInvalidOrExpired(GateflowSetupError):
    """The platform did not hand out a token for the verification code."""


class TransportFailure(GateflowSetupError):
    """The platform could not be reached or timed out."""

    retryable = True
    guidance = "This looks temporary. Check network access and try the same call again."


class DecryptionFailed(GateflowSetupError):
    """The sealed token could not be authenticated or decrypted."""

    guidance = (
        "Fallback: ask the user to create a Personal Access Token manually:\n"
        f"1. Open: {TOKENS_DASHBOARD_URL}\n"
        '2. Click "Generate new token"\n'
        "3. Create the config file ~/.config/gateflow/deploy-config.env manually\n"
        "   (see deploy_app tool for the required format)"
    )


class EmptyProjectList(GateflowSetupError):
    """The account has no projects to configure."""

    guidance = (
        "The user needs to create a Supabase project first at "
        f"{PROJECTS_DASHBOARD_URL}"
    )


class ProjectNotFound(GateflowSetupError):
    """API keys could not be fetched for the project reference."""

    guidance = "Check that the project exists and the reference is spelled correctly."


class MissingRequiredKeys(GateflowSetupError):
    """The project does not expose both a publishable and a secret key."""

    guidance = "Check Supabase Dashboard → Project Settings → API."


class MissingToken(GateflowSetupError):
    """A project reference arrived but no bearer token is stored."""


class PersistenceFailure(GateflowSetupError):
    """A local file could not be written or removed."""

    guidance = "Check permissions on ~/.config and try again."
