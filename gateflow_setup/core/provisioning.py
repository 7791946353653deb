"""Project selection and deploy config materialization."""

from __future__ import annotations

import logging
from pathlib import Path

from ..const import DEFAULT_DOMAIN, DEFAULT_DOMAIN_TYPE
from ..exceptions import EmptyProjectList
from .models import DeployConfig, Project, ProjectChoice
from .platform_interface import PlatformInterface
from .protocol import project_url, render_deploy_config, select_api_keys
from .stores import SessionStore, write_private_file

_LOGGER = logging.getLogger(__name__)


def choose_project(projects: list[Project]) -> Project | ProjectChoice:
    """Collapse a project listing into a single pick or an ordered choice.

    Raises:
        EmptyProjectList: If there is nothing to choose from.
    """
    if not projects:
        raise EmptyProjectList("No projects found for this account.")
    if len(projects) == 1:
        return projects[0]
    return ProjectChoice(projects=projects)


class ProjectResolver:
    """Lists the account's projects and picks one when there is no choice to make."""

    def __init__(self, platform: PlatformInterface) -> None:
        self._platform = platform

    async def resolve(self, token: str) -> Project | ProjectChoice:
        projects = await self._platform.list_projects(token)
        _LOGGER.debug("Account has %d project(s)", len(projects))
        return choose_project(projects)

    async def resolve_cached(self, token: str) -> Project | ProjectChoice | None:
        """Like :meth:`resolve`, but None if the platform rejects ``token``."""
        projects = await self._platform.validate_token(token)
        if projects is None:
            return None
        return choose_project(projects)


class ConfigMaterializer:
    """Writes the deploy config for a project.

    Unconditional: the caller decides whether an existing config may be
    replaced.
    """

    def __init__(
        self,
        platform: PlatformInterface,
        deploy_config_path: Path,
        session_store: SessionStore | None = None,
    ) -> None:
        self._platform = platform
        self._path = deploy_config_path
        self._session_store = session_store

    @property
    def path(self) -> Path:
        return self._path

    async def materialize(self, token: str, project_ref: str) -> DeployConfig:
        """Fetch the project's keys and write the deploy config.

        Raises:
            ProjectNotFound: If the platform returned no key listing.
            MissingRequiredKeys: If either key role is missing; nothing is written.
            PersistenceFailure: If the file cannot be written.
        """
        keys = await self._platform.list_api_keys(token, project_ref)
        publishable, secret = select_api_keys(keys)

        config = DeployConfig(
            platform_url=project_url(project_ref),
            project_ref=project_ref,
            publishable_key=publishable,
            secret_key=secret,
            domain=DEFAULT_DOMAIN,
            domain_type=DEFAULT_DOMAIN_TYPE,
        )
        write_private_file(self._path, render_deploy_config(config))
        _LOGGER.info("Wrote deploy config for project %s to %s", project_ref, self._path)

        # A finished setup leaves no half-done login behind
        if self._session_store is not None:
            self._session_store.clear()
        return config
