"""Tests for project resolution and deploy config materialization."""

import stat

import pytest

from conftest import FakePlatform, MemorySessionStore, make_session
from gateflow_setup.core.models import ApiKey, Project, ProjectChoice
from gateflow_setup.core.provisioning import ConfigMaterializer, ProjectResolver
from gateflow_setup.exceptions import EmptyProjectList, MissingRequiredKeys


@pytest.mark.asyncio
async def test_resolver_auto_selects_single_project():
    platform = FakePlatform(projects=[Project(id="proj-1", name="Only")])

    resolution = await ProjectResolver(platform).resolve("sbp_token")

    assert resolution == Project(id="proj-1", name="Only")


@pytest.mark.asyncio
async def test_resolver_empty_listing():
    with pytest.raises(EmptyProjectList):
        await ProjectResolver(FakePlatform(projects=[])).resolve("sbp_token")


@pytest.mark.asyncio
async def test_resolver_returns_every_project_in_upstream_order():
    projects = [Project(id=f"ref-{i}", name=f"Project {i}") for i in (3, 1, 2)]

    resolution = await ProjectResolver(FakePlatform(projects=projects)).resolve("t")

    assert isinstance(resolution, ProjectChoice)
    assert [entry[2] for entry in resolution.entries()] == ["ref-3", "ref-1", "ref-2"]
    assert [entry[0] for entry in resolution.entries()] == [1, 2, 3]


@pytest.mark.asyncio
async def test_resolve_cached_rejected_token():
    platform = FakePlatform(projects=[Project(id="p", name="P")], token_valid=False)

    assert await ProjectResolver(platform).resolve_cached("stale") is None


@pytest.mark.asyncio
async def test_materializer_writes_owner_only_config(tmp_path):
    path = tmp_path / "gateflow" / "deploy-config.env"
    session_store = MemorySessionStore(make_session())
    platform = FakePlatform()

    config = await ConfigMaterializer(platform, path, session_store).materialize(
        "sbp_token", "proj-1"
    )

    text = path.read_text()
    assert config.platform_url == "https://proj-1.supabase.co"
    assert 'SUPABASE_URL="https://proj-1.supabase.co"' in text
    assert 'PROJECT_REF="proj-1"' in text
    assert 'SUPABASE_ANON_KEY="anon-key-value"' in text
    assert 'SUPABASE_SERVICE_KEY="service-key-value"' in text
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    assert platform.calls == [("list_api_keys", "sbp_token", "proj-1")]
    assert session_store.load() is None


@pytest.mark.parametrize(
    "keys",
    [
        [ApiKey(name="anon", api_key="anon-key-value")],
        [ApiKey(name="service_role", api_key="service-key-value")],
    ],
    ids=["publishable-only", "secret-only"],
)
@pytest.mark.asyncio
async def test_materializer_missing_role_writes_nothing(tmp_path, keys):
    path = tmp_path / "deploy-config.env"
    materializer = ConfigMaterializer(FakePlatform(api_keys=keys), path)

    with pytest.raises(MissingRequiredKeys) as excinfo:
        await materializer.materialize("sbp_token", "proj-1")

    assert not path.exists()
    assert "Project Settings" in excinfo.value.guidance
