import pytest

from src.config import Settings
from src.neuro_synapse.conductor import (
    MockConductorClient,
    OrkesConductorClient,
    conductor_mode,
    get_conductor_client,
    register_neuro_synapse_workflow,
    reset_conductor_client,
)
from src.neuro_synapse.definitions import DEFAULT_OWNER_EMAIL, load_workflow_definition

ORKES = dict(orkes_server_url="https://conductor.test/api", orkes_key_id="id", orkes_key_secret="secret")


@pytest.mark.asyncio
async def test_mock_flag_returns_shared_mock_client():
    settings = Settings(use_mock_orkes_client=True, **ORKES)
    client = get_conductor_client(settings)
    assert isinstance(client, MockConductorClient)
    assert get_conductor_client(settings) is client
    assert conductor_mode(settings) == "mock"
    await reset_conductor_client()


@pytest.mark.asyncio
async def test_missing_credentials_fall_back_to_mock():
    settings = Settings(use_mock_orkes_client=False)
    assert isinstance(get_conductor_client(settings), MockConductorClient)
    assert conductor_mode(settings) == "mock"
    await reset_conductor_client()


@pytest.mark.asyncio
async def test_credentials_select_real_client():
    settings = Settings(use_mock_orkes_client=False, **ORKES)
    client = get_conductor_client(settings)
    assert isinstance(client, OrkesConductorClient)
    assert client.server_url == "https://conductor.test/api"
    assert conductor_mode(settings) == "orkes"
    await reset_conductor_client()


def test_load_bundled_workflow_definition():
    workflow_def, task_defs = load_workflow_definition()
    assert workflow_def.name == "neuro_synapse_workflow_v1"
    assert [t["name"] for t in workflow_def.tasks][:2] == ["analyzer_task", "planner_task"]
    assert "taskDefinitions" not in workflow_def.model_dump()
    names = {t.name for t in task_defs}
    assert {"execute_web_search_task", "execute_text_synthesis_task"} <= names
    assert all(t.ownerEmail for t in task_defs)


def test_task_defs_get_default_owner(tmp_path):
    path = tmp_path / "wf.yaml"
    path.write_text("name: custom_wf\ntasks: []\ntaskDefinitions:\n  - name: only_task\n")
    workflow_def, task_defs = load_workflow_definition(str(path))
    assert workflow_def.name == "custom_wf"
    assert task_defs[0].ownerEmail == DEFAULT_OWNER_EMAIL


def test_definition_without_name_is_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("tasks: []\n")
    with pytest.raises(ValueError):
        load_workflow_definition(str(path))


@pytest.mark.asyncio
async def test_register_workflow_with_mock_client():
    client = MockConductorClient()
    workflow_def, task_defs = load_workflow_definition()
    await register_neuro_synapse_workflow(workflow_def, task_defs, client=client)
    assert set(client.task_defs) == {t.name for t in task_defs}
