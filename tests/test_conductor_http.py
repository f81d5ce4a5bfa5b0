import json

import httpx
import pytest

from src.neuro_synapse.conductor import OrkesConductorClient, TaskDef, WorkflowDef
from src.neuro_synapse.errors import ConductorError, WorkflowNotFoundError

SERVER = "https://conductor.test/api"


class FakeConductor:
    """Records requests and answers like a minimal Conductor REST API."""

    def __init__(self, reject_first: bool = False):
        self.requests = []
        self.tokens_issued = 0
        self.reject_first = reject_first

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/token":
            self.tokens_issued += 1
            return httpx.Response(200, json={"token": f"tok{self.tokens_issued}"})
        if self.reject_first and request.headers.get("X-Authorization") == "tok1":
            return httpx.Response(401, json={"message": "expired"})
        if path == "/api/workflow/neuro_synapse_workflow_v1" and request.method == "POST":
            return httpx.Response(200, text="wf_123")
        if path == "/api/workflow/wf_123":
            return httpx.Response(200, json={
                "workflowId": "wf_123",
                "status": "COMPLETED",
                "output": {"finalAnswer": {"synthesizedAnswer": "done"}},
                "tasks": [{"taskReferenceName": "analyzer_ref", "taskDefName": "analyzer_task", "status": "COMPLETED"}],
            })
        if path == "/api/workflow/boom":
            return httpx.Response(500, text="server exploded")
        if path.startswith("/api/metadata/"):
            if request.method == "GET":
                return httpx.Response(404, text="not found")
            return httpx.Response(200, json={})
        return httpx.Response(404, text="no such workflow")


def _client(fake: FakeConductor) -> OrkesConductorClient:
    return OrkesConductorClient(SERVER, "key", "secret", transport=httpx.MockTransport(fake))


@pytest.mark.asyncio
async def test_start_and_get_workflow_with_cached_token():
    fake = FakeConductor()
    client = _client(fake)
    try:
        wf_id = await client.workflow_resource.start_workflow("neuro_synapse_workflow_v1", {"mainPrompt": "hi"})
        assert wf_id == "wf_123"

        wf = await client.workflow_resource.get_workflow(wf_id, include_tasks=True)
        assert wf.status == "COMPLETED"
        assert wf.tasks[0].taskReferenceName == "analyzer_ref"

        assert fake.tokens_issued == 1
        token_request = fake.requests[0]
        assert json.loads(token_request.content) == {"keyId": "key", "keySecret": "secret"}
        start_request = fake.requests[1]
        assert start_request.headers["X-Authorization"] == "tok1"
        assert json.loads(start_request.content) == {"mainPrompt": "hi"}
        assert fake.requests[2].url.params["includeTasks"] == "true"
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_expired_token_is_refreshed_once():
    fake = FakeConductor(reject_first=True)
    client = _client(fake)
    try:
        wf = await client.workflow_resource.get_workflow("wf_123")
        assert wf.workflowId == "wf_123"
        assert fake.tokens_issued == 2
        assert fake.requests[-1].headers["X-Authorization"] == "tok2"
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_missing_workflow_raises_not_found():
    client = _client(FakeConductor())
    try:
        with pytest.raises(WorkflowNotFoundError) as exc_info:
            await client.workflow_resource.get_workflow("unknown")
        assert exc_info.value.data == "no such workflow"
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_server_error_raises_conductor_error():
    client = _client(FakeConductor())
    try:
        with pytest.raises(ConductorError) as exc_info:
            await client.workflow_resource.get_workflow("boom")
        assert exc_info.value.status == 500
        assert exc_info.value.body == "server exploded"
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_rejected_token_request_raises():
    def handler(request):
        return httpx.Response(403, text="bad key")

    client = OrkesConductorClient(SERVER, "key", "secret", transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(ConductorError) as exc_info:
            await client.workflow_resource.start_workflow("wf", {})
        assert exc_info.value.status == 403
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_metadata_calls():
    fake = FakeConductor()
    client = _client(fake)
    try:
        await client.metadata_resource.update_workflow_defs([WorkflowDef(name="wf", ownerEmail="a@b.c")])
        await client.metadata_resource.register_task_defs([TaskDef(name="t", ownerEmail="a@b.c")])
        assert await client.metadata_resource.get_workflow_def("wf") is None
        assert await client.metadata_resource.get_task_def("t") is None

        update, register = fake.requests[1], fake.requests[2]
        assert (update.method, update.url.path) == ("PUT", "/api/metadata/workflow")
        assert json.loads(update.content)[0]["name"] == "wf"
        assert (register.method, register.url.path) == ("POST", "/api/metadata/taskdefs")
    finally:
        await client.aclose()


def test_credentials_are_required():
    with pytest.raises(ValueError):
        OrkesConductorClient(SERVER, "", "secret")
