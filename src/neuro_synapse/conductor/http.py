"""
REST client for an Orkes Conductor server.

`server_url` is the API root (for example `https://play.orkes.io/api`). The
client exchanges the key id/secret for a token, caches it, and retries once
with a fresh token when the server answers 401.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import ConductorError, WorkflowNotFoundError
from .models import TaskDef, Workflow, WorkflowDef

logger = logging.getLogger(__name__)


class _WorkflowResource:
    def __init__(self, client: "OrkesConductorClient"):
        self._client = client

    async def start_workflow(self, name: str, input: Dict[str, Any], version: Optional[int] = None) -> str:
        params = {"version": version} if version is not None else None
        resp = await self._client.request("POST", f"/workflow/{name}", json=input or {}, params=params)
        return resp.text.strip().strip('"')

    async def get_workflow(self, workflow_id: str, include_tasks: bool = False) -> Workflow:
        resp = await self._client.request(
            "GET",
            f"/workflow/{workflow_id}",
            params={"includeTasks": str(include_tasks).lower()},
            not_found_ok=True,
        )
        if resp.status_code == 404:
            raise WorkflowNotFoundError(workflow_id, data=resp.text)
        return Workflow.model_validate(resp.json())


class _MetadataResource:
    def __init__(self, client: "OrkesConductorClient"):
        self._client = client

    async def register_task_defs(self, task_defs: List[TaskDef]) -> Dict[str, Any]:
        payload = [td.model_dump(exclude_none=True) for td in task_defs]
        await self._client.request("POST", "/metadata/taskdefs", json=payload)
        return {"success": True, "message": "Task definitions registered."}

    async def update_workflow_defs(self, workflow_defs: List[WorkflowDef]) -> Dict[str, Any]:
        payload = [wd.model_dump(exclude_none=True) for wd in workflow_defs]
        await self._client.request("PUT", "/metadata/workflow", json=payload)
        return {"success": True, "message": "Workflow definitions registered/updated."}

    async def get_workflow_def(self, name: str, version: Optional[int] = None) -> Optional[WorkflowDef]:
        params = {"version": version} if version is not None else None
        resp = await self._client.request("GET", f"/metadata/workflow/{name}", params=params, not_found_ok=True)
        if resp.status_code == 404:
            return None
        return WorkflowDef.model_validate(resp.json())

    async def get_task_def(self, task_def_name: str) -> Optional[TaskDef]:
        resp = await self._client.request("GET", f"/metadata/taskdefs/{task_def_name}", not_found_ok=True)
        if resp.status_code == 404:
            return None
        return TaskDef.model_validate(resp.json())


class OrkesConductorClient:
    def __init__(
        self,
        server_url: str,
        key_id: str,
        key_secret: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not server_url or not key_id or not key_secret:
            raise ValueError("server_url, key_id and key_secret are required")
        self.server_url = server_url.rstrip("/")
        self._key_id = key_id
        self._key_secret = key_secret
        self._token: Optional[str] = None
        self._http = httpx.AsyncClient(base_url=self.server_url, timeout=timeout, transport=transport)
        self.workflow_resource = _WorkflowResource(self)
        self.metadata_resource = _MetadataResource(self)

    async def _fetch_token(self) -> str:
        try:
            resp = await self._http.post("/token", json={"keyId": self._key_id, "keySecret": self._key_secret})
        except httpx.HTTPError as e:
            raise ConductorError(f"Token request failed: {e}") from e
        if resp.status_code >= 400:
            raise ConductorError("Token request rejected", status=resp.status_code, body=resp.text)
        token = resp.json().get("token")
        if not token:
            raise ConductorError("Token response did not contain a token", status=resp.status_code, body=resp.text)
        self._token = token
        return token

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        not_found_ok: bool = False,
    ) -> httpx.Response:
        token = self._token or await self._fetch_token()
        resp = await self._send(method, path, token, json, params)
        if resp.status_code == 401:
            logger.info("Conductor token rejected, refreshing")
            token = await self._fetch_token()
            resp = await self._send(method, path, token, json, params)

        if resp.status_code == 404 and not_found_ok:
            return resp
        if resp.status_code >= 400:
            raise ConductorError(
                f"{method} {path} failed with status {resp.status_code}",
                status=resp.status_code,
                body=resp.text,
            )
        return resp

    async def _send(self, method: str, path: str, token: str, json: Any,
                    params: Optional[Dict[str, Any]]) -> httpx.Response:
        try:
            return await self._http.request(
                method, path, json=json, params=params, headers={"X-Authorization": token}
            )
        except httpx.HTTPError as e:
            raise ConductorError(f"{method} {path} failed: {e}") from e

    async def aclose(self) -> None:
        await self._http.aclose()
