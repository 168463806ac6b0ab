"""Camunda Client — httpx-based WorkflowEngine against the Camunda 7 REST API.

Invariants:
    - Every transport failure (connection, timeout, non-2xx) raised as WorkflowEngineError
    - No retries: callers decide whether to retry
    - Task listings are returned as plain lists; HAL payloads (_embedded.tasks / _embedded.task)
      are unwrapped here
    - Response bodies are never included in raised messages (only status codes)

Design Decisions:
    - Single AsyncClient per process, closed on shutdown via aclose()
    - An injected httpx.AsyncClient is accepted so tests can use httpx.MockTransport
"""

import logging
from typing import Any

import httpx

from workflow_model.core.errors import WorkflowEngineError

logger = logging.getLogger(__name__)


def _extract_tasks(payload: Any) -> list[dict]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        embedded = payload.get("_embedded") or {}
        return list(embedded.get("tasks") or embedded.get("task") or [])
    return []


class CamundaClient:
    """WorkflowEngine implementation for the Camunda engine-rest API."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout_seconds,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict | None = None,
        json: dict | None = None,
    ) -> Any:
        try:
            response = await self.client.request(method, path, params=params, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.error(f"Workflow engine {method} {path} returned {status_code}")
            raise WorkflowEngineError(
                f"{method} {path} returned HTTP {status_code}", status_code=status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Workflow engine {method} {path} failed: {e!r}")
            raise WorkflowEngineError(f"{method} {path} failed") from e

        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise WorkflowEngineError(f"{method} {path} returned invalid JSON") from e

    async def start_process(self, key: str, business_key: str) -> dict:
        data = await self._request(
            "POST", f"/process-definition/key/{key}/start",
            json={"businessKey": business_key},
        )
        logger.debug(f"Started process [{key}] for business key [{business_key}]")
        return data or {}

    async def list_process_instances(
        self, business_key: str, process_definition_key: str,
    ) -> list[dict]:
        data = await self._request(
            "GET", "/process-instance",
            params={
                "businessKey": business_key,
                "processDefinitionKey": process_definition_key,
            },
        )
        return data or []

    async def delete_process_instance(self, process_instance_id: str) -> None:
        await self._request("DELETE", f"/process-instance/{process_instance_id}")

    async def list_tasks(self, process_instance_business_key: str) -> list[dict]:
        data = await self._request(
            "GET", "/task",
            params={"processInstanceBusinessKey": process_instance_business_key},
        )
        return _extract_tasks(data)

    async def complete_task(self, task_id: str, variables: dict | None = None) -> None:
        body = {"variables": variables} if variables else {}
        await self._request("POST", f"/task/{task_id}/complete", json=body)

    async def health_check(self) -> bool:
        try:
            await self._request("GET", "/engine")
            return True
        except WorkflowEngineError:
            return False
