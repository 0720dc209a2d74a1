"""Task storage on the hosted Postgres database via its PostgREST API."""

import logging
from typing import Any, Protocol

import httpx

from ..models.task import Task
from .errors import StoreError

logger = logging.getLogger(__name__)

TASKS_TABLE = "tasks"


class TaskStore(Protocol):
    """Row-level task operations, always scoped to an owning user."""

    async def insert(self, user_id: str, row: dict[str, Any]) -> Task: ...

    async def update(self, user_id: str, task_id: str, patch: dict[str, Any]) -> Task | None: ...

    async def delete(self, user_id: str, task_id: str) -> None: ...

    async def query(
        self,
        user_id: str,
        *,
        order: str = "created_at.desc",
        limit: int | None = None,
        filters: dict[str, str] | None = None,
    ) -> list[Task]: ...

    async def full_text_search(self, user_id: str, field: str, text: str) -> list[Task]: ...


class PostgrestClient:
    """Thin async client for a PostgREST endpoint authenticated with a service key."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            base_url: Project URL, e.g. "https://xyz.supabase.co"
            service_key: Service-role API key
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        if not base_url:
            raise ValueError("Database URL is not configured. Set TASK_INTENT_SUPABASE_URL.")
        self.rest_url = base_url.rstrip("/") + "/rest/v1"
        self.timeout = timeout
        self._transport = transport
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
        }

    async def request(
        self,
        method: str,
        table: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        """Send a request to a table endpoint and return the decoded body."""
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers=headers,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method, f"{self.rest_url}/{table}", params=params, json=json
                )
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise StoreError(f"Database request timeout on {table}: {e}") from e
        except httpx.HTTPStatusError as e:
            raise StoreError(
                f"Database error {e.response.status_code} on {table}: {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise StoreError(f"Database request failed on {table}: {e}") from e

        if not response.content:
            return None
        return response.json()


class SupabaseTaskStore:
    """TaskStore backed by the hosted database's `tasks` table."""

    def __init__(self, client: PostgrestClient):
        self.client = client

    async def insert(self, user_id: str, row: dict[str, Any]) -> Task:
        """Insert one task row for the user and return the stored row."""
        payload = {**row, "user_id": user_id}
        rows = await self.client.request(
            "POST", TASKS_TABLE, json=[payload], prefer="return=representation"
        )
        if not rows:
            raise StoreError("Insert returned no row")
        logger.info(f"Inserted task for user {user_id}: {payload.get('summary')}")
        return Task.model_validate(rows[0])

    async def update(self, user_id: str, task_id: str, patch: dict[str, Any]) -> Task | None:
        """Patch one of the user's tasks; returns None if it does not exist."""
        rows = await self.client.request(
            "PATCH",
            TASKS_TABLE,
            params={"id": f"eq.{task_id}", "user_id": f"eq.{user_id}"},
            json=patch,
            prefer="return=representation",
        )
        return Task.model_validate(rows[0]) if rows else None

    async def delete(self, user_id: str, task_id: str) -> None:
        """Delete one of the user's tasks."""
        await self.client.request(
            "DELETE",
            TASKS_TABLE,
            params={"id": f"eq.{task_id}", "user_id": f"eq.{user_id}"},
        )

    async def query(
        self,
        user_id: str,
        *,
        order: str = "created_at.desc",
        limit: int | None = None,
        filters: dict[str, str] | None = None,
    ) -> list[Task]:
        """Read the user's tasks with optional PostgREST filters."""
        params = dict(filters or {})
        params.update({"select": "*", "order": order, "user_id": f"eq.{user_id}"})
        if limit is not None:
            params["limit"] = str(limit)
        rows = await self.client.request("GET", TASKS_TABLE, params=params)
        return [Task.model_validate(r) for r in rows or []]

    async def full_text_search(self, user_id: str, field: str, text: str) -> list[Task]:
        """Web-search style full-text match on one column of the user's tasks."""
        params = {
            "select": "*",
            field: f"wfts(english).{text}",
            "user_id": f"eq.{user_id}",
        }
        rows = await self.client.request("GET", TASKS_TABLE, params=params)
        return [Task.model_validate(r) for r in rows or []]
