from __future__ import annotations

import logging
from typing import Any

import httpx

from app.application.exceptions import RepositoryUnavailableError


class SupabaseHTTPError(RuntimeError):
    """A 4xx answer from the PostgREST API (bad request, constraint violation, ...)."""

    def __init__(self, message: str, status_code: int, code: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class SupabaseClient:
    """Thin async client for the Supabase PostgREST endpoint (/rest/v1/<table>)."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("SUPABASE_URL is required for the Supabase backend")
        if not api_key:
            raise ValueError("SUPABASE_API_KEY is required for the Supabase backend")
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            timeout=timeout,
            transport=transport,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
        )
        self._logger = logging.getLogger(__name__)

    async def close(self) -> None:
        await self._client.aclose()

    async def select(self, table: str, params: dict[str, Any] | list[tuple[str, str]]) -> list[dict[str, Any]]:
        return await self._request("GET", table, params=params)

    async def insert(self, table: str, payload: dict[str, Any]) -> list[dict[str, Any]]:
        return await self._request(
            "POST",
            table,
            json=payload,
            headers={"Prefer": "return=representation"},
        )

    async def update(self, table: str, params: dict[str, Any], payload: dict[str, Any]) -> list[dict[str, Any]]:
        return await self._request(
            "PATCH",
            table,
            params=params,
            json=payload,
            headers={"Prefer": "return=representation"},
        )

    async def delete(self, table: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        return await self._request(
            "DELETE",
            table,
            params=params,
            headers={"Prefer": "return=representation"},
        )

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Any = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        try:
            response = await self._client.request(method, f"/{table}", params=params, json=json, headers=headers)
        except httpx.RequestError as exc:
            self._logger.error("Supabase unreachable", extra={"table": table, "reason": str(exc)})
            raise RepositoryUnavailableError("Booking backend is unreachable", cause=exc) from exc

        if response.status_code >= 500:
            self._logger.error(
                "Supabase server error",
                extra={"table": table, "status": response.status_code},
            )
            raise RepositoryUnavailableError(f"Booking backend returned {response.status_code}")

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                code = body.get("code")
                message = body.get("message") or response.text
            else:
                code = None
                message = response.text
            self._logger.warning(
                "Supabase rejected request",
                extra={"table": table, "status": response.status_code, "error_code": code},
            )
            raise SupabaseHTTPError(message, response.status_code, code)

        if not response.content:
            return []
        data = response.json()
        if isinstance(data, dict):
            return [data]
        return list(data)
