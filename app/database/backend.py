"""
Hosted backend client

Thin async client for the external hosted backend:
- REST tables (PostgREST conventions: /rest/v1/<table>?column=eq.value)
- Serverless functions (/functions/v1/<name>)

All persistence, deduplication and notification fan-out lives behind this
boundary. Calls never retry here; callers wrap them with retry_async.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import get_backend_url, get_backend_key, get_backend_timeout

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Transport or HTTP failure reported by the hosted backend"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str:
    """
    Extract the backend's error message from a failed response

    Serverless functions answer {"success": false, "error": "..."};
    the REST layer answers {"message": "..."}.
    """
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("error", "message", "msg", "details"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"


class HostedBackendClient:
    """
    Async client for the hosted backend

    Args:
        base_url: Project URL, without trailing slash
        api_key: Public (anon) key sent as 'apikey' header
        access_token: Optional user token; defaults to the api key
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: Optional[str],
        api_key: Optional[str],
        access_token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.api_key = api_key
        self.access_token = access_token
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key or "",
            "Authorization": f"Bearer {self.access_token or self.api_key or ''}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        if not self.is_configured:
            raise BackendError("Hosted backend is not configured (BACKEND_URL / BACKEND_ANON_KEY)")

        url = f"{self.base_url}{path}"
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException:
            raise BackendError(f"Timeout calling hosted backend: {method} {path}")
        except httpx.HTTPError as e:
            raise BackendError(f"Error calling hosted backend: {method} {path}: {e}")

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(f"Hosted backend returned {response.status_code} for {method} {path}: {message}")
            raise BackendError(message, status_code=response.status_code)
        return response

    async def invoke(self, function_name: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Invoke a serverless function

        Returns:
            Parsed JSON body of a successful call

        Raises:
            BackendError: HTTP failure, or a body with success == false
        """
        response = await self._request("POST", f"/functions/v1/{function_name}", json=body)
        try:
            data = response.json()
        except ValueError:
            return {}
        if isinstance(data, dict) and data.get("success") is False:
            raise BackendError(str(data.get("error") or "Function call failed"), status_code=response.status_code)
        return data if isinstance(data, dict) else {"data": data}

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert one row and return its stored representation
        """
        response = await self._request(
            "POST",
            f"/rest/v1/{table}",
            json=row,
            headers={"Prefer": "return=representation"},
        )
        try:
            data = response.json()
        except ValueError:
            return {}
        if isinstance(data, list):
            return data[0] if data else {}
        return data

    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        columns: str = "*",
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Select rows matching equality filters

        Args:
            table: Table name
            filters: column -> value, combined with AND (eq.)
            columns: Comma-separated column list
            order: Ordering clause, e.g. 'created_at.asc'
            limit: Maximum number of rows
        """
        params: Dict[str, Any] = {"select": columns}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit

        response = await self._request("GET", f"/rest/v1/{table}", params=params)
        data = response.json()
        return data if isinstance(data, list) else [data]


_backend: Optional[HostedBackendClient] = None


def get_backend() -> HostedBackendClient:
    """
    Shared backend client built from environment configuration

    Used as a FastAPI dependency; tests override it.
    """
    global _backend
    if _backend is None:
        _backend = HostedBackendClient(
            base_url=get_backend_url(),
            api_key=get_backend_key(),
            timeout=get_backend_timeout(),
        )
    return _backend
