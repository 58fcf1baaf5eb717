"""Tellescope REST API backend.

Each resource type gets a ``RestResource`` exposing ``fetch_one`` and
``fetch_page``. Requests are made with a shared ``requests.Session`` on
anyio's worker threads so that a slow round trip suspends only the call
waiting on it.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from functools import partial
from typing import Any
from urllib.parse import quote

import anyio.to_thread
import requests

from ..logger import get_logger
from .backend import CapabilityTable, PageQuery
from .catalog import ResourceType

DEFAULT_API_HOST = "https://api.tellescope.com"
DEFAULT_TIMEOUT_SECONDS = 30.0

_log = get_logger("tellescope_mcp.gateway.rest")


class BackendRequestError(RuntimeError):
    """The API answered with a non-success status."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {message}")


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or response.reason or "request failed"
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if isinstance(message, dict):
            message = message.get("message")
        if message:
            return str(message)
    return json.dumps(body)


def _encode_param(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"))


class RestClient:
    """Authenticated session against the Tellescope REST API."""

    def __init__(
        self,
        api_key: str,
        host: str = DEFAULT_API_HOST,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = host.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"API_KEY {api_key}",
                "Accept": "application/json",
            }
        )

    def get(self, path: str, params: dict[str, str] | None = None) -> Any:
        """GET ``/v1/<path>`` and return the decoded JSON body."""
        url = f"{self.base_url}/v1/{path.lstrip('/')}"
        response = self._session.get(url, params=params, timeout=self.timeout)
        if not response.ok:
            raise BackendRequestError(response.status_code, _error_message(response))
        return response.json()

    async def aget(self, path: str, params: dict[str, str] | None = None) -> Any:
        return await anyio.to_thread.run_sync(partial(self.get, path, params))

    def close(self) -> None:
        self._session.close()


class RestResource:
    """Fetch operations for one resource type."""

    def __init__(self, client: RestClient, resource: ResourceType) -> None:
        self._client = client
        self._resource = resource

    @property
    def name(self) -> str:
        return self._resource.name

    async def fetch_one(self, id: str) -> Any:
        return await self._client.aget(f"{self._resource.item}/{quote(id, safe='')}")

    async def fetch_page(self, query: PageQuery) -> Any:
        params: dict[str, str] = {}
        for key, value in query.items():
            # lastId is the API's name for the page cursor
            params["lastId" if key == "cursor" else key] = _encode_param(value)
        _log.debug(
            f"Fetching page of {self._resource.name}",
            extra={"event": "backend_fetch_page", "resource": self._resource.name, "params": params},
        )
        return await self._client.aget(self._resource.collection, params)


def build_capability_table(client: RestClient, resources: Sequence[ResourceType]) -> CapabilityTable:
    return CapabilityTable({resource.name: RestResource(client, resource) for resource in resources})
