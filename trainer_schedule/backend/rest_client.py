"""
HTTP client for the hosted backend's PostgREST API.

Table reads and writes go to ``{url}/rest/v1/{table}`` and RPC functions to
``{url}/rest/v1/rpc/{function}``. Every failure is turned into a
BackendError so callers handle one exception type.
"""

import logging
from typing import Any, Mapping, Optional, Union

import httpx

from trainer_schedule.backend.base import Filters, Ordering, Row
from trainer_schedule.backend.errors import NO_ROWS_CODE, BackendError, NotFoundError
from trainer_schedule.config import settings

logger = logging.getLogger(__name__)

SINGLE_OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"


def _encode_value(value: Any) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


def _filter_params(filters: Optional[Filters]) -> dict[str, str]:
    return {column: _encode_value(value) for column, value in (filters or {}).items()}


def _order_param(order: Optional[Ordering]) -> Optional[str]:
    if not order:
        return None
    return ",".join(f"{column}.{'asc' if ascending else 'desc'}" for column, ascending in order)


class SupabaseRestClient:
    """RemoteStore implementation backed by ``httpx.Client``."""

    def __init__(
        self,
        url: str,
        api_key: str,
        timeout: float = 10.0,
        access_token: Optional[str] = None,
        client_info: str = "trainer-schedule/1.0.0",
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self._api_key = api_key
        self._access_token = access_token
        self._client = httpx.Client(
            base_url=f"{self.url}/rest/v1",
            timeout=timeout,
            transport=transport,
            headers={
                "apikey": api_key,
                "X-Client-Info": client_info,
                "Accept": "application/json",
            },
        )

    @classmethod
    def from_settings(cls, access_token: Optional[str] = None) -> "SupabaseRestClient":
        """Build a client from the configured backend settings."""
        backend = settings.backend
        return cls(
            url=backend.url,
            api_key=backend.anon_key,
            timeout=backend.request_timeout_sec,
            access_token=access_token,
            client_info=backend.client_info,
        )

    def set_access_token(self, access_token: Optional[str]) -> None:
        """Act as a signed-in user (row-level security sees their uid)."""
        self._access_token = access_token

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token or self._api_key}"}

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, str]] = None,
        json: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        merged = self._auth_headers()
        merged.update(headers or {})
        try:
            response = self._client.request(
                method, path, params=params, json=json, headers=merged
            )
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise BackendError(f"Network request failed: {exc}") from exc

        if response.status_code >= 400:
            self._raise_for_error(method, path, response)
        return response

    @staticmethod
    def _raise_for_error(method: str, path: str, response: httpx.Response) -> None:
        message = response.text or response.reason_phrase
        code = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message") or message
            code = body.get("code")

        logger.error(
            "%s %s returned %d: %s (code %s)", method, path, response.status_code, message, code
        )
        if code == NO_ROWS_CODE:
            raise NotFoundError(message, status=response.status_code)
        raise BackendError(message, code=code, status=response.status_code)

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BackendError(
                "Malformed JSON in response", status=response.status_code
            ) from exc

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Filters] = None,
        order: Optional[Ordering] = None,
        single: bool = False,
    ) -> Union[Row, list[Row]]:
        params = {"select": columns, **_filter_params(filters)}
        ordering = _order_param(order)
        if ordering:
            params["order"] = ordering
        headers = {"Accept": SINGLE_OBJECT_MEDIA_TYPE} if single else None
        response = self._request("GET", f"/{table}", params=params, headers=headers)
        data = self._json(response)
        if single:
            return data or {}
        return data or []

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        response = self._request(
            "POST",
            f"/{table}",
            json=dict(row),
            headers={"Prefer": "return=representation"},
        )
        data = self._json(response) or []
        return data[0] if isinstance(data, list) and data else (data or {})

    def update(self, table: str, values: Mapping[str, Any], filters: Filters) -> list[Row]:
        if not filters:
            raise ValueError("update() requires at least one filter")
        response = self._request(
            "PATCH",
            f"/{table}",
            params=_filter_params(filters),
            json=dict(values),
            headers={"Prefer": "return=representation"},
        )
        return self._json(response) or []

    def delete(self, table: str, filters: Filters) -> list[Row]:
        if not filters:
            raise ValueError("delete() requires at least one filter")
        response = self._request(
            "DELETE",
            f"/{table}",
            params=_filter_params(filters),
            headers={"Prefer": "return=representation"},
        )
        return self._json(response) or []

    def rpc(self, function: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        response = self._request("POST", f"/rpc/{function}", json=dict(params or {}))
        return self._json(response)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "SupabaseRestClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
