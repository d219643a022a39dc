"""httpx-backed client for the back-office REST API."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from logifin.domain.errors import LogifinError

__all__ = ["ApiClient", "ApiError"]

_LOGGER = logging.getLogger(__name__)


class ApiError(LogifinError):
    """REST call failure; ``message`` is the server's text when it sent one."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message if status_code is None else f"HTTP {status_code}: {message}")
        self.message = message
        self.status_code = status_code


class ApiClient:
    """Thin wrapper unwrapping the ``{success, data, message}`` envelope.

    GET requests are retried on transport errors and 5xx responses. POST
    requests are sent once.
    """

    def __init__(
        self,
        *,
        base_url: str,
        token: str | None = None,
        timeout: float = 30,
        max_retries: int = 3,
        retry_wait_seconds: float = 0.5,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") or "http://localhost:8000/api"
        self._max_retries = max(1, max_retries)
        self._retry_wait = max(0.0, retry_wait_seconds)
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.Client(base_url=self._base_url, timeout=timeout, headers=headers)

    def close(self) -> None:
        self._client.close()

    def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        """Return the ``data`` member of the envelope for a GET request."""

        payload = self._with_retries(lambda: self._send("GET", path, params=dict(params or {})))
        return payload.get("data") if isinstance(payload, Mapping) and "data" in payload else payload

    def post(self, path: str, json: Mapping[str, Any]) -> dict[str, Any]:
        """Return the whole envelope for a POST request."""

        try:
            payload = self._send("POST", path, json=dict(json))
        except httpx.HTTPStatusError as exc:
            raise ApiError(_server_message(exc.response), exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            raise ApiError(f"{type(exc).__name__}: {exc}") from exc
        if not isinstance(payload, dict):
            raise ApiError("Unexpected response payload")
        return payload

    def _with_retries(self, call) -> Any:
        retrying = Retrying(
            stop=stop_after_attempt(self._max_retries),
            wait=wait_fixed(self._retry_wait),
            retry=retry_if_exception_type(httpx.HTTPError),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    return call()
        except httpx.HTTPStatusError as exc:
            raise ApiError(_server_message(exc.response), exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            raise ApiError(f"{type(exc).__name__}: {exc}") from exc
        raise ApiError("Request was not attempted")  # pragma: no cover - safety

    def _send(self, method: str, path: str, **kwargs: Any) -> Any:
        _LOGGER.debug("%s %s", method, path)
        response = self._client.request(method, path, **kwargs)
        if response.status_code >= 500:
            response.raise_for_status()
        if response.status_code >= 400:
            raise ApiError(_server_message(response), response.status_code)
        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiError(f"Invalid JSON from {path}", response.status_code) from exc
        if isinstance(payload, Mapping) and payload.get("success") is False and method == "GET":
            raise ApiError(str(payload.get("message") or "Request failed"), response.status_code)
        return payload


def _server_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, Mapping) and payload.get("message"):
        return str(payload["message"])
    return response.reason_phrase
