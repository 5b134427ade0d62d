"""
Module: api_harness.http_client

Thin wrapper over :class:`requests.Session` that adds a base URL, a default
timeout, bearer-token handling and request/response logging.

Usage:

    client = HttpClient("https://jsonplaceholder.typicode.com", timeout_ms=30000)
    response = client.get("/posts/1")
    print(response.status, response.data["title"])

Every call returns an :class:`ApiResponse` or raises an :class:`ApiError`
(:class:`TransportError` when no response arrived, :class:`HttpStatusError`
for non-2xx responses). Retries belong to the test runner, not this layer.
"""

from typing import TYPE_CHECKING, Any, Literal

import requests
from requests.structures import CaseInsensitiveDict
from stubs.stub_jsonplaceholder import JsonPlaceholderStubAdapter

from api_harness.common.common import (
    ApiResponse,
    HttpStatusError,
    TransportError,
)
from api_harness.log import get_logger

if TYPE_CHECKING:
    from api_harness.config import HarnessConfig

Method = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}
REDACTED_HEADERS = {"authorization", "x-api-key"}


def build_session(config: "HarnessConfig") -> requests.Session:
    """
    Create the session used for a client.

    When ``config.use_stub`` is set, requests to ``config.base_url`` are served by
    the in-memory JSONPlaceholder stub instead of the network.
    """
    session = requests.Session()
    if config.use_stub:
        session.mount(config.base_url, JsonPlaceholderStubAdapter())
    return session


def _redact(headers: Any) -> dict[str, str]:
    return {
        key: ("***" if key.lower() in REDACTED_HEADERS else value)
        for key, value in headers.items()
    }


def _decode_body(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except requests.JSONDecodeError:
        return response.text


class HttpClient:
    """
    Generic JSON-over-HTTP transport.

    Attributes:
        base_url (str): Prefix joined onto every request path.
        timeout_ms (int): Current timeout for each request, in milliseconds.
    """

    def __init__(
        self,
        base_url: str,
        timeout_ms: int = 30000,
        *,
        session: requests.Session | None = None,
        api_key: str | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_ms = timeout_ms
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)
        if api_key:
            self.session.headers["X-API-Key"] = api_key
        self.logger = get_logger("HttpClient")

    @classmethod
    def from_config(
        cls, config: "HarnessConfig", timeout_ms: int | None = None
    ) -> "HttpClient":
        client = cls(
            config.base_url,
            timeout_ms if timeout_ms is not None else config.timeout_ms,
            session=build_session(config),
            api_key=config.api_key,
        )
        if config.auth_token:
            client.set_auth_token(config.auth_token)
        return client

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: Method,
        path: str,
        body: Any = None,
        params: dict[str, Any] | None = None,
    ) -> ApiResponse:
        """
        Send a request and capture the response.

        Args:
            method: HTTP verb.
            path: Path relative to the base URL (or an absolute URL).
            body: JSON-serialisable payload, sent only when not ``None``.
            params: Query-string parameters.

        Returns:
            ApiResponse: The captured response.

        Raises:
            TransportError: If no response was received.
            HttpStatusError: If the response status is not 2xx.
        """
        url = self._url(path)
        headers = _redact(self.session.headers)

        self.logger.info(f"🔄 {method} {url}")
        self.logger.bind(
            method=method, url=url, params=params, headers=headers, data=body
        ).debug("Request config")

        try:
            response = self.session.request(
                method,
                url,
                json=body,
                params=params,
                timeout=self.timeout_ms / 1000,
            )
        except requests.Timeout as err:
            message = f"timeout of {self.timeout_ms}ms exceeded"
            self.logger.error(f"❌ Network Error: {message}")
            raise TransportError(message) from err
        except requests.RequestException as err:
            self.logger.error(f"❌ Network Error: {err}")
            raise TransportError(str(err)) from err

        data = _decode_body(response)

        try:
            response.raise_for_status()
        except requests.HTTPError as err:
            message = f"Request failed with status code {response.status_code}"
            self.logger.error(f"❌ {response.status_code}: {message}")
            self.logger.bind(
                status=response.status_code,
                statusText=response.reason,
                data=data,
            ).debug("Error details")
            raise HttpStatusError(
                message,
                status=response.status_code,
                status_text=response.reason,
                data=data,
            ) from err

        self.logger.info(f"✅ {response.status_code} {response.reason}")
        self.logger.bind(
            status=response.status_code,
            statusText=response.reason,
            headers=dict(response.headers),
            data=data,
        ).debug("Response")

        return ApiResponse(
            data=data,
            status=response.status_code,
            status_text=response.reason,
            headers=CaseInsensitiveDict(response.headers),
        )

    def get(self, path: str, params: dict[str, Any] | None = None) -> ApiResponse:
        return self.request("GET", path, params=params)

    def post(self, path: str, body: Any = None) -> ApiResponse:
        return self.request("POST", path, body)

    def put(self, path: str, body: Any = None) -> ApiResponse:
        return self.request("PUT", path, body)

    def patch(self, path: str, body: Any = None) -> ApiResponse:
        return self.request("PATCH", path, body)

    def delete(self, path: str) -> ApiResponse:
        return self.request("DELETE", path)

    def set_auth_token(self, token: str) -> None:
        self.session.headers["Authorization"] = f"Bearer {token}"
        self.logger.info("🔐 Auth token set")

    def remove_auth_token(self) -> None:
        self.session.headers.pop("Authorization", None)
        self.logger.info("🔓 Auth token removed")

    def set_timeout(self, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        self.logger.info(f"⏱️ Timeout set to {timeout_ms}ms")
