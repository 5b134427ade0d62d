"""
Shared lightweight types and the error taxonomy used across the harness.
"""

from dataclasses import dataclass, field
from typing import Any, TypeAlias

from requests.structures import CaseInsensitiveDict

# Values stored in the per-scenario test data bag. Callers are responsible for
# keeping the type stored under a given key coherent between steps.
TestValue: TypeAlias = (
    str | int | float | bool | None | list["TestValue"] | dict[str, "TestValue"]
)


@dataclass(frozen=True)
class ApiResponse:
    """
    A captured HTTP response.

    :param data: Parsed JSON body, the raw text if the body is not JSON, or
        ``None`` for an empty body.
    :param status: HTTP status code.
    :param status_text: HTTP reason phrase (e.g. ``"OK"``, ``"Created"``).
    :param headers: Response headers, looked up case-insensitively.
    """

    data: Any
    status: int
    status_text: str
    headers: CaseInsensitiveDict[str] = field(default_factory=CaseInsensitiveDict)

    @property
    def content_type(self) -> str | None:
        return self.headers.get("Content-Type")

    @property
    def is_successful(self) -> bool:
        return 200 <= self.status < 300


@dataclass
class ApiError(Exception):
    """
    Raised when an HTTP call does not produce a successful response.

    One instance is produced for each failed call. Action steps record it in the
    execution context and re-raise it so the scenario fails.

    :param message: Human-readable error message.
    :param status: HTTP status code, if a response was received.
    :param status_text: HTTP reason phrase, if a response was received.
    :param data: Parsed response body, if a response was received.
    """

    message: str
    status: int | None = None
    status_text: str | None = None
    data: Any = None

    def __str__(self) -> str:
        return self.message


class TransportError(ApiError):
    """
    The request failed before any response was received (connection refused,
    DNS failure, timeout).
    """


class HttpStatusError(ApiError):
    """
    A response was received but its status code was outside the 2xx range.
    """


class ConfigurationError(Exception):
    """
    Raised when the startup configuration is invalid. Aborts the whole run
    before any scenario executes.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(
            "Configuration validation failed:\n" + "\n".join(errors)
        )


@dataclass
class ScenarioTimeoutError(Exception):
    """
    Raised when a single step runs longer than the configured step timeout.

    :param step: Text of the step that overran.
    :param limit_ms: Configured limit in milliseconds.
    :param elapsed_ms: Measured duration in milliseconds.
    """

    step: str
    limit_ms: int
    elapsed_ms: int

    def __str__(self) -> str:
        return (
            f"Step '{self.step}' took {self.elapsed_ms}ms, "
            f"exceeding the {self.limit_ms}ms timeout"
        )
