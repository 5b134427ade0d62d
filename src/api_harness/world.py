"""
The per-scenario execution context.

A :class:`World` holds everything one scenario attempt accumulates: the last
captured response, the last captured error, a free-form test data bag and any
timers. A fresh instance is built by :meth:`World.create` for every attempt,
so nothing leaks between scenarios or between retries of the same scenario.
"""

import time
from typing import TYPE_CHECKING, Any, Literal

from api_harness.common.common import ApiError, ApiResponse, TestValue
from api_harness.http_client import HttpClient
from api_harness.log import get_logger, log_assertion
from api_harness.placeholder_client import JsonPlaceholderClient

if TYPE_CHECKING:
    from api_harness.config import HarnessConfig

LAST_RESPONSE_KEY = "lastResponse"
LAST_ERROR_KEY = "lastError"


class TimerNotStartedError(Exception):
    """Raised when a timer is read before it was started."""


def _now_ms() -> int:
    return time.monotonic_ns() // 1_000_000


class World:
    """
    Mutable state for one scenario attempt.

    Attributes:
        base_url (str): API base URL, preserved across :meth:`cleanup`.
        timeout_ms (int): Default request timeout, preserved across :meth:`cleanup`.
        client (JsonPlaceholderClient): Resource client for this scenario.
        last_response (ApiResponse | None): Most recent successful call.
        last_error (ApiError | None): Most recent failed call.
        last_outcome: Which of the two slots was written most recently.
        test_data (dict[str, TestValue]): Caller-defined key/value bag.
    """

    def __init__(self, config: "HarnessConfig", client: JsonPlaceholderClient) -> None:
        self.config = config
        self.base_url = config.base_url
        self.timeout_ms = config.timeout_ms
        self.client = client
        self.logger = get_logger("World")

        self.last_response: ApiResponse | None = None
        self.last_error: ApiError | None = None
        self.last_outcome: Literal["response", "error"] | None = None
        self.test_data: dict[str, TestValue | Any] = {}
        self._timers: dict[str, int] = {}

        self.logger.bind(baseUrl=self.base_url, timeout=self.timeout_ms).info(
            "🌍 World initialized"
        )

    @classmethod
    def create(cls, config: "HarnessConfig") -> "World":
        """Build a world with its own client and transport."""
        return cls(config, JsonPlaceholderClient(HttpClient.from_config(config)))

    # ---- test data ----

    def set_test_data(self, key: str, value: TestValue | Any) -> None:
        self.test_data[key] = value
        self.logger.bind(value=value).debug(f"💾 Set test data: {key}")

    def get_test_data(self, key: str, default: Any = None) -> Any:
        value = self.test_data.get(key, default)
        self.logger.bind(value=value).debug(f"📖 Get test data: {key}")
        return value

    def clear_test_data(self) -> None:
        self.test_data = {}
        self.logger.info("🧹 Cleared all test data")

    # ---- responses and errors ----

    def set_last_response(self, response: ApiResponse) -> None:
        """
        Record a successful call.

        ``last_error`` from an earlier call is left untouched; use
        :attr:`last_outcome` to tell which slot is current.
        """
        self.last_response = response
        self.last_outcome = "response"
        self.set_test_data(LAST_RESPONSE_KEY, response)
        self.logger.bind(status=response.status, statusText=response.status_text).debug(
            "📥 Set last response"
        )

    def set_last_error(self, error: ApiError) -> None:
        """Record a failed call. ``last_response`` is left untouched."""
        self.last_error = error
        self.last_outcome = "error"
        self.set_test_data(LAST_ERROR_KEY, error)
        self.logger.bind(message=error.message, status=error.status).debug(
            "❌ Set last error"
        )

    def require_response(self) -> ApiResponse:
        """Return the last response, failing the scenario if there is none."""
        response = self.last_response
        self.assert_not_null(response, "Response has not been set")
        return response  # type: ignore[return-value]

    # ---- timing ----

    def wait_for(self, milliseconds: int) -> None:
        time.sleep(milliseconds / 1000)

    def start_timer(self, label: str) -> None:
        self._timers[label] = _now_ms()

    def end_timer(self, label: str) -> int:
        """
        Read a timer and return the milliseconds since it was started.

        The duration is also stored as ``duration_<label>``. Timers survive
        :meth:`clear_test_data`; only :meth:`cleanup` forgets them.

        :raises TimerNotStartedError: If ``label`` was never started in the
            current lifetime of this world.
        """
        started = self._timers.get(label)
        if started is None:
            raise TimerNotStartedError(f"Timer {label} was not started")

        duration = max(0, _now_ms() - started)
        self.set_test_data(f"duration_{label}", duration)
        self.logger.info(f"⏱️ {label} took {duration}ms")
        return duration

    # ---- assertions ----

    def assert_equal(
        self, actual: Any, expected: Any, message: str | None = None
    ) -> None:
        passed = actual == expected and isinstance(actual, bool) == isinstance(
            expected, bool
        )
        description = message or f"Expected {expected!r}, but got {actual!r}"
        log_assertion(self.logger, description, passed, expected, actual)
        if not passed:
            raise AssertionError(description)

    def assert_not_null(self, value: Any, message: str | None = None) -> None:
        passed = value is not None
        description = message or "Value should not be null"
        log_assertion(self.logger, description, passed, "not null", value)
        if not passed:
            raise AssertionError(description)

    def assert_array(self, value: Any, message: str | None = None) -> None:
        passed = isinstance(value, list)
        description = message or "Value should be an array"
        log_assertion(self.logger, description, passed, "array", type(value).__name__)
        if not passed:
            raise AssertionError(description)

    def assert_array_length(
        self, value: Any, expected_length: int, message: str | None = None
    ) -> None:
        self.assert_array(value)
        passed = len(value) == expected_length
        description = (
            message
            or f"Array should have length {expected_length}, but has {len(value)}"
        )
        log_assertion(self.logger, description, passed, expected_length, len(value))
        if not passed:
            raise AssertionError(description)

    def assert_array_not_empty(self, value: Any, message: str | None = None) -> None:
        self.assert_array(value)
        passed = len(value) > 0
        description = message or "Array should not be empty"
        log_assertion(self.logger, description, passed, "> 0", len(value))
        if not passed:
            raise AssertionError(description)

    def assert_status_code(self, expected_status: int) -> None:
        actual = self.last_response.status if self.last_response else None
        passed = actual == expected_status
        log_assertion(
            self.logger,
            f"Status code should be {expected_status}",
            passed,
            expected_status,
            actual,
        )
        if not passed:
            raise AssertionError(f"Expected status {expected_status}, but got {actual}")

    # ---- diagnostics ----

    def log_current_context(self) -> None:
        self.logger.bind(
            baseUrl=self.base_url,
            timeout=self.timeout_ms,
            lastResponseStatus=(
                self.last_response.status if self.last_response else None
            ),
            lastErrorMessage=self.last_error.message if self.last_error else None,
            testDataKeys=sorted(self.test_data),
        ).info("📋 Current test context")

    def log_last_response(self) -> None:
        response = self.last_response
        if response is None:
            self.logger.warning("📥 No response available")
            return
        self.logger.bind(
            status=response.status,
            statusText=response.status_text,
            headers=dict(response.headers),
            dataType=type(response.data).__name__,
            dataKeys=sorted(response.data) if isinstance(response.data, dict) else None,
        ).info("📥 Last response")

    def log_last_error(self) -> None:
        error = self.last_error
        if error is None:
            self.logger.info("✅ No error available")
            return
        self.logger.bind(
            message=error.message,
            status=error.status,
            statusText=error.status_text,
            data=error.data,
        ).error("❌ Last error")

    def cleanup(self) -> None:
        """Reset response, error, timers and test data; keep base configuration."""
        self.logger.info("🧹 Cleaning up scenario data")
        self.last_response = None
        self.last_error = None
        self.last_outcome = None
        self._timers = {}
        self.clear_test_data()
