"""Shared types and errors."""

from api_harness.common.common import (
    ApiError,
    ApiResponse,
    ConfigurationError,
    HttpStatusError,
    ScenarioTimeoutError,
    TestValue,
    TransportError,
)

__all__ = [
    "ApiError",
    "ApiResponse",
    "ConfigurationError",
    "HttpStatusError",
    "ScenarioTimeoutError",
    "TestValue",
    "TransportError",
]
