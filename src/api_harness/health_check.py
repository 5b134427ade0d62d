"""
Stand-alone health check of the JSONPlaceholder API.

Probes a fixed list of endpoints, validating status code, content type and
response shape for each, and writes ``health-check.json`` plus a one-line
``health-status.txt``. Exits 0 only when every endpoint is healthy.

Usage:
    api-harness-health [--url https://staging.example.com] [--json] [--verbose]
"""

import argparse
import json
import sys
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

from api_harness.common.common import ApiError, ConfigurationError
from api_harness.config import HarnessConfig
from api_harness.http_client import HttpClient
from api_harness.log import configure_logging, get_logger

OUTPUT_FILE = "health-check.json"
STATUS_FILE = "health-status.txt"
RETRY_DELAY_S = 1.0

Health = Literal["healthy", "unhealthy"]
OverallHealth = Literal["healthy", "degraded", "unhealthy"]

logger = get_logger("HealthCheck")


@dataclass(frozen=True)
class Endpoint:
    path: str
    is_array: bool = False
    min_length: int = 0
    has_id: bool = False
    status: int = 200


ENDPOINTS = [
    Endpoint("/posts", is_array=True, min_length=100),
    Endpoint("/posts/1", has_id=True),
    Endpoint("/users", is_array=True, min_length=10),
    Endpoint("/users/1", has_id=True),
    Endpoint("/comments", is_array=True, min_length=500),
    Endpoint("/albums", is_array=True, min_length=100),
    Endpoint("/photos", is_array=True, min_length=5000),
    Endpoint("/todos", is_array=True, min_length=200),
]


@dataclass(frozen=True)
class Check:
    name: str
    passed: bool
    expected: Any
    actual: Any


@dataclass
class EndpointResult:
    endpoint: str
    status: Health
    response_time_ms: int
    http_status: int | None = None
    error: str | None = None
    checks: list[Check] = field(default_factory=list)


@dataclass
class HealthReport:
    """
    Result of a full health-check run.

    :param status: ``healthy`` when every endpoint passed, ``degraded`` when at
        least one failed, ``unhealthy`` when the API could not be reached.
    :param health_percentage: Share of healthy endpoints, rounded.
    """

    timestamp: str
    base_url: str
    status: OverallHealth
    duration_ms: int
    total: int = 0
    healthy: int = 0
    unhealthy: int = 0
    health_percentage: int = 0
    error: str | None = None
    results: list[EndpointResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def status_line(self) -> str:
        return f"{self.status} {self.timestamp} {self.health_percentage}%"


def _elapsed_ms(started: float) -> int:
    return round((time.monotonic() - started) * 1000)


def _shape_checks(endpoint: Endpoint, data: Any) -> list[Check]:
    checks = []
    if endpoint.is_array:
        is_array = isinstance(data, list)
        checks.append(Check("is_array", is_array, "array", type(data).__name__))
        if is_array and endpoint.min_length:
            checks.append(
                Check(
                    "min_length",
                    len(data) >= endpoint.min_length,
                    f">= {endpoint.min_length}",
                    len(data),
                )
            )
    else:
        is_object = isinstance(data, dict)
        checks.append(Check("is_object", is_object, "object", type(data).__name__))
        if is_object and endpoint.has_id:
            present = bool(data.get("id"))
            checks.append(
                Check(
                    "has_id",
                    present,
                    "id field present",
                    "id field present" if present else "id field missing",
                )
            )
    return checks


def check_endpoint(client: HttpClient, endpoint: Endpoint) -> EndpointResult:
    """Probe one endpoint once and validate what came back."""
    started = time.monotonic()
    try:
        response = client.get(endpoint.path)
    except ApiError as err:
        return EndpointResult(
            endpoint=endpoint.path,
            status="unhealthy",
            response_time_ms=_elapsed_ms(started),
            http_status=err.status,
            error=err.message,
            checks=[Check("connectivity", False, "successful request", err.message)],
        )

    content_type = response.content_type or ""
    checks = [
        Check(
            "status_code",
            response.status == endpoint.status,
            endpoint.status,
            response.status,
        ),
        Check(
            "content_type",
            "application/json" in content_type,
            "application/json",
            content_type,
        ),
        *_shape_checks(endpoint, response.data),
    ]
    return EndpointResult(
        endpoint=endpoint.path,
        status="healthy" if all(check.passed for check in checks) else "unhealthy",
        response_time_ms=_elapsed_ms(started),
        http_status=response.status,
        checks=checks,
    )


def check_endpoint_with_retries(
    client: HttpClient,
    endpoint: Endpoint,
    retries: int,
    sleep: Callable[[float], None] = time.sleep,
) -> EndpointResult:
    """Probe until healthy or ``retries`` attempts are used, waiting 1 s between."""
    result: EndpointResult | None = None
    for attempt in range(1, retries + 1):
        logger.info(f"🔍 Checking {endpoint.path} (attempt {attempt}/{retries})")
        result = check_endpoint(client, endpoint)
        if result.status == "healthy":
            logger.info(f"  ✅ Healthy ({result.response_time_ms}ms)")
            return result

        logger.warning(f"  ⚠️ Unhealthy ({result.response_time_ms}ms)")
        if attempt < retries:
            logger.info("  🔄 Retrying in 1 second...")
            sleep(RETRY_DELAY_S)

    if result is None:
        raise ValueError("retries must be at least 1")
    return result


def run_health_check(
    config: HarnessConfig,
    client: HttpClient | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> HealthReport:
    """
    Run the connectivity probe and then every endpoint check.

    :param config: Supplies the base URL, timeout and retry count.
    :param client: Transport to use; built from ``config`` when omitted.
    :param sleep: Called between retries.
    :returns: The assembled report. Nothing is written to disk.
    """
    client = client or HttpClient.from_config(
        config, timeout_ms=config.health_check_timeout_ms
    )
    started = time.monotonic()

    logger.info("🏥 JSONPlaceholder API Health Check")
    logger.bind(
        baseUrl=config.base_url,
        timeout=config.health_check_timeout_ms,
        retries=config.health_check_retries,
    ).info("Health check settings")

    logger.info("🌐 Testing basic connectivity...")
    try:
        client.get("/posts/1")
    except ApiError as err:
        logger.error(f"❌ Basic connectivity failed: {err.message}")
        logger.error("❌ Aborting health check")
        return HealthReport(
            timestamp=datetime.now(timezone.utc).isoformat(),
            base_url=config.base_url,
            status="unhealthy",
            duration_ms=_elapsed_ms(started),
            error="Basic connectivity failed",
        )
    logger.info("✅ Basic connectivity OK")

    results = [
        check_endpoint_with_retries(
            client, endpoint, config.health_check_retries, sleep
        )
        for endpoint in ENDPOINTS
    ]
    healthy = sum(1 for result in results if result.status == "healthy")
    unhealthy = len(results) - healthy

    return HealthReport(
        timestamp=datetime.now(timezone.utc).isoformat(),
        base_url=config.base_url,
        status="healthy" if unhealthy == 0 else "degraded",
        duration_ms=_elapsed_ms(started),
        total=len(results),
        healthy=healthy,
        unhealthy=unhealthy,
        health_percentage=round(healthy / len(results) * 100),
        results=results,
    )


def display_summary(report: HealthReport) -> None:
    log = logger.error if report.status == "unhealthy" else logger.info
    log(f"🏥 HEALTH CHECK SUMMARY: {report.status.upper()}")
    logger.info(f"Duration: {report.duration_ms}ms")
    logger.info(
        f"Health: {report.health_percentage}% ({report.healthy}/{report.total})"
    )

    for result in report.results:
        if result.status == "healthy":
            continue
        logger.error(f"❌ Unhealthy endpoint: {result.endpoint}")
        if result.error:
            logger.error(f"    Error: {result.error}")
        for check in result.checks:
            if not check.passed:
                logger.error(
                    f"    {check.name}: expected {check.expected}, got {check.actual}"
                )


def save_results(report: HealthReport, output_dir: Path = Path(".")) -> None:
    """Write the detailed JSON report and the one-line status file."""
    output_dir.mkdir(parents=True, exist_ok=True)

    output_file = output_dir / OUTPUT_FILE
    output_file.write_text(json.dumps(report.to_dict(), indent=2), encoding="utf-8")
    logger.info(f"📊 Detailed report saved to {output_file}")

    status_file = output_dir / STATUS_FILE
    status_file.write_text(report.status_line() + "\n", encoding="utf-8")
    logger.info(f"📋 Status saved to {status_file}")


def parse_args(args: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Check that every JSONPlaceholder endpoint is reachable and sane."
    )
    parser.add_argument("--url", help="Override the base URL (default: BASE_URL)")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print only the JSON report to stdout",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log at DEBUG level"
    )
    return parser.parse_args(args)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        config = HarnessConfig.from_env()
        if args.url:
            config = config.with_base_url(args.url)
        config.validate()
    except ConfigurationError as err:
        logger.error(f"❌ {err}")
        return 2

    if args.verbose:
        config = replace(config, log_level="DEBUG")
    if args.json:
        config = replace(config, log_level="ERROR")
    configure_logging(config)

    report = run_health_check(config)
    if not args.json:
        display_summary(report)
    save_results(report)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))

    return 0 if report.status == "healthy" else 1


if __name__ == "__main__":
    sys.exit(main())
