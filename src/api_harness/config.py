"""
Harness configuration.

All settings come from environment variables, optionally seeded from a ``.env``
file in the working directory. A single :class:`HarnessConfig` is built at
startup and passed explicitly to every component that needs it.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace

from dotenv import load_dotenv

from api_harness.common.common import ConfigurationError

DEFAULT_BASE_URL = "https://jsonplaceholder.typicode.com"


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as err:
        raise ConfigurationError([f"{name} must be an integer, got {raw!r}"]) from err


def _env_flag(environ: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() == "true"


@dataclass(frozen=True)
class HarnessConfig:
    """
    Settings for a test run.

    Durations are in milliseconds, matching the environment variables they
    are read from.
    """

    base_url: str = DEFAULT_BASE_URL
    timeout_ms: int = 30000
    log_level: str = "INFO"
    log_to_file: bool = False
    log_file_path: str = "logs/test.log"

    parallel: int = 2
    retry_count: int = 1
    tags: str = ""
    step_timeout_ms: int = 60000

    generate_html_report: bool = True
    generate_json_report: bool = True
    report_title: str = "JSONPlaceholder API Tests"
    report_theme: str = "bootstrap"

    performance_timeout_ms: int = 5000
    concurrent_requests: int = 5
    load_test_duration_s: int = 30

    # Accepted for parity with browser-based suites; nothing here records media.
    enable_screenshots: bool = False
    enable_videos: bool = False
    enable_traces: bool = False

    ci: bool = False
    github_actions: bool = False

    api_key: str | None = None
    auth_token: str | None = None

    test_user_id: int = 1
    test_post_id: int = 1
    test_comment_id: int = 1

    health_check_timeout_ms: int = 10000
    health_check_retries: int = 3

    use_stub: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "HarnessConfig":
        """
        Build a configuration from environment variables.

        :param environ: Mapping to read instead of :data:`os.environ`. When
            omitted, a ``.env`` file in the working directory is loaded first
            (without overriding variables that are already set).
        :returns: The populated configuration.
        :raises ConfigurationError: If a numeric variable cannot be parsed.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        return cls(
            base_url=environ.get("BASE_URL", DEFAULT_BASE_URL),
            timeout_ms=_env_int(environ, "TIMEOUT", 30000),
            log_level=environ.get("LOG_LEVEL", "info").upper(),
            log_to_file=_env_flag(environ, "LOG_TO_FILE"),
            log_file_path=environ.get("LOG_FILE_PATH", "logs/test.log"),
            parallel=_env_int(environ, "PARALLEL", 2),
            retry_count=_env_int(environ, "RETRY_COUNT", 1),
            tags=environ.get("TAGS", ""),
            step_timeout_ms=_env_int(environ, "STEP_TIMEOUT", 60000),
            generate_html_report=_env_flag(environ, "GENERATE_HTML_REPORT", True),
            generate_json_report=_env_flag(environ, "GENERATE_JSON_REPORT", True),
            report_title=environ.get("REPORT_TITLE", "JSONPlaceholder API Tests"),
            report_theme=environ.get("REPORT_THEME", "bootstrap"),
            performance_timeout_ms=_env_int(environ, "PERFORMANCE_TIMEOUT", 5000),
            concurrent_requests=_env_int(environ, "CONCURRENT_REQUESTS", 5),
            load_test_duration_s=_env_int(environ, "LOAD_TEST_DURATION", 30),
            enable_screenshots=_env_flag(environ, "ENABLE_SCREENSHOTS"),
            enable_videos=_env_flag(environ, "ENABLE_VIDEOS"),
            enable_traces=_env_flag(environ, "ENABLE_TRACES"),
            ci=_env_flag(environ, "CI"),
            github_actions=_env_flag(environ, "GITHUB_ACTIONS"),
            api_key=environ.get("API_KEY") or None,
            auth_token=environ.get("AUTH_TOKEN") or None,
            test_user_id=_env_int(environ, "TEST_USER_ID", 1),
            test_post_id=_env_int(environ, "TEST_POST_ID", 1),
            test_comment_id=_env_int(environ, "TEST_COMMENT_ID", 1),
            health_check_timeout_ms=_env_int(environ, "HEALTH_CHECK_TIMEOUT", 10000),
            health_check_retries=_env_int(environ, "HEALTH_CHECK_RETRIES", 3),
            use_stub=_env_flag(environ, "USE_STUB"),
        )

    @property
    def is_ci(self) -> bool:
        return self.ci or self.github_actions

    def validate(self) -> None:
        """
        Check the configuration for values the harness cannot run with.

        :raises ConfigurationError: Listing every problem found.
        """
        errors: list[str] = []

        if not self.base_url:
            errors.append("BASE_URL is required")
        if self.timeout_ms < 1000:
            errors.append("TIMEOUT must be at least 1000ms")
        if self.parallel < 1:
            errors.append("PARALLEL must be at least 1")
        if self.retry_count < 0:
            errors.append("RETRY_COUNT must be 0 or greater")
        if self.health_check_retries < 1:
            errors.append("HEALTH_CHECK_RETRIES must be at least 1")

        if errors:
            raise ConfigurationError(errors)

    def with_base_url(self, base_url: str) -> "HarnessConfig":
        return replace(self, base_url=base_url)

    def summary(self) -> dict[str, object]:
        """The subset of settings logged at the start of a run."""
        return {
            "baseUrl": self.base_url,
            "timeout": self.timeout_ms,
            "logLevel": self.log_level,
            "parallel": self.parallel,
            "retryCount": self.retry_count,
            "useStub": self.use_stub,
        }
