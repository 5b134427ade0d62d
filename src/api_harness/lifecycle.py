"""
Scenario lifecycle: what happens around every scenario and every step.

    before_all -> [before_scenario -> step* -> after_scenario]* -> after_all

The pytest wiring lives in ``tests/acceptance/conftest.py``; this module holds
the behaviour so it can be exercised without a running test session.
"""

from collections.abc import Collection
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Literal

from api_harness.common.common import ScenarioTimeoutError
from api_harness.http_client import HttpClient
from api_harness.log import StepStatus, get_logger, log_step
from api_harness.placeholder_client import JsonPlaceholderClient

if TYPE_CHECKING:
    from api_harness.config import HarnessConfig
    from api_harness.world import World

Outcome = Literal["passed", "failed", "skipped"]

SCENARIO_TIMER = "scenario"
STEP_TIMER = "step"

OUTCOME_STEP_STATUS: dict[Outcome, StepStatus] = {
    "passed": "pass",
    "failed": "fail",
    "skipped": "skip",
}


def skip_reason(tags: Collection[str], config: "HarnessConfig") -> str | None:
    """
    Decide whether a scenario must not run at all.

    :param tags: Scenario tags without the leading ``@``.
    :param config: Run configuration.
    :returns: The reason to skip, or ``None`` if the scenario should run.
    """
    if "skip" in tags:
        return "Scenario tagged @skip"
    if "manual" in tags and config.is_ci:
        return "Skipping manual test in CI environment"
    return None


class ScenarioLifecycle:
    """Hooks run around scenarios, bound to one run configuration."""

    def __init__(self, config: "HarnessConfig") -> None:
        self.config = config
        self.logger = get_logger("Hooks")

    def before_all(self) -> None:
        """
        Log and validate the configuration, then probe the API once.

        :raises ConfigurationError: If the configuration is invalid.
        """
        self.logger.info("🚀 Starting JSONPlaceholder API Tests")
        self.logger.bind(**self.config.summary()).info("📋 Configuration")

        self.config.validate()
        self.logger.info("✅ Configuration validation passed")

        self.logger.info("🏥 Performing health check...")
        client = JsonPlaceholderClient(
            HttpClient.from_config(
                self.config, timeout_ms=self.config.health_check_timeout_ms
            )
        )
        result = client.health_check()
        if result.is_healthy:
            self.logger.info("✅ Health check passed")
        else:
            self.logger.bind(
                error=result.error.message if result.error else None
            ).warning("⚠️ Health check failed, but continuing with tests")

    def before_scenario(self, world: "World", name: str, tags: Collection[str]) -> None:
        log_step(self.logger, f"Starting scenario: {name}", "start")

        world.set_test_data("scenarioName", name)
        world.set_test_data("scenarioTags", sorted(tags))
        world.set_test_data(
            "scenarioStartTime", datetime.now(timezone.utc).isoformat()
        )
        world.start_timer(SCENARIO_TIMER)
        self.logger.bind(name=name, tags=sorted(tags)).info("📝 Scenario Info")

        if "smoke" in tags:
            self.logger.info("🔥 Smoke test scenario - setting shorter timeout")
            world.client.http.set_timeout(self.config.performance_timeout_ms)
        if "performance" in tags:
            self.logger.info("⚡ Performance test scenario - enabling timing")
        if "validation" in tags:
            self.logger.info("🔒 Validation test scenario - detailed logging")
        if "slow" in tags:
            self.logger.info("🐌 Slow test scenario - extending timeout")
            world.client.http.set_timeout(self.config.timeout_ms * 2)
        if "retry" in tags:
            self.logger.info("🔄 Retry test scenario")

    def before_step(self, world: "World") -> None:
        world.start_timer(STEP_TIMER)

    def after_step(self, world: "World", step: str) -> None:
        """
        Fail the scenario if the step just finished took too long.

        :raises ScenarioTimeoutError: If the step exceeded ``STEP_TIMEOUT``.
        """
        elapsed = world.end_timer(STEP_TIMER)
        if elapsed > self.config.step_timeout_ms:
            raise ScenarioTimeoutError(
                step=step, limit_ms=self.config.step_timeout_ms, elapsed_ms=elapsed
            )

    def after_scenario(
        self,
        world: "World",
        name: str,
        tags: Collection[str],
        outcome: Outcome,
        message: str | None = None,
    ) -> int:
        """
        Report the scenario outcome and reset the world.

        Always runs, whatever the outcome.

        :returns: The scenario duration in milliseconds.
        """
        duration = world.end_timer(SCENARIO_TIMER)
        log_step(
            self.logger,
            f"Completed scenario: {name} ({duration}ms)",
            OUTCOME_STEP_STATUS[outcome],
        )

        if outcome == "failed":
            if message:
                self.logger.bind(message=message).error("Scenario failed")
            if world.last_response is not None:
                self.logger.bind(
                    status=world.last_response.status,
                    statusText=world.last_response.status_text,
                    data=world.last_response.data,
                ).error("Last response details")
            if world.last_error is not None:
                self.logger.bind(
                    message=world.last_error.message,
                    status=world.last_error.status,
                    data=world.last_error.data,
                ).error("Last error details")

        if "performance" in tags:
            self.logger.info(f"⚡ Performance test completed in {duration}ms")
        if "cleanup" in tags:
            self.logger.info(
                "🧹 Running additional cleanup for @cleanup tagged scenario"
            )

        world.client.http.set_timeout(self.config.timeout_ms)
        world.cleanup()
        return duration

    def after_all(self) -> None:
        self.logger.info("🎯 All scenarios completed")
        self.logger.info("✨ Test execution finished")
