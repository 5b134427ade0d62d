"""
Unit tests for :mod:`api_harness.lifecycle`.
"""

from dataclasses import replace
from types import SimpleNamespace
from typing import Any

import pytest

from api_harness import lifecycle as lifecycle_module
from api_harness.common.common import (
    ConfigurationError,
    HttpStatusError,
    ScenarioTimeoutError,
    TransportError,
)
from api_harness.config import HarnessConfig
from api_harness.lifecycle import SCENARIO_TIMER, ScenarioLifecycle, skip_reason
from api_harness.placeholder_client import HealthCheckResult
from api_harness.world import World


@pytest.fixture
def lifecycle(config: HarnessConfig) -> ScenarioLifecycle:
    return ScenarioLifecycle(config)


@pytest.fixture
def world(config: HarnessConfig) -> World:
    return World.create(config)


@pytest.mark.parametrize(
    ("tags", "environ", "skipped"),
    [
        ({"smoke"}, {}, False),
        ({"skip"}, {}, True),
        ({"manual"}, {}, False),
        ({"manual"}, {"CI": "true"}, True),
        ({"manual"}, {"GITHUB_ACTIONS": "true"}, True),
        (set(), {"CI": "true"}, False),
    ],
)
def test_skip_reason(tags: set[str], environ: dict[str, str], skipped: bool) -> None:
    reason = skip_reason(tags, HarnessConfig.from_env(environ))

    assert (reason is not None) is skipped


def test_before_all_runs_a_health_check(
    lifecycle: ScenarioLifecycle, log_records: list[dict[str, Any]]
) -> None:
    lifecycle.before_all()

    messages = [r["message"] for r in log_records]
    assert "✅ Configuration validation passed" in messages
    assert "✅ Health check passed" in messages


def test_before_all_rejects_invalid_configuration(config: HarnessConfig) -> None:
    lifecycle = ScenarioLifecycle(replace(config, timeout_ms=10))

    with pytest.raises(ConfigurationError):
        lifecycle.before_all()


def test_before_all_continues_when_the_api_is_unhealthy(
    lifecycle: ScenarioLifecycle,
    monkeypatch: pytest.MonkeyPatch,
    log_records: list[dict[str, Any]],
) -> None:
    unhealthy = HealthCheckResult(
        status="unhealthy",
        checked_at=None,  # type: ignore[arg-type]
        error=TransportError("connection refused"),
    )
    monkeypatch.setattr(
        lifecycle_module.JsonPlaceholderClient, "health_check", lambda self: unhealthy
    )

    lifecycle.before_all()

    warning = next(r for r in log_records if r["level"] == "WARNING")
    assert warning["message"] == "⚠️ Health check failed, but continuing with tests"
    assert warning["extra"]["error"] == "connection refused"


def test_before_scenario_records_name_and_tags(
    lifecycle: ScenarioLifecycle, world: World
) -> None:
    lifecycle.before_scenario(world, "Get a post", {"posts", "validation"})

    assert world.get_test_data("scenarioName") == "Get a post"
    assert world.get_test_data("scenarioTags") == ["posts", "validation"]
    assert world.get_test_data("scenarioStartTime")


def test_smoke_tag_uses_the_performance_timeout(
    lifecycle: ScenarioLifecycle, world: World, config: HarnessConfig
) -> None:
    lifecycle.before_scenario(world, "Quick", {"smoke"})

    assert world.client.http.timeout_ms == config.performance_timeout_ms


def test_slow_tag_doubles_the_timeout(
    lifecycle: ScenarioLifecycle, world: World, config: HarnessConfig
) -> None:
    lifecycle.before_scenario(world, "Photos", {"slow"})

    assert world.client.http.timeout_ms == config.timeout_ms * 2


def test_after_scenario_resets_timeout_and_world(
    lifecycle: ScenarioLifecycle, world: World, config: HarnessConfig
) -> None:
    lifecycle.before_scenario(world, "Photos", {"slow"})
    world.set_last_error(HttpStatusError("boom", status=500))

    duration = lifecycle.after_scenario(world, "Photos", {"slow"}, "passed")

    assert duration >= 0
    assert world.client.http.timeout_ms == config.timeout_ms
    assert world.last_error is None
    assert world.test_data == {}


def test_failed_scenario_dumps_response_and_error(
    lifecycle: ScenarioLifecycle, world: World, log_records: list[dict[str, Any]]
) -> None:
    lifecycle.before_scenario(world, "Broken", set())
    world.set_last_response(world.client.posts.get(1))
    world.set_last_error(HttpStatusError("boom", status=500, data={"e": 1}))

    lifecycle.after_scenario(world, "Broken", set(), "failed", "assert 1 == 2")

    errors = {r["message"]: r for r in log_records if r["level"] == "ERROR"}
    assert errors["Scenario failed"]["extra"]["message"] == "assert 1 == 2"
    assert errors["Last response details"]["extra"]["status"] == 200
    assert errors["Last error details"]["extra"]["data"] == {"e": 1}
    assert any(m.startswith("❌ Completed scenario: Broken") for m in errors)


def test_performance_scenario_logs_its_duration(
    lifecycle: ScenarioLifecycle, world: World, log_records: list[dict[str, Any]]
) -> None:
    lifecycle.before_scenario(world, "Timed", {"performance"})

    duration = lifecycle.after_scenario(world, "Timed", {"performance"}, "passed")

    messages = [r["message"] for r in log_records]
    assert f"⚡ Performance test completed in {duration}ms" in messages


def test_after_step_raises_when_a_step_overruns(
    config: HarnessConfig, world: World, monkeypatch: pytest.MonkeyPatch
) -> None:
    lifecycle = ScenarioLifecycle(replace(config, step_timeout_ms=100))
    monkeypatch.setattr(world, "end_timer", lambda label: 150)

    lifecycle.before_step(world)
    with pytest.raises(ScenarioTimeoutError) as exc_info:
        lifecycle.after_step(world, "I get all photos")

    assert exc_info.value.elapsed_ms == 150
    assert exc_info.value.limit_ms == 100


def test_after_step_within_the_limit_passes(
    lifecycle: ScenarioLifecycle, world: World
) -> None:
    lifecycle.before_step(world)
    lifecycle.after_step(world, "I get all posts")


def test_lifecycle_runs_against_a_fake_world(lifecycle: ScenarioLifecycle) -> None:
    calls: list[Any] = []
    fake_world = SimpleNamespace(
        set_test_data=lambda key, value: calls.append(("set", key)),
        start_timer=lambda label: calls.append(("start", label)),
        end_timer=lambda label: calls.append(("end", label)) or 5,
        client=SimpleNamespace(
            http=SimpleNamespace(set_timeout=lambda ms: calls.append(("timeout", ms)))
        ),
        last_response=None,
        last_error=None,
        cleanup=lambda: calls.append(("cleanup",)),
    )

    lifecycle.before_scenario(fake_world, "Fake", set())  # type: ignore[arg-type]
    lifecycle.after_scenario(
        fake_world,  # type: ignore[arg-type]
        "Fake",
        set(),
        "skipped",
    )

    assert ("start", SCENARIO_TIMER) in calls
    assert ("end", SCENARIO_TIMER) in calls
    assert calls[-1] == ("cleanup",)
