"""
Wires the scenario lifecycle into pytest and pytest-bdd.

* ``before_all`` / ``after_all`` run once per session (per xdist worker).
* Scenarios tagged ``@skip``, or ``@manual`` when running in CI, are skipped
  at collection time; ``@no_retry`` scenarios are never rerun.
* Each scenario attempt gets a fresh :class:`World` from the ``world`` fixture.
"""

from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from api_harness.common.common import ConfigurationError
from api_harness.config import HarnessConfig
from api_harness.lifecycle import Outcome, ScenarioLifecycle, skip_reason
from api_harness.log import get_logger, log_step
from api_harness.world import World
from tests.conftest import load_harness_config

if TYPE_CHECKING:
    from pytest_bdd.parser import Feature, Scenario, Step

ACCEPTANCE_DIR = Path(__file__).parent

SCENARIO_KEY = pytest.StashKey[tuple[str, set[str]]]()
CALL_REPORT_KEY = pytest.StashKey[pytest.TestReport]()

logger = get_logger("Hooks")


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    harness_config = load_harness_config()
    for item in items:
        if ACCEPTANCE_DIR not in item.path.parents:
            continue
        tags = {mark.name for mark in item.iter_markers()}
        reason = skip_reason(tags, harness_config)
        if reason:
            item.add_marker(pytest.mark.skip(reason=reason))
        if "no_retry" in tags:
            item.add_marker(pytest.mark.flaky(reruns=0))


@pytest.hookimpl(wrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[None]
) -> Iterator[Any]:
    report = yield
    if report.when == "call":
        item.stash[CALL_REPORT_KEY] = report
    return report


@pytest.fixture(scope="session", autouse=True)
def lifecycle(harness_config: HarnessConfig) -> Iterator[ScenarioLifecycle]:
    lifecycle = ScenarioLifecycle(harness_config)
    try:
        lifecycle.before_all()
    except ConfigurationError as err:
        pytest.exit(str(err), returncode=2)
    yield lifecycle
    lifecycle.after_all()


def _outcome(report: pytest.TestReport | None) -> tuple[Outcome, str | None]:
    if report is None or report.skipped:
        return "skipped", None
    if report.passed:
        return "passed", None
    crash = getattr(report.longrepr, "reprcrash", None)
    return "failed", crash.message if crash else str(report.longrepr)


@pytest.fixture
def world(
    request: pytest.FixtureRequest,
    harness_config: HarnessConfig,
    lifecycle: ScenarioLifecycle,
) -> Iterator[World]:
    world = World.create(harness_config)
    yield world

    started = request.node.stash.get(SCENARIO_KEY, None)
    if started is None:
        world.cleanup()
        return
    name, tags = started
    outcome, message = _outcome(request.node.stash.get(CALL_REPORT_KEY, None))
    lifecycle.after_scenario(world, name, tags, outcome, message)


def pytest_bdd_before_scenario(
    request: pytest.FixtureRequest, feature: "Feature", scenario: "Scenario"
) -> None:
    tags = set(feature.tags) | set(scenario.tags)
    world: World = request.getfixturevalue("world")
    request.getfixturevalue("lifecycle").before_scenario(world, scenario.name, tags)
    request.node.stash[SCENARIO_KEY] = (scenario.name, tags)


def pytest_bdd_before_step(
    request: pytest.FixtureRequest,
    feature: "Feature",
    scenario: "Scenario",
    step: "Step",
    step_func: Any,
) -> None:
    world: World = request.getfixturevalue("world")
    request.getfixturevalue("lifecycle").before_step(world)


def pytest_bdd_after_step(
    request: pytest.FixtureRequest,
    feature: "Feature",
    scenario: "Scenario",
    step: "Step",
    step_func: Any,
    step_func_args: dict[str, Any],
) -> None:
    world: World = request.getfixturevalue("world")
    request.getfixturevalue("lifecycle").after_step(world, step.name)


def pytest_bdd_step_error(
    request: pytest.FixtureRequest,
    feature: "Feature",
    scenario: "Scenario",
    step: "Step",
    step_func: Any,
    step_func_args: dict[str, Any],
    exception: Exception,
) -> None:
    log_step(logger, f"{step.keyword} {step.name}: {exception}", "fail")
