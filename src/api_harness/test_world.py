"""
Unit tests for :mod:`api_harness.world`.
"""

from typing import Any

import pytest

from api_harness import world as world_module
from api_harness.common.common import ApiResponse, HttpStatusError
from api_harness.config import HarnessConfig
from api_harness.world import (
    LAST_ERROR_KEY,
    LAST_RESPONSE_KEY,
    TimerNotStartedError,
    World,
)


@pytest.fixture
def world(config: HarnessConfig) -> World:
    return World.create(config)


def _response(status: int = 200, data: Any = None) -> ApiResponse:
    return ApiResponse(
        data=data if data is not None else {}, status=status, status_text=""
    )


def test_create_builds_a_stubbed_client_from_config(world: World) -> None:
    assert world.base_url == world.config.base_url
    assert world.timeout_ms == 30000
    assert world.client.posts.get(1).data["id"] == 1
    assert world.last_response is None
    assert world.last_error is None
    assert world.test_data == {}


def test_each_world_gets_its_own_client(config: HarnessConfig) -> None:
    first = World.create(config)
    second = World.create(config)

    assert first.client is not second.client
    assert first.client.http.session is not second.client.http.session


def test_test_data_round_trip_and_default(world: World) -> None:
    world.set_test_data("postId", 7)

    assert world.get_test_data("postId") == 7
    assert world.get_test_data("missing") is None
    assert world.get_test_data("missing", "fallback") == "fallback"


def test_clear_test_data_is_idempotent(world: World) -> None:
    world.set_test_data("a", 1)

    world.clear_test_data()
    world.clear_test_data()

    assert world.test_data == {}


def test_set_last_response_mirrors_into_test_data(world: World) -> None:
    response = _response(200, {"id": 1})

    world.set_last_response(response)

    assert world.last_response is response
    assert world.last_outcome == "response"
    assert world.get_test_data(LAST_RESPONSE_KEY) is response


def test_error_after_response_keeps_both_slots(world: World) -> None:
    response = _response(200)
    error = HttpStatusError("Request failed with status code 404", status=404)

    world.set_last_response(response)
    world.set_last_error(error)

    assert world.last_response is response
    assert world.last_error is error
    assert world.last_outcome == "error"
    assert world.get_test_data(LAST_ERROR_KEY) is error


def test_stale_error_survives_a_later_success_until_cleanup(world: World) -> None:
    error = HttpStatusError("Request failed with status code 500", status=500)
    world.set_last_error(error)
    world.set_last_response(_response(200))

    assert world.last_error is error
    assert world.last_outcome == "response"

    world.cleanup()
    assert world.last_error is None


def test_require_response_fails_without_a_response(world: World) -> None:
    with pytest.raises(AssertionError, match="Response has not been set"):
        world.require_response()


def test_end_timer_returns_elapsed_and_stores_duration(
    world: World, monkeypatch: pytest.MonkeyPatch
) -> None:
    clock = iter([1000, 1250])
    monkeypatch.setattr(world_module, "_now_ms", lambda: next(clock))

    world.start_timer("request")
    elapsed = world.end_timer("request")

    assert elapsed == 250
    assert world.get_test_data("duration_request") == 250


def test_end_timer_without_start_raises(world: World) -> None:
    with pytest.raises(TimerNotStartedError):
        world.end_timer("never")


def test_timers_survive_clear_test_data_but_not_cleanup(world: World) -> None:
    world.start_timer("scenario")
    world.clear_test_data()
    assert world.end_timer("scenario") >= 0

    world.cleanup()
    with pytest.raises(TimerNotStartedError):
        world.end_timer("scenario")


def test_wait_for_sleeps_in_seconds(
    world: World, monkeypatch: pytest.MonkeyPatch
) -> None:
    slept: list[float] = []
    monkeypatch.setattr(world_module.time, "sleep", slept.append)

    world.wait_for(1500)

    assert slept == [1.5]


def test_assert_equal(world: World) -> None:
    world.assert_equal(1, 1)
    world.assert_equal({"a": [1, 2]}, {"a": [1, 2]})

    with pytest.raises(AssertionError, match="Expected 2, but got 1"):
        world.assert_equal(1, 2)
    with pytest.raises(AssertionError, match="custom"):
        world.assert_equal("a", "b", "custom")


def test_assert_equal_does_not_treat_booleans_as_integers(world: World) -> None:
    with pytest.raises(AssertionError):
        world.assert_equal(True, 1)
    with pytest.raises(AssertionError):
        world.assert_equal(0, False)


def test_assert_not_null(world: World) -> None:
    world.assert_not_null(0)
    world.assert_not_null("")

    with pytest.raises(AssertionError, match="Value should not be null"):
        world.assert_not_null(None)


def test_assert_array_helpers(world: World) -> None:
    world.assert_array([])
    world.assert_array_length([1, 2, 3], 3)
    world.assert_array_not_empty([1])

    with pytest.raises(AssertionError, match="Value should be an array"):
        world.assert_array({"id": 1})
    with pytest.raises(AssertionError, match="Array should have length 2, but has 3"):
        world.assert_array_length([1, 2, 3], 2)
    with pytest.raises(AssertionError, match="Array should not be empty"):
        world.assert_array_not_empty([])


def test_assert_status_code(world: World) -> None:
    with pytest.raises(AssertionError, match="Expected status 200, but got None"):
        world.assert_status_code(200)

    world.set_last_response(_response(201))
    world.assert_status_code(201)
    with pytest.raises(AssertionError, match="Expected status 200, but got 201"):
        world.assert_status_code(200)


def test_assertions_log_pass_and_fail(
    world: World, log_records: list[dict[str, Any]]
) -> None:
    world.assert_equal(1, 1, "one is one")
    with pytest.raises(AssertionError):
        world.assert_equal(1, 2, "one is two")

    messages = [r["message"] for r in log_records]
    assert "✅ PASS: one is one" in messages
    assert "❌ FAIL: one is two" in messages


def test_context_logging_helpers(
    world: World, log_records: list[dict[str, Any]]
) -> None:
    world.log_last_response()
    world.log_last_error()
    world.set_test_data("userId", 1)
    world.set_last_response(_response(200, {"id": 1, "title": "t"}))
    world.set_last_error(HttpStatusError("boom", status=500))
    world.log_current_context()
    world.log_last_response()
    world.log_last_error()

    by_message = {r["message"]: r for r in log_records}
    assert "📥 No response available" in by_message
    assert "✅ No error available" in by_message
    assert by_message["📋 Current test context"]["extra"]["lastResponseStatus"] == 200
    assert by_message["📋 Current test context"]["extra"]["lastErrorMessage"] == "boom"
    assert by_message["📥 Last response"]["extra"]["dataKeys"] == ["id", "title"]
    assert by_message["❌ Last error"]["extra"]["status"] == 500


def test_cleanup_resets_state_but_keeps_configuration(world: World) -> None:
    world.set_last_response(_response())
    world.set_last_error(HttpStatusError("boom", status=500))
    world.set_test_data("k", "v")

    world.cleanup()

    assert world.last_response is None
    assert world.last_error is None
    assert world.last_outcome is None
    assert world.test_data == {}
    assert world.base_url == world.config.base_url
    assert world.timeout_ms == 30000
