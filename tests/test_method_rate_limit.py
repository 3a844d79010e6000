"""Tests for per-connection method rate limiting."""

from unittest.mock import Mock, patch

import pytest

from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.core.rate_limit import MethodRateLimiter, get_connection_id
from app.services.todo_methods import TODOS_RATE_LIMIT_RULE
from tests.conftest import PUBLIC_LIST_ID

INSERT_ARGS = {"listId": PUBLIC_LIST_ID, "text": "Stretch", "pomosEstimated": 1}


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=1000.0)


@pytest.fixture
def rate_limiter(clock: Mock) -> MethodRateLimiter:
    rate_limiter = MethodRateLimiter()
    rate_limiter.add_rule(
        "todos",
        ["todos.insert", "todos.remove"],
        InMemorySlidingWindowRateLimiter(limit=2, window_seconds=1, clock=clock),
    )
    return rate_limiter


class TestMethodRateLimiter:
    def test_methods_in_a_rule_share_one_budget(self, rate_limiter) -> None:
        assert rate_limiter.check("todos.insert", "conn-1") is None
        assert rate_limiter.check("todos.remove", "conn-1") is None

        blocked = rate_limiter.check("todos.insert", "conn-1")

        assert blocked is not None
        rule, result = blocked
        assert rule.name == "todos"
        assert result.allowed is False

    def test_budget_is_per_connection(self, rate_limiter) -> None:
        rate_limiter.check("todos.insert", "conn-1")
        rate_limiter.check("todos.insert", "conn-1")

        assert rate_limiter.check("todos.insert", "conn-1") is not None
        assert rate_limiter.check("todos.insert", "conn-2") is None

    def test_unmatched_methods_are_not_limited(self, rate_limiter) -> None:
        for _ in range(10):
            assert rate_limiter.check("lists.insert", "conn-1") is None

        assert rate_limiter.check("todos.insert", "conn-1") is None

    def test_budget_returns_after_window(self, rate_limiter, clock) -> None:
        rate_limiter.check("todos.insert", "conn-1")
        rate_limiter.check("todos.insert", "conn-1")

        clock.return_value = 1001.0
        assert rate_limiter.check("todos.insert", "conn-1") is None

    def test_add_rule_is_idempotent(self, rate_limiter) -> None:
        original = rate_limiter.rules()[0]

        again = rate_limiter.add_rule("todos", ["todos.updateText"], Mock())

        assert again is original
        assert len(rate_limiter.rules()) == 1
        assert not again.matches("todos.updateText")


def _request(headers: dict[str, str], client: Mock | None) -> Mock:
    return Mock(headers=headers, client=client)


class TestGetConnectionId:
    def test_header_wins_over_socket_address(self) -> None:
        request = _request({"X-Connection-ID": " conn-7 "}, Mock(host="10.0.0.1", port=50123))

        assert get_connection_id(request) == "conn-7"

    @pytest.mark.parametrize("headers", [{}, {"X-Connection-ID": ""}, {"X-Connection-ID": "   "}])
    def test_missing_or_blank_header_falls_back_to_host_and_port(self, headers) -> None:
        request = _request(headers, Mock(host="10.0.0.1", port=50123))

        assert get_connection_id(request) == "10.0.0.1:50123"

    def test_no_client_resolves_to_unknown(self) -> None:
        assert get_connection_id(_request({}, None)) == "unknown"


class TestTodosRule:
    def test_rule_covers_every_todo_method(self, api_app) -> None:
        rules = api_app.state.rate_limiter.rules()

        assert [rule.name for rule in rules] == [TODOS_RATE_LIMIT_RULE]
        assert rules[0].method_names == set(api_app.state.method_registry.names())

    def test_sixth_call_within_a_second_is_rejected(self, client, api_headers, todos) -> None:
        headers = {**api_headers, "X-Connection-ID": "conn-a"}

        statuses = [
            client.post("/v1/methods/todos.insert", json=INSERT_ARGS, headers=headers).status_code
            for _ in range(6)
        ]

        assert statuses == [200, 200, 200, 200, 200, 429]
        # The rejected call never reached the handler
        assert todos.count() == 5

    def test_rejection_carries_rate_limit_headers(self, client, api_headers) -> None:
        headers = {**api_headers, "X-Connection-ID": "conn-a"}
        for _ in range(5):
            client.post("/v1/methods/todos.insert", json=INSERT_ARGS, headers=headers)

        response = client.post("/v1/methods/todos.insert", json=INSERT_ARGS, headers=headers)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "1"
        assert response.headers["X-RateLimit-Limit"] == "5"
        assert response.headers["X-RateLimit-Remaining"] == "0"

    def test_other_connections_are_unaffected(self, client, api_headers) -> None:
        busy = {**api_headers, "X-Connection-ID": "conn-a"}
        quiet = {**api_headers, "X-Connection-ID": "conn-b"}
        for _ in range(6):
            client.post("/v1/methods/todos.insert", json=INSERT_ARGS, headers=busy)

        response = client.post("/v1/methods/todos.insert", json=INSERT_ARGS, headers=quiet)

        assert response.status_code == 200

    def test_calls_with_bad_arguments_still_count(self, client, api_headers) -> None:
        headers = {**api_headers, "X-Connection-ID": "conn-a"}
        for _ in range(5):
            client.post("/v1/methods/todos.remove", json={}, headers=headers)

        response = client.post("/v1/methods/todos.insert", json=INSERT_ARGS, headers=headers)

        assert response.status_code == 429

    def test_disabled_rate_limit_lets_everything_through(self, client, api_headers, todos) -> None:
        headers = {**api_headers, "X-Connection-ID": "conn-a"}

        with patch("app.core.rate_limit.settings") as mock_settings:
            mock_settings.app.rate_limit_enabled = False
            statuses = {
                client.post("/v1/methods/todos.insert", json=INSERT_ARGS, headers=headers).status_code
                for _ in range(8)
            }

        assert statuses == {200}
        assert todos.count() == 8

    def test_calls_without_connection_header_share_the_client_socket_budget(
        self, client, api_headers, todos
    ) -> None:
        statuses = [
            client.post("/v1/methods/todos.insert", json=INSERT_ARGS, headers=api_headers).status_code
            for _ in range(6)
        ]

        assert statuses == [200, 200, 200, 200, 200, 429]
        assert todos.count() == 5
