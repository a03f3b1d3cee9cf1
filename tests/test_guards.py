"""Tests for the guard evaluator."""

from __future__ import annotations

import logging

import pytest

from AetherRealtime.kernel.guards import NO_REASON, GuardEvaluator, GuardResult
from AetherRealtime.message.context import EventContext


@pytest.fixture
def ctx() -> EventContext:
    return EventContext(type="secure.action", payload={"role": "guest"})


@pytest.fixture
def evaluator() -> GuardEvaluator:
    return GuardEvaluator()


class TestGuardOutcomes:
    """Accepted guard return shapes."""

    async def test_no_guards_allows(self, evaluator, ctx):
        result = await evaluator.evaluate([], ctx)
        assert result
        assert result.allowed is True

    async def test_boolean_guards(self, evaluator, ctx):
        assert await evaluator.evaluate([lambda c: True], ctx)
        assert not await evaluator.evaluate([lambda c: False], ctx)

    async def test_mapping_with_reason(self, evaluator, ctx):
        result = await evaluator.evaluate([lambda c: {"allowed": False, "reason": "no-perm"}], ctx)

        assert not result
        assert result.reason == "no-perm"
        assert result.guard_index == 0

    async def test_guard_result_object(self, evaluator, ctx):
        result = await evaluator.evaluate([lambda c: GuardResult(False, "banned")], ctx)
        assert result.reason == "banned"

    async def test_async_guard(self, evaluator, ctx):
        async def is_admin(c):
            return c.payload["role"] == "admin"

        result = await evaluator.evaluate([is_admin], ctx)

        assert not result
        assert result.reason == NO_REASON


class TestGuardOrdering:
    """Guards run in order and stop at the first rejection."""

    async def test_later_guards_do_not_run_after_rejection(self, evaluator, ctx):
        calls: list[int] = []

        def make(index, allowed):
            def guard(c):
                calls.append(index)
                return allowed

            return guard

        result = await evaluator.evaluate([make(0, True), make(1, False), make(2, True)], ctx)

        assert not result
        assert result.guard_index == 1
        assert calls == [0, 1]

    async def test_exception_is_a_rejection(self, evaluator, ctx, caplog):
        calls: list[str] = []

        def broken(c):
            raise KeyError("token")

        def after(c):
            calls.append("after")
            return True

        with caplog.at_level(logging.ERROR, logger="AetherRealtime"):
            result = await evaluator.evaluate([broken, after], ctx)

        assert not result
        assert "KeyError" in result.reason
        assert calls == []
        assert caplog.records

    async def test_rejection_reason_is_traced_at_debug(self, evaluator, ctx, caplog):
        with caplog.at_level(logging.DEBUG, logger="AetherRealtime"):
            await evaluator.evaluate([lambda c: {"allowed": False, "reason": "no-perm"}], ctx)

        assert any("no-perm" in r.getMessage() for r in caplog.records)
