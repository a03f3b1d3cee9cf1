"""Tests for the middleware chain runner."""

from __future__ import annotations

import logging

import pytest

from AetherRealtime.kernel.errors import ConfigurationError, DoubleContinuationError
from AetherRealtime.kernel.middleware import Middleware, MiddlewareChain
from AetherRealtime.message.context import EventContext


@pytest.fixture
def ctx() -> EventContext:
    return EventContext(type="chat.message", payload={"text": "hi"})


class TestMiddlewareOrdering:
    """Insertion order and before/after semantics."""

    async def test_runs_in_insertion_order_and_unwinds(self, ctx):
        trace: list[str] = []

        async def first(c, next_fn):
            trace.append("first:before")
            await next_fn()
            trace.append("first:after")

        async def second(c, next_fn):
            trace.append("second:before")
            await next_fn()
            trace.append("second:after")

        chain = MiddlewareChain([first, second])

        assert await chain.execute(ctx) is True
        assert trace == ["first:before", "second:before", "second:after", "first:after"]

    async def test_scratch_space_is_shared(self, ctx):
        async def authenticate(c, next_fn):
            c.meta["user"] = "alice"
            await next_fn()

        async def authorize(c, next_fn):
            c.meta["seen_user"] = c.meta.get("user")
            await next_fn()

        await MiddlewareChain([authenticate, authorize]).execute(ctx)

        assert ctx.meta == {"user": "alice", "seen_user": "alice"}

    async def test_sync_middleware_returning_continuation(self, ctx):
        trace: list[str] = []

        def sync_step(c, next_fn):
            trace.append("sync")
            return next_fn()

        async def tail(c, next_fn):
            trace.append("tail")
            await next_fn()

        assert await MiddlewareChain([sync_step, tail]).execute(ctx) is True
        assert trace == ["sync", "tail"]

    async def test_class_based_middleware(self, ctx):
        class Tagging(Middleware):
            async def handle(self, c, next_fn):
                c.meta["tagged"] = True
                await next_fn()

        chain = MiddlewareChain()
        chain.use(Tagging())

        assert await chain.execute(ctx) is True
        assert ctx.meta["tagged"] is True
        assert chain.middlewares[0].name == "Tagging"

    async def test_empty_chain_accepts(self, ctx):
        assert await MiddlewareChain().execute(ctx) is True

    def test_non_callable_is_rejected(self):
        with pytest.raises(ConfigurationError):
            MiddlewareChain(["not a middleware"])


class TestShortCircuit:
    """Stopping and skipping the continuation."""

    async def test_stop_rejects_and_skips_later_steps(self, ctx):
        trace: list[str] = []

        async def outer(c, next_fn):
            trace.append("outer:before")
            await next_fn()
            trace.append("outer:after")

        async def stopper(c, next_fn):
            c.stop()
            await next_fn()

        async def never(c, next_fn):
            trace.append("never")
            await next_fn()

        result = await MiddlewareChain([outer, stopper, never]).execute(ctx)

        assert result is False
        assert ctx.is_stopped()
        assert trace == ["outer:before", "outer:after"]

    async def test_skipping_next_without_stop_still_accepts(self, ctx):
        trace: list[str] = []

        async def swallow(c, next_fn):
            trace.append("swallow")

        async def never(c, next_fn):
            trace.append("never")

        assert await MiddlewareChain([swallow, never]).execute(ctx) is True
        assert trace == ["swallow"]


class TestFailures:
    """Exceptions and continuation misuse."""

    async def test_calling_next_twice_raises(self, ctx):
        async def twice(c, next_fn):
            await next_fn()
            await next_fn()

        with pytest.raises(DoubleContinuationError):
            await MiddlewareChain([twice]).execute(ctx)

    async def test_double_call_in_middle_of_chain(self, ctx):
        calls = {"tail": 0}

        async def twice(c, next_fn):
            await next_fn()
            await next_fn()

        async def tail(c, next_fn):
            calls["tail"] += 1
            await next_fn()

        with pytest.raises(DoubleContinuationError) as exc_info:
            await MiddlewareChain([twice, tail]).execute(ctx)

        assert calls["tail"] == 1
        assert exc_info.value.index == 1

    async def test_exception_rejects_and_is_logged(self, ctx, caplog):
        async def broken(c, next_fn):
            raise RuntimeError("kaput")

        with caplog.at_level(logging.ERROR, logger="AetherRealtime"):
            result = await MiddlewareChain([broken]).execute(ctx)

        assert result is False
        assert any(r.exc_info and "kaput" in str(r.exc_info[1]) for r in caplog.records)

    async def test_registration_during_execution_does_not_affect_message(self, ctx):
        trace: list[str] = []
        chain = MiddlewareChain()

        async def registering(c, next_fn):
            chain.use(late)
            await next_fn()

        async def late(c, next_fn):
            trace.append("late")
            await next_fn()

        chain.use(registering)
        await chain.execute(ctx)

        assert trace == []
        assert chain.count == 2


class TestChainManagement:
    def test_remove_by_name(self):
        async def audit(c, next_fn):
            await next_fn()

        chain = MiddlewareChain([audit])

        assert chain.remove("audit") is True
        assert chain.remove("audit") is False
        assert len(chain) == 0
