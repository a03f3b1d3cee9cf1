"""Tests for the local event bus."""

from __future__ import annotations

import asyncio
import logging

from AetherRealtime.kernel.signal_hub import LocalEventBus


class TestEmitOrdering:
    def test_listeners_run_in_registration_order(self):
        bus = LocalEventBus()
        received: list[tuple[str, object]] = []

        bus.on("user.joined", lambda d: received.append(("a", d)))
        bus.on("user.joined", lambda d: received.append(("b", d)))
        bus.on("user.left", lambda d: received.append(("other", d)))

        bus.emit("user.joined", {"id": 7})

        assert received == [("a", {"id": 7}), ("b", {"id": 7})]

    def test_duplicates_are_permitted(self):
        bus = LocalEventBus()
        hits: list[int] = []

        def listener(data):
            hits.append(data)

        bus.on("tick", listener).on("tick", listener)
        bus.emit("tick", 1)

        assert hits == [1, 1]
        assert bus.listener_count("tick") == 2

    def test_emit_without_listeners_is_noop(self):
        LocalEventBus().emit("nobody", None)


class TestIsolation:
    def test_failing_listener_does_not_stop_others(self, caplog):
        bus = LocalEventBus()
        hits: list[str] = []

        def broken(data):
            raise ValueError("listener exploded")

        bus.on("evt", broken)
        bus.on("evt", lambda d: hits.append("survivor"))

        with caplog.at_level(logging.ERROR, logger="AetherRealtime"):
            bus.emit("evt")

        assert hits == ["survivor"]
        assert any(r.exc_info for r in caplog.records)


class TestRemoval:
    def test_off_removes_first_match_only(self):
        bus = LocalEventBus()
        hits: list[int] = []

        def listener(data):
            hits.append(data)

        bus.on("evt", listener).on("evt", listener)

        assert bus.off("evt", listener) is True
        bus.emit("evt", 1)

        assert hits == [1]

    def test_off_unknown_returns_false(self):
        assert LocalEventBus().off("evt", print) is False

    def test_listener_removed_during_emission_misses_current_event(self):
        bus = LocalEventBus()
        hits: list[str] = []

        def remover(data):
            hits.append("remover")
            bus.off("evt", victim)

        def victim(data):
            hits.append("victim")

        bus.on("evt", remover)
        bus.on("evt", victim)

        bus.emit("evt")
        assert hits == ["remover"]

        bus.emit("evt")
        assert hits == ["remover", "remover"]

    def test_listener_added_during_emission_waits_for_next_event(self):
        bus = LocalEventBus()
        hits: list[str] = []

        def late(data):
            hits.append("late")

        def adder(data):
            hits.append("adder")
            if bus.listener_count("evt") == 1:
                bus.on("evt", late)

        bus.on("evt", adder)

        bus.emit("evt")
        assert hits == ["adder"]

        bus.emit("evt")
        assert hits == ["adder", "adder", "late"]

    def test_once_fires_a_single_time(self):
        bus = LocalEventBus()
        hits: list[int] = []

        bus.once("evt", hits.append)
        bus.emit("evt", 1)
        bus.emit("evt", 2)

        assert hits == [1]
        assert bus.listener_count() == 0

    def test_clear(self):
        bus = LocalEventBus()
        bus.on("a", print).on("b", print)

        bus.clear()

        assert bus.listener_count() == 0


class TestAsyncListeners:
    async def test_coroutine_listener_is_scheduled(self):
        bus = LocalEventBus()
        done = asyncio.Event()

        async def listener(data):
            await asyncio.sleep(0)
            done.set()

        bus.on("evt", listener)
        bus.emit("evt")
        await bus.drain()

        assert done.is_set()

    async def test_failing_coroutine_listener_is_logged(self, caplog):
        bus = LocalEventBus()

        async def listener(data):
            raise RuntimeError("async boom")

        bus.on("evt", listener)
        with caplog.at_level(logging.ERROR, logger="AetherRealtime"):
            bus.emit("evt")
            await bus.drain()

        assert any("evt" in r.getMessage() for r in caplog.records)
