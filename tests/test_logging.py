"""Tests for the log broker and package logging setup."""

from __future__ import annotations

import logging

from AetherRealtime.kernel.logging import PACKAGE_LOGGER, BrokerHandler, LogBroker, get_log_manager


class TestLogBroker:
    def test_keeps_recent_records_up_to_capacity(self):
        broker = LogBroker(max_buffer=2)
        handler = BrokerHandler(broker)
        logger = logging.getLogger("AetherRealtime.tests.broker")
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        try:
            for i in range(3):
                logger.debug("record %d", i)
        finally:
            logger.removeHandler(handler)

        assert [r.message for r in broker.get_recent()] == ["record 1", "record 2"]
        assert broker.get_recent(1)[0].level == "DEBUG"

    def test_subscribe_and_unsubscribe(self):
        broker = LogBroker()
        seen: list[str] = []
        unsubscribe = broker.subscribe(lambda record: seen.append(record.message))
        handler = BrokerHandler(broker)
        logger = logging.getLogger("AetherRealtime.tests.subscribe")
        logger.addHandler(handler)
        try:
            logger.warning("first")
            unsubscribe()
            logger.warning("second")
        finally:
            logger.removeHandler(handler)

        assert seen == ["first"]
        assert len(broker.get_recent()) == 2

    def test_broken_subscriber_is_dropped(self):
        broker = LogBroker()

        def broken(record):
            raise RuntimeError("subscriber failed")

        broker.subscribe(broken)
        record_logger = logging.getLogger("AetherRealtime.tests.broken")
        handler = BrokerHandler(broker)
        record_logger.addHandler(handler)
        try:
            record_logger.warning("one")
            record_logger.warning("two")
        finally:
            record_logger.removeHandler(handler)

        assert len(broker.get_recent()) == 2


class TestLogManager:
    async def test_guard_rejection_reason_reaches_broker(self, started_app, transport):
        manager = get_log_manager()
        previous = manager.level
        manager.broker.clear()
        manager.set_level("DEBUG")
        try:
            started_app.register_routes(
                [
                    {
                        "event": "secure.action",
                        "guards": [lambda ctx: {"allowed": False, "reason": "no-perm"}],
                        "handler": lambda ctx: None,
                    }
                ]
            )
            await transport.simulate_incoming("secure.action")
        finally:
            manager.set_level(previous)

        assert any("no-perm" in r.message for r in manager.broker.get_recent())

    def test_manager_is_a_singleton_bound_to_package_logger(self):
        manager = get_log_manager()

        assert get_log_manager() is manager
        assert any(
            isinstance(h, BrokerHandler) for h in logging.getLogger(PACKAGE_LOGGER).handlers
        )
