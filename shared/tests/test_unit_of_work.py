"""Tests for the unit of work and the message bus."""

from __future__ import annotations

from dataclasses import dataclass

import pytest
from django.test import TestCase

from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.base import DomainEvent


@dataclass
class SomethingHappened(DomainEvent):
    value: int = 0


@dataclass
class DoSomething:
    value: int


class UnitOfWorkTests(TestCase):
    def setUp(self) -> None:
        self.bus = MessageBus()
        self.received: list[DomainEvent] = []
        self.bus.register_event_handler(SomethingHappened, self.received.append)

    def test_events_published_after_outermost_commit(self) -> None:
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with DjangoUnitOfWork(bus=self.bus) as outer:
                with DjangoUnitOfWork(bus=self.bus) as inner:
                    inner.add_event(SomethingHappened(value=1))
                outer.add_event(SomethingHappened(value=2))
                self.assertEqual(self.received, [])

        self.assertEqual(len(callbacks), 2)
        self.assertEqual(sorted(event.value for event in self.received), [1, 2])

    def test_rollback_discards_events(self) -> None:
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(RuntimeError):
                with DjangoUnitOfWork(bus=self.bus) as uow:
                    uow.add_event(SomethingHappened(value=1))
                    raise RuntimeError("boom")

        self.assertEqual(callbacks, [])
        self.assertEqual(self.received, [])

    def test_failing_subscriber_does_not_stop_others(self) -> None:
        def broken(event):
            raise ValueError("subscriber failed")

        bus = MessageBus()
        bus.register_event_handler(SomethingHappened, broken)
        bus.register_event_handler(SomethingHappened, self.received.append)

        bus.publish_events([SomethingHappened(value=3)])

        self.assertEqual([event.value for event in self.received], [3])


def test_command_handler_registration() -> None:
    bus = MessageBus()
    bus.register_command_handler(DoSomething, lambda command: command.value * 2)

    assert bus.handle_command(DoSomething(value=21)) == 42
    with pytest.raises(ValueError, match="already registered"):
        bus.register_command_handler(DoSomething, lambda command: None)
