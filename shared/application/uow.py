"""
Unit of Work

Wraps one database transaction around a reservation use case and
publishes the domain events it produced only after the commit.
A rolled-back claim therefore never announces slots it did not get.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        pass

    @abstractmethod
    def rollback(self):
        pass

    @abstractmethod
    def collect_events(self, aggregate):
        pass


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of the Unit of Work

    Usage:
        with DjangoUnitOfWork() as uow:
            inventory = load_inventory(venue, lock=True)
            inventory.claim(booking.id, positions)
            uow.collect_events(inventory)
        # SlotsClaimed is published here, after commit
    """

    def __init__(self, bus=None):
        self._events: List[DomainEvent] = []
        self._atomic = None
        self._bus = bus

    def __enter__(self):
        self._atomic = transaction.atomic()
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            if self._atomic:
                self._atomic.__exit__(exc_type, exc_val, exc_tb)

    def commit(self):
        events = self._events.copy()
        self._events.clear()
        logger.debug(f"Committing unit of work with {len(events)} events")
        if events:
            transaction.on_commit(lambda: self._publish_events(events))

    def rollback(self):
        if self._events:
            logger.warning(f"Rolling back, discarding {len(self._events)} events")
        self._events.clear()

    def collect_events(self, aggregate):
        new_events = getattr(aggregate, 'events', None)
        if new_events:
            self._events.extend(new_events)
            aggregate.clear_events()

    def add_event(self, event: DomainEvent):
        """Record an event raised outside an aggregate (e.g. by an ORM model)"""
        self._events.append(event)

    def _publish_events(self, events: List[DomainEvent]):
        bus = self._bus
        if bus is None:
            from shared.application.message_bus import message_bus as bus

        logger.info(f"Publishing {len(events)} domain events after commit")
        bus.publish_events(events)
