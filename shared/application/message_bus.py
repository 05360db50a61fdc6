"""
Message Bus

Routes commands to their single handler and domain events to any
number of subscribers. The bookings app registers its handlers in
AppConfig.ready() so they exist before the first request.
"""

from typing import Any, Callable, Dict, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class MessageBus:
    """
    Commands: exactly one handler (1:1)
    Events: any number of handlers (1:N)
    """

    def __init__(self):
        self._event_handlers: Dict[Type[DomainEvent], List[Callable]] = {}
        self._command_handlers: Dict[Type, Callable] = {}

    def register_event_handler(self, event_type: Type[DomainEvent], handler: Callable[[DomainEvent], None]):
        handlers = self._event_handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def register_command_handler(self, command_type: Type, handler: Callable[[Any], Any]):
        if command_type in self._command_handlers:
            raise ValueError(f"Handler for {command_type.__name__} is already registered")
        self._command_handlers[command_type] = handler

    def handle_command(self, command: Any) -> Any:
        command_type = type(command)
        handler = self._command_handlers.get(command_type)
        if handler is None:
            raise ValueError(f"No handler registered for command {command_type.__name__}")

        logger.info(f"Handling command: {command_type.__name__}")
        return handler(command)

    def publish_events(self, events: List[DomainEvent]):
        """
        Dispatch events to subscribers

        A failing subscriber is logged; the remaining ones still run,
        the reservation itself is already committed.
        """
        for event in events:
            handlers = self._event_handlers.get(type(event), [])
            if not handlers:
                logger.debug(f"No subscribers for {event.name}")
                continue

            logger.info(f"Publishing event: {event.name} (ID: {event.event_id})")
            for handler in handlers:
                try:
                    handler(event)
                except Exception as e:
                    logger.error(
                        f"Error in handler {getattr(handler, '__name__', handler)} for {event.name}: {e}",
                        exc_info=True,
                    )

    def clear(self):
        self._event_handlers.clear()
        self._command_handlers.clear()


message_bus = MessageBus()
