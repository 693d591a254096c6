"""
Event bus for planner domain events.

Typed publish/subscribe channel between the planner service and its
consumers (day view session, reporting, notification adapters). Handlers
subscribe to concrete event classes; a failing handler is logged and does
not stop delivery to the others.
"""

import asyncio
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

from ...core.observability import get_logger
from ...domain.scheduling.events.domain_events import DomainEvent

logger = get_logger(__name__)

E = TypeVar("E", bound=DomainEvent)

Handler = Callable[[Any], None]
AsyncHandler = Callable[[Any], Awaitable[None]]


class EventBusInterface(ABC):
    """
    Abstract interface for event bus implementations.

    Defines the contract for publishing events and subscribing to event types.
    """

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        """
        Publish a domain event to all registered synchronous handlers.

        Args:
            event: Domain event to publish
        """
        pass

    @abstractmethod
    async def publish_async(self, event: DomainEvent) -> None:
        """
        Publish a domain event to synchronous and asynchronous handlers.

        Args:
            event: Domain event to publish
        """
        pass

    @abstractmethod
    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        pass

    @abstractmethod
    def unsubscribe(self, event_type: type[DomainEvent], handler: Callable) -> None:
        pass

    @abstractmethod
    def clear_handlers(self, event_type: type[DomainEvent] | None = None) -> None:
        """
        Clear event handlers.

        Args:
            event_type: Optional event type to clear handlers for. If None, clears all.
        """
        pass


class InMemoryEventBus(EventBusInterface):
    """
    In-memory implementation of the event bus.

    Events are delivered in publish order, synchronous handlers before
    asynchronous ones. Handlers registered for ``DomainEvent`` receive
    every event.
    """

    def __init__(self, max_history_size: int = 1000) -> None:
        self._handlers: dict[type[DomainEvent], list[Handler]] = defaultdict(list)
        self._async_handlers: dict[type[DomainEvent], list[AsyncHandler]] = defaultdict(
            list
        )
        self._event_history: list[DomainEvent] = []
        self._max_history_size = max_history_size

    def publish(self, event: DomainEvent) -> None:
        self._add_to_history(event)
        handlers = self._resolve(self._handlers, event)

        if not handlers:
            logger.debug("event_unhandled", event_type=event.event_type)
            return

        logger.info(
            "event_published", event_type=event.event_type, handlers=len(handlers)
        )
        for handler in handlers:
            self._safe_handle_sync(handler, event)

    async def publish_async(self, event: DomainEvent) -> None:
        self._add_to_history(event)
        sync_handlers = self._resolve(self._handlers, event)
        async_handlers = self._resolve(self._async_handlers, event)

        if not sync_handlers and not async_handlers:
            logger.debug("event_unhandled", event_type=event.event_type)
            return

        logger.info(
            "event_published",
            event_type=event.event_type,
            handlers=len(sync_handlers) + len(async_handlers),
        )
        for handler in sync_handlers:
            self._safe_handle_sync(handler, event)
        if async_handlers:
            await asyncio.gather(
                *(self._safe_handle_async(handler, event) for handler in async_handlers)
            )

    async def publish_all(self, events: Iterable[DomainEvent]) -> None:
        """Publish several events in order."""
        for event in events:
            await self.publish_async(event)

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        """
        Subscribe a synchronous handler to a specific event type.

        Args:
            event_type: Type of event to subscribe to
            handler: Handler function to call when event is published
        """
        if handler in self._handlers[event_type]:
            logger.warning(
                "handler_already_subscribed", event_type=event_type.__name__
            )
            return
        self._handlers[event_type].append(handler)
        logger.debug("handler_subscribed", event_type=event_type.__name__)

    def subscribe_async(
        self, event_type: type[E], handler: Callable[[E], Awaitable[None]]
    ) -> None:
        """
        Subscribe an asynchronous handler to a specific event type.

        Async handlers only run for events published with ``publish_async``.
        """
        if handler in self._async_handlers[event_type]:
            logger.warning(
                "handler_already_subscribed", event_type=event_type.__name__
            )
            return
        self._async_handlers[event_type].append(handler)
        logger.debug("async_handler_subscribed", event_type=event_type.__name__)

    def unsubscribe(self, event_type: type[DomainEvent], handler: Callable) -> None:
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)
        elif handler in self._async_handlers[event_type]:
            self._async_handlers[event_type].remove(handler)
        else:
            logger.warning("handler_not_found", event_type=event_type.__name__)
            return
        logger.debug("handler_unsubscribed", event_type=event_type.__name__)

    def clear_handlers(self, event_type: type[DomainEvent] | None = None) -> None:
        if event_type:
            self._handlers.pop(event_type, None)
            self._async_handlers.pop(event_type, None)
            logger.info("handlers_cleared", event_type=event_type.__name__)
        else:
            self._handlers.clear()
            self._async_handlers.clear()
            logger.info("handlers_cleared")

    def get_handler_count(self, event_type: type[DomainEvent]) -> int:
        """Number of handlers registered for exactly ``event_type`` (sync + async)."""
        return len(self._handlers.get(event_type, [])) + len(
            self._async_handlers.get(event_type, [])
        )

    def get_event_history(
        self, event_type: type[DomainEvent] | None = None
    ) -> list[DomainEvent]:
        """
        Get history of published events.

        Args:
            event_type: Optional event type to filter by

        Returns:
            List of published events, oldest first
        """
        if event_type:
            return [event for event in self._event_history if type(event) is event_type]
        return self._event_history.copy()

    def clear_event_history(self) -> None:
        self._event_history.clear()

    def _add_to_history(self, event: DomainEvent) -> None:
        self._event_history.append(event)
        if len(self._event_history) > self._max_history_size:
            self._event_history.pop(0)  # Remove oldest event

    @staticmethod
    def _resolve(registry: dict, event: DomainEvent) -> list:
        # Walk the MRO so base-class subscribers see subclass events
        handlers: list = []
        for cls in type(event).__mro__:
            if cls in registry:
                handlers.extend(registry[cls])
            if cls is DomainEvent:
                break
        return handlers

    @staticmethod
    def _safe_handle_sync(handler: Handler, event: DomainEvent) -> None:
        try:
            handler(event)
        except Exception as e:
            logger.error(
                "event_handler_failed",
                event_type=event.event_type,
                handler=getattr(handler, "__qualname__", repr(handler)),
                error=str(e),
                exc_info=True,
            )

    @staticmethod
    async def _safe_handle_async(handler: AsyncHandler, event: DomainEvent) -> None:
        try:
            await handler(event)
        except Exception as e:
            logger.error(
                "event_handler_failed",
                event_type=event.event_type,
                handler=getattr(handler, "__qualname__", repr(handler)),
                error=str(e),
                exc_info=True,
            )
