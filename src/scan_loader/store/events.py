"""Typed notifications published by the dataset stores.

Subsystems subscribe when they are set up and unsubscribe at teardown:

    bus = EventBus()
    bus.subscribe(DatasetDeleted, on_deleted)
    bus.emit(DatasetDeleted(data_id="abc", data_type="image"))

Handlers run synchronously in subscription order. A failing handler is
logged and does not stop the others.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from contextlib import suppress
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="StoreEvent")


@dataclass(frozen=True)
class StoreEvent:
    pass


@dataclass(frozen=True)
class DatasetDeleted(StoreEvent):
    data_id: str = ""
    data_type: str = ""


EventHandler = Callable[[Any], None]


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[type, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        """No-op if the handler was not registered."""
        handlers = self._handlers.get(event_type)
        if handlers:
            with suppress(ValueError):
                handlers.remove(handler)

    def emit(self, event: StoreEvent) -> None:
        event_type = type(event)
        for handler in list(self._handlers.get(event_type, ())):
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "events: handler %s failed for %s",
                    getattr(handler, "__name__", repr(handler)),
                    event_type.__name__,
                )
