"""
In-process domain event bus (Observer Pattern).

Events are published by services after a successful commit. Subscribers are
side-channel only; the audit trail is written transactionally by the services
themselves and never depends on a handler running.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Type

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    user_id: Optional[str] = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass
class PlanningDataSavedEvent(DomainEvent):
    version_id: int = 0
    changed: int = 0
    unchanged: int = 0


@dataclass
class VersionStatusChangedEvent(DomainEvent):
    version_id: int = 0
    old_status: str = ""
    new_status: str = ""


@dataclass
class VersionCopiedEvent(DomainEvent):
    source_version_id: int = 0
    new_version_id: int = 0
    rows_copied: int = 0


@dataclass
class AlertsEvaluatedEvent(DomainEvent):
    version_id: int = 0
    created: int = 0
    refreshed: int = 0


@dataclass
class KeyFigureChangedEvent(DomainEvent):
    key_figure_id: int = 0
    code: str = ""
    action: str = ""


Handler = Callable[[DomainEvent], None]


class EventBus:

    def __init__(self):
        self._handlers: Dict[Type[DomainEvent], List[Handler]] = {}

    def subscribe(self, event_type: Type[DomainEvent], handler: Handler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def clear(self) -> None:
        self._handlers.clear()

    def publish(self, event: DomainEvent) -> None:
        for event_type, handlers in self._handlers.items():
            if not isinstance(event, event_type):
                continue
            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    logger.exception("event_handler_failed event=%s handler=%r", event.name, handler)


class LoggingHandler:

    def __call__(self, event: DomainEvent) -> None:
        fields = {k: v for k, v in vars(event).items() if k != "occurred_at"}
        logger.info("domain_event %s", event.name, extra={"event": event.name, **fields})


_bus = EventBus()


def get_event_bus() -> EventBus:
    return _bus


def configure_event_bus() -> EventBus:
    _bus.clear()
    _bus.subscribe(DomainEvent, LoggingHandler())
    return _bus
