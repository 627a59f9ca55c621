# SPDX-License-Identifier: Apache-2.0

"""
In-memory event sink for local development and tests.
"""

import logging
from typing import List, Optional

from ..models.entities import ChildEvent
from ..models.enums import ChildEventType
from .interfaces import PublishResult

logger = logging.getLogger(__name__)


class InMemoryEventSink:
    """Event sink recording published events in order."""
    
    def __init__(self):
        self.events: List[ChildEvent] = []
    
    def publish(self, event: ChildEvent) -> PublishResult:
        """Record an event."""
        self.events.append(event)
        logger.debug(
            f"Recorded event {event.event_type} for child {event.child_id}",
            extra={"extra_fields": {
                "event_id": event.event_id,
                "event_type": event.event_type,
                "idempotency_key": event.idempotency_key
            }}
        )
        return PublishResult(success=True, correlation_id=event.correlation_id)
    
    def events_of_type(self, event_type: ChildEventType) -> List[ChildEvent]:
        """Recorded events of one type."""
        return [event for event in self.events if event.event_type == ChildEventType(event_type).value]
    
    @property
    def last_event(self) -> Optional[ChildEvent]:
        return self.events[-1] if self.events else None
    
    def clear(self) -> None:
        self.events.clear()
