# SPDX-License-Identifier: Apache-2.0

"""
Tests for the clock and the in-memory event sink.
"""

from datetime import date, datetime, timezone

from lac_registry.models import ChildEvent, ChildEventType
from lac_registry.services.events import InMemoryEventSink
from lac_registry.services.interfaces import EventSink
from lac_registry.utils.clock import Clock, FixedClock, SystemClock


class TestClocks:
    """Test clock implementations."""
    
    def test_fixed_clock(self):
        clock = FixedClock.on(date(2025, 3, 3))
        
        assert clock.now() == datetime(2025, 3, 3, 9, tzinfo=timezone.utc)
        assert clock.today() == date(2025, 3, 3)
    
    def test_naive_instant_is_utc(self):
        clock = FixedClock(datetime(2025, 3, 3, 12))
        assert clock.now().tzinfo == timezone.utc
    
    def test_advance(self):
        clock = FixedClock.on(date(2025, 2, 28), hour=23)
        
        clock.advance(hours=2)
        
        assert clock.today() == date(2025, 3, 1)
        clock.advance(days=30)
        assert clock.today() == date(2025, 3, 31)
    
    def test_system_clock_is_utc(self):
        clock = SystemClock()
        
        assert isinstance(clock, Clock)
        assert clock.now().tzinfo == timezone.utc


class TestInMemoryEventSink:
    """Test event recording."""
    
    def _event(self, event_type: ChildEventType) -> ChildEvent:
        return ChildEvent(
            event_type=event_type,
            child_id="child-123",
            organization_id="org-123",
            actor_id="user-123",
            occurred_at=datetime(2025, 3, 3, 9, tzinfo=timezone.utc)
        )
    
    def test_records_in_order(self):
        sink = InMemoryEventSink()
        
        result = sink.publish(self._event(ChildEventType.CHILD_ADMITTED))
        sink.publish(self._event(ChildEventType.CHILD_MARKED_MISSING))
        sink.publish(self._event(ChildEventType.CHILD_RETURNED))
        
        assert isinstance(sink, EventSink)
        assert result.success is True
        assert len(sink.events) == 3
        assert sink.last_event.event_type == "ChildReturned"
        assert len(sink.events_of_type(ChildEventType.CHILD_MARKED_MISSING)) == 1
    
    def test_clear(self):
        sink = InMemoryEventSink()
        sink.publish(self._event(ChildEventType.CHILD_ADMITTED))
        
        sink.clear()
        
        assert sink.events == []
        assert sink.last_event is None
