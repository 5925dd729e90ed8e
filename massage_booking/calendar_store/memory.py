"""
In-memory Calendar Store

Keeps bookings in a dict. Used for local development
(``CALENDAR_PROVIDER=memory``) and by the test-suite.
"""

import itertools
import logging
import threading
from datetime import datetime
from typing import Dict, List

from .base import CalendarStore, CalendarStoreError
from massage_booking.scheduling.models import Booking

logger = logging.getLogger(__name__)


class InMemoryCalendarStore(CalendarStore):
	"""Adapter en memoria."""

	def __init__(self, bookings=None):
		self._events: Dict[str, Booking] = {}
		self._ids = itertools.count(1)
		self._lock = threading.Lock()
		for booking in bookings or []:
			self.insert_booking(booking)

	def list_bookings(self, start_datetime: datetime, end_datetime: datetime) -> List[Booking]:
		with self._lock:
			events = list(self._events.values())
		return sorted(
			(b for b in events if b.overlaps(start_datetime, end_datetime)),
			key=lambda b: (b.start, b.id)
		)

	def insert_booking(self, booking: Booking) -> str:
		with self._lock:
			event_id = f"mem-{next(self._ids)}"
			self._events[event_id] = booking.with_id(event_id)
		logger.debug(f"Inserted in-memory event {event_id} ({booking.service_id} {booking.start.isoformat()})")
		return event_id

	def delete_booking(self, event_id: str) -> None:
		with self._lock:
			if self._events.pop(event_id, None) is None:
				raise CalendarStoreError(f"Event '{event_id}' not found", event_id=event_id)

	def all_bookings(self) -> List[Booking]:
		"""Todas las reservas, ordenadas por inicio."""
		with self._lock:
			return sorted(self._events.values(), key=lambda b: (b.start, b.id))
