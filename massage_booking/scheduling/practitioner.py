"""
Practitioner Ledger

A practitioner can be booked on at most one booking at any instant. The
ledger only looks at the practitioner tag of the listed bookings; it does not
know which services a practitioner performs.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from massage_booking.calendar_store.base import CalendarStore

from .models import Booking


def practitioner_bookings(
	bookings: Iterable[Booking],
	practitioner: str,
	start_datetime: datetime,
	end_datetime: datetime
) -> List[Booking]:
	"""Reservas del terapeuta que se solapan estrictamente con el rango."""
	return [
		booking for booking in bookings
		if booking.practitioner == practitioner and booking.overlaps(start_datetime, end_datetime)
	]


def is_practitioner_free(
	store: CalendarStore,
	practitioner: Optional[str],
	start_datetime: datetime,
	end_datetime: datetime,
	bookings: Optional[Iterable[Booking]] = None
) -> bool:
	"""
	True si el terapeuta no tiene reservas en ``[start_datetime, end_datetime)``.

	Una solicitud sin terapeuta siempre pasa (solo se valida capacidad).
	"""
	if not practitioner:
		return True

	if bookings is None:
		bookings = store.list_bookings(start_datetime, end_datetime)

	return not practitioner_bookings(bookings, practitioner, start_datetime, end_datetime)
