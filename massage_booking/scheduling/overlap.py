"""
Resource Ledger

Counts the units of a shared resource kind already committed in a time
window and compares them with the kind's fixed capacity. Committed units are
derived from the bookings listed by the calendar store, using strict overlap
so that back-to-back bookings never conflict.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from massage_booking.calendar_store.base import CalendarStore

from .models import Booking


def overlapping_bookings(
	bookings: Iterable[Booking],
	resource_kind: str,
	start_datetime: datetime,
	end_datetime: datetime
) -> List[Booking]:
	"""
	Reservas que usan ``resource_kind`` y se solapan con el rango.

	Condición de overlap: existing.start < end_datetime AND existing.end > start_datetime
	"""
	return [
		booking for booking in bookings
		if resource_kind in booking.resources and booking.overlaps(start_datetime, end_datetime)
	]


def committed_bookings(
	store: CalendarStore,
	resource_kind: str,
	start_datetime: datetime,
	end_datetime: datetime,
	bookings: Optional[Iterable[Booking]] = None
) -> List[Booking]:
	"""Reservas del store (o del snapshot) que ocupan ``resource_kind`` en el rango."""
	if bookings is None:
		bookings = store.list_bookings(start_datetime, end_datetime)

	return overlapping_bookings(bookings, resource_kind, start_datetime, end_datetime)


def count_committed_units(
	store: CalendarStore,
	resource_kind: str,
	start_datetime: datetime,
	end_datetime: datetime,
	bookings: Optional[Iterable[Booking]] = None
) -> int:
	"""
	Unidades de ``resource_kind`` comprometidas en ``[start_datetime, end_datetime)``.

	Args:
		store: calendario externo (fuente de verdad)
		resource_kind: tipo de recurso ("body", "foot", ...)
		start_datetime: inicio de la ventana
		end_datetime: fin de la ventana
		bookings: snapshot ya listado del store; si es None se consulta el store

	Returns:
		int: cantidad de reservas que ocupan el recurso en la ventana
	"""
	return len(committed_bookings(store, resource_kind, start_datetime, end_datetime, bookings=bookings))


def check_capacity(
	store: CalendarStore,
	resource_kind: str,
	capacity: int,
	start_datetime: datetime,
	end_datetime: datetime,
	requested_units: int = 1,
	bookings: Optional[Iterable[Booking]] = None
) -> Dict[str, Any]:
	"""
	Verifica que quede capacidad para ``requested_units`` nuevas reservas.

	Returns:
		dict: {
			"available": bool,
			"resource_kind": str,
			"capacity": int,
			"capacity_used": int,  # reservas que se solapan con la ventana, no un pico simultáneo
			"capacity_available": int,
			"overlapping_bookings": [list of booking ids]
		}

	Algoritmo:
		1. Listar reservas del rango (o usar el snapshot)
		2. Filtrar las que usan el recurso y se solapan estrictamente
		3. Comparar committed + requested <= capacity
	"""
	overlapping = committed_bookings(store, resource_kind, start_datetime, end_datetime, bookings=bookings)
	capacity_used = len(overlapping)

	return {
		"available": capacity_used + requested_units <= capacity,
		"resource_kind": resource_kind,
		"capacity": capacity,
		"capacity_used": capacity_used,
		"capacity_available": max(0, capacity - capacity_used),
		"overlapping_bookings": [b.id for b in overlapping if b.id],
	}
