"""
Booking Materializer

Turns an approved party request into the bookings that are written to the
calendar, and commits them.

A composite service (e.g. foot + body) becomes one booking per component,
back to back: component i ends exactly where component i+1 starts.

Commit policy: inserts are independent calls to the calendar, so a failure
partway through triggers compensating deletes of the sub-bookings already
inserted. If a compensating delete fails too, ``PartialCommitFailure`` names
the events left behind.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from massage_booking.calendar_store.base import CalendarStore

from .errors import PartialCommitFailure, UpstreamUnavailable
from .models import Booking, Customer, GuestRequest

logger = logging.getLogger(__name__)


def materialize(
	shop,
	guests: Sequence[GuestRequest],
	approved_start: datetime,
	customer: Optional[Customer] = None,
	party_id: str = ""
) -> List[Booking]:
	"""
	Divide la reserva del grupo en sub-reservas consecutivas.

	Args:
		shop: ShopConfig
		guests: invitados en orden
		approved_start: inicio aprobado por el resolver
		customer: datos de contacto (se copian en cada sub-reserva)
		party_id: identificador común del grupo

	Returns:
		list[Booking]: sin id (todavía no están en el calendario)
	"""
	bookings = []

	for guest_index, guest in enumerate(guests):
		service = shop.catalog.lookup(guest.service_id)
		cursor = approved_start

		for part in shop.catalog.plan_components(service):
			end = cursor + timedelta(minutes=part.duration)
			bookings.append(Booking(
				service_id=part.service.id,
				resources=part.service.resources,
				start=cursor,
				end=end,
				practitioner=guest.practitioner or None,
				customer_name=customer.name if customer else "",
				phone=customer.phone if customer else "",
				guest_index=guest_index,
				party_id=party_id,
				parent_service_id=service.id if service.is_composite else None,
			))
			cursor = end

	return bookings


def commit_bookings(store: CalendarStore, bookings: Sequence[Booking]) -> List[Booking]:
	"""
	Inserta cada sub-reserva en el calendario.

	Returns:
		list[Booking]: reservas con el id del evento creado

	Raises:
		UpstreamUnavailable: si un insert falla (las anteriores se eliminaron)
		PartialCommitFailure: si además no se pudieron eliminar las anteriores
	"""
	committed: List[Booking] = []

	for booking in bookings:
		try:
			event_id = store.insert_booking(booking)
		except Exception as e:
			_compensate(store, committed, e)
			raise

		committed.append(booking.with_id(event_id))

	return committed


def _compensate(store: CalendarStore, committed: List[Booking], cause: Exception) -> None:
	"""Elimina las sub-reservas ya insertadas, en orden inverso."""
	if not committed:
		return

	logger.warning(
		f"Insert failed after {len(committed)} sub-booking(s) of party "
		f"{committed[0].party_id or '-'}, rolling back: {cause}"
	)

	orphaned = []
	for booking in reversed(committed):
		try:
			store.delete_booking(booking.id)
		except UpstreamUnavailable as e:
			logger.error(f"Compensating delete of {booking.id} failed: {e}", exc_info=True)
			orphaned.append(booking.id)

	if orphaned:
		raise PartialCommitFailure(
			f"Booking partially committed; {len(orphaned)} event(s) could not be removed",
			orphaned_event_ids=orphaned
		) from cause
