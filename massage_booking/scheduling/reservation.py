"""
Reservation flow

Two-phase booking of a party:
1. Reserve/validate: the availability resolver approves the exact window
2. Commit: the materialized sub-bookings are inserted, with compensation

The calendar has no reservation primitive, so the check and the commit are
run under an optional writer lock supplied by the caller. Without the lock
two concurrent requests can both pass the check against the same snapshot.
"""

import logging
import uuid
from contextlib import nullcontext
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from massage_booking.calendar_store.base import CalendarStore

from .availability import ensure_available
from .booking import commit_bookings, materialize
from .errors import ValidationError
from .models import Customer, GuestRequest

logger = logging.getLogger(__name__)


def generate_party_id() -> str:
	return f"party_{uuid.uuid4().hex[:8]}"


def place_booking(
	shop,
	store: CalendarStore,
	guests: Sequence[GuestRequest],
	start: datetime,
	customer: Customer,
	now: Optional[datetime] = None,
	lock=None,
	audit_log=None
) -> Dict[str, Any]:
	"""
	Valida y crea la reserva de un grupo.

	Args:
		shop: ShopConfig
		store: calendario externo
		guests: invitados
		start: inicio solicitado
		customer: nombre y teléfono
		now: hora actual (tests)
		lock: lock de escritura (threading.Lock) para serializar check + commit
		audit_log: SheetAuditLog opcional

	Returns:
		dict: {
			"party_id": str,
			"start": datetime,
			"end": datetime,
			"bookings": [Booking con id]
		}

	Raises:
		ValidationError, AvailabilityError, UpstreamUnavailable, PartialCommitFailure
	"""
	if not customer.name or not customer.name.strip():
		raise ValidationError("Customer name is required", field="name")
	if not customer.phone or not customer.phone.strip():
		raise ValidationError("Customer phone is required", field="phone")

	party_id = generate_party_id()

	with lock if lock is not None else nullcontext():
		# Fase 1: validar contra un snapshot fresco del calendario
		window = ensure_available(shop, store, guests, start, now=now)

		# Fase 2: crear las sub-reservas (con compensación)
		planned = materialize(shop, guests, start, customer=customer, party_id=party_id)
		committed = commit_bookings(store, planned)

	logger.info(
		f"Booked {party_id}: {len(guests)} guest(s), {len(committed)} event(s) "
		f"at {start.astimezone(shop.tz).strftime('%Y-%m-%d %H:%M')} for {customer.name}"
	)

	if audit_log is not None:
		audit_log.record(committed)

	return {
		"party_id": party_id,
		"start": window["start"],
		"end": window["end"],
		"bookings": committed,
	}
