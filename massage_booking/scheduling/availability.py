"""
Availability Resolver

Decides whether a party can be booked at a given start, considering:
- Service catalog (every guest service must exist)
- Current time (no bookings in the past)
- Business hours
- Shared resource capacity (party-wide)
- Practitioner availability (per guest)

Checks run in that order and stop at the first failure. Capacity is checked
before practitioners: it is a party-wide constraint and gives the more
generally useful failure message.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from massage_booking.calendar_store.base import CalendarStore
from massage_booking.utils import now_datetime

from .booking import materialize
from .business_hours import is_within_business_hours
from .catalog import Service
from .errors import (
	AvailabilityError,
	CapacityExceeded,
	InvalidPartySize,
	OutOfHours,
	PastTime,
	PractitionerBusy,
	ValidationError,
)
from .models import Booking, GuestRequest
from .overlap import check_capacity
from .practitioner import is_practitioner_free


def validate_party(shop, guests: Sequence[GuestRequest]) -> List[Service]:
	"""
	Valida el tamaño del grupo y que todos los servicios existan.

	Returns:
		list[Service]: servicio de cada invitado, en orden

	Raises:
		InvalidPartySize: si hay 0 invitados o más que ``max_party_size``
		InvalidService: si algún servicio no existe
	"""
	if not 1 <= len(guests) <= shop.max_party_size:
		raise InvalidPartySize(
			f"Party size must be between 1 and {shop.max_party_size}, got {len(guests)}",
			party_size=len(guests),
			max_party_size=shop.max_party_size
		)

	return [shop.catalog.lookup(guest.service_id) for guest in guests]


def ensure_available(
	shop,
	store: CalendarStore,
	guests: Sequence[GuestRequest],
	start: datetime,
	now: Optional[datetime] = None,
	bookings: Optional[Iterable[Booking]] = None
) -> Dict[str, Any]:
	"""
	Igual que ``check_availability`` pero lanza la excepción del primer fallo.

	Returns:
		dict: {"start": datetime, "end": datetime, "planned": [Booking]}

	Raises:
		ValidationError: InvalidPartySize / InvalidService
		AvailabilityError: PastTime / OutOfHours / CapacityExceeded / PractitionerBusy
		UpstreamUnavailable: si falla el calendario externo
	"""
	# 1. Servicios
	services = validate_party(shop, guests)

	# 2. No reservar en el pasado
	now = now or now_datetime(shop.tz)
	if start < now:
		raise PastTime(
			f"Requested start {start.astimezone(shop.tz).strftime('%Y-%m-%d %H:%M')} is in the past",
			start=start.isoformat()
		)

	# 3. Horario de atención con la duración más larga del grupo
	max_duration = max(service.duration for service in services)
	hours = is_within_business_hours(start, max_duration, shop.weekly_hours, shop.tz)
	if not hours["valid"]:
		raise OutOfHours(hours["reason"], start=start.isoformat(), duration=max_duration)

	end = start + timedelta(minutes=max_duration)
	planned = materialize(shop, guests, start)

	if bookings is None:
		bookings = store.list_bookings(start, end)
	bookings = list(bookings)

	# 4. Capacidad por resource kind (todo el grupo, todos los componentes)
	kinds = sorted(set().union(*(booking.resources for booking in planned)))
	for kind in kinds:
		segments = [booking for booking in planned if kind in booking.resources]
		result = check_capacity(
			store,
			kind,
			shop.capacities[kind],
			min(s.start for s in segments),
			max(s.end for s in segments),
			requested_units=len(segments),
			bookings=bookings
		)
		if not result["available"]:
			raise CapacityExceeded(
				f"No '{kind}' capacity left: {result['capacity_used']} booking(s) overlap the window "
				f"and {len(segments)} more requested, capacity {result['capacity']}",
				resource_kind=kind,
				capacity=result["capacity"],
				capacity_used=result["capacity_used"],
				requested_units=len(segments)
			)

	# 5. Terapeuta de cada invitado, con la duración de su propio servicio
	claimed = []
	for guest, service in zip(guests, services):
		if not guest.practitioner:
			continue

		guest_end = start + timedelta(minutes=service.duration)
		busy_in_party = any(
			name == guest.practitioner and claimed_start < guest_end and claimed_end > start
			for name, claimed_start, claimed_end in claimed
		)
		if busy_in_party or not is_practitioner_free(store, guest.practitioner, start, guest_end, bookings=bookings):
			raise PractitionerBusy(
				f"Practitioner '{guest.practitioner}' is already booked at that time",
				practitioner=guest.practitioner
			)
		claimed.append((guest.practitioner, start, guest_end))

	return {"start": start, "end": end, "planned": planned}


def check_availability(
	shop,
	store: CalendarStore,
	guests: Sequence[GuestRequest],
	start: datetime,
	now: Optional[datetime] = None,
	bookings: Optional[Iterable[Booking]] = None
) -> Dict[str, Any]:
	"""
	Verifica si el grupo se puede reservar en ``start``.

	Args:
		shop: ShopConfig
		store: calendario externo
		guests: invitados (1..max_party_size)
		start: inicio solicitado (aware)
		now: hora actual (por defecto, ahora en la zona de la tienda)
		bookings: snapshot del store ya listado para el rango

	Returns:
		dict: {
			"available": bool,
			"start": datetime, "end": datetime (si está disponible),
			"reason": str, "message": str, ... (si no está disponible)
		}

	Los errores del calendario externo (UpstreamUnavailable) se propagan.
	"""
	try:
		window = ensure_available(shop, store, guests, start, now=now, bookings=bookings)
	except (ValidationError, AvailabilityError) as e:
		return {"available": False, **e.to_dict()}

	return {"available": True, "start": window["start"], "end": window["end"]}
