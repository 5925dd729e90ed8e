"""
Slot Search

Finds the earliest start at which a party can be booked by probing candidate
starts on a fixed step grid, and lists every feasible start of a day for UI
display.

The scan is linear: the horizon is one business day (or a fixed lookahead)
and the step is 5 or 10 minutes, so a search makes at most a few hundred
candidate checks.
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from massage_booking.calendar_store.base import CalendarStore
from massage_booking.utils import now_datetime, round_up_to_step, start_of_day

from .availability import check_availability, validate_party
from .business_hours import is_within_business_hours
from .models import GuestRequest


def guests_for_services(service_ids: Sequence[str], practitioner: Optional[str] = None) -> List[GuestRequest]:
	"""
	Un invitado por servicio.

	El terapeuta, si se indica, se asigna al primer invitado: un terapeuta
	no puede atender a dos invitados a la vez.
	"""
	return [
		GuestRequest(service_id=service_id, practitioner=practitioner if index == 0 else None)
		for index, service_id in enumerate(service_ids)
	]


def _search_window(shop, target_day: Optional[date], now: datetime) -> Tuple[datetime, datetime]:
	"""
	Rango de búsqueda [primer candidato, fin del horizonte).

	- Con día: desde max(inicio del día, ahora redondeado) hasta fin del día
	- Sin día: desde ahora redondeado hasta ahora + lookahead_hours
	"""
	first = round_up_to_step(now, shop.step_minutes)

	if target_day is None:
		return first, now + timedelta(hours=shop.lookahead_hours)

	day_start = start_of_day(target_day, shop.tz)
	day_end = start_of_day(target_day + timedelta(days=1), shop.tz)
	return max(day_start, first), day_end


def _candidates(shop, first: datetime, horizon_end: datetime) -> Iterator[datetime]:
	step = timedelta(minutes=shop.step_minutes)
	candidate = first
	while candidate < horizon_end:
		yield candidate
		candidate = shop.tz.normalize(candidate + step)


def find_next_available(
	shop,
	store: CalendarStore,
	service_ids: Sequence[str],
	target_day: Optional[date] = None,
	practitioner: Optional[str] = None,
	now: Optional[datetime] = None,
	guests: Optional[Sequence[GuestRequest]] = None
) -> Optional[datetime]:
	"""
	Busca el primer inicio disponible.

	Args:
		shop: ShopConfig
		store: calendario externo
		service_ids: un servicio por invitado
		target_day: día a buscar; None = próximas ``lookahead_hours`` horas
		practitioner: terapeuta solicitado (primer invitado)
		now: hora actual (tests)
		guests: invitados explícitos; reemplaza service_ids/practitioner

	Returns:
		datetime del primer inicio disponible, o None si no hay

	Algoritmo:
		1. Validar grupo y servicios (antes de consultar el calendario)
		2. Generar candidatos cada ``step_minutes``
		3. Descartar sin consultar el calendario los que caen fuera de horario
		4. Consultar el resolver; devolver el primero disponible

	Un error del calendario termina la búsqueda (no se trata como "no disponible").
	"""
	if guests is None:
		guests = guests_for_services(service_ids, practitioner)

	services = validate_party(shop, guests)
	max_duration = max(service.duration for service in services)

	now = (now or now_datetime(shop.tz)).astimezone(shop.tz)
	first, horizon_end = _search_window(shop, target_day, now)

	for candidate in _candidates(shop, first, horizon_end):
		if not is_within_business_hours(candidate, max_duration, shop.weekly_hours, shop.tz)["valid"]:
			continue

		result = check_availability(shop, store, guests, candidate, now=now)
		if result["available"]:
			return candidate

	return None


def list_available_starts(
	shop,
	store: CalendarStore,
	guests: Sequence[GuestRequest],
	target_day: date,
	now: Optional[datetime] = None
) -> List[Dict[str, Any]]:
	"""
	Lista todos los inicios disponibles de un día para mostrar en la UI.

	A diferencia de ``find_next_available``, lista el calendario una sola vez
	para todo el día y evalúa cada candidato contra ese snapshot.

	Returns:
		list[dict]: [
			{"start": datetime, "end": datetime},
			...
		]
	"""
	services = validate_party(shop, guests)
	max_duration = max(service.duration for service in services)

	now = (now or now_datetime(shop.tz)).astimezone(shop.tz)
	first, horizon_end = _search_window(shop, target_day, now)
	if first >= horizon_end:
		return []

	bookings = store.list_bookings(start_of_day(target_day, shop.tz), horizon_end)

	slots = []
	for candidate in _candidates(shop, first, horizon_end):
		if not is_within_business_hours(candidate, max_duration, shop.weekly_hours, shop.tz)["valid"]:
			continue

		result = check_availability(shop, store, guests, candidate, now=now, bookings=bookings)
		if result["available"]:
			slots.append({"start": result["start"], "end": result["end"]})

	return slots
