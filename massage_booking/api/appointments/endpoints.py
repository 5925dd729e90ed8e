"""
Booking API Endpoints

Thin HTTP boundary over the scheduling services:
- Input parsing and sanitization
- Mapping of scheduling results to responses
- Booking errors are turned into status codes by the app's exception handlers
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from massage_booking.api.schemas import (
	AvailabilityRequest,
	AvailabilityResponse,
	BookingRecord,
	BookingRequest,
	BookingResponse,
	NextAvailableRequest,
	NextAvailableResponse,
	ServiceInfo,
	SlotInfo,
)
from massage_booking.api.shared import (
	build_guests,
	sanitize_string,
	validate_date_string,
	validate_datetime_string,
	validate_name,
	validate_phone,
)
from massage_booking.scheduling.availability import check_availability
from massage_booking.scheduling.errors import AvailabilityError
from massage_booking.scheduling.models import Customer
from massage_booking.scheduling.reservation import place_booking
from massage_booking.scheduling.slots import (
	find_next_available,
	guests_for_services,
	list_available_starts,
)
from massage_booking.utils import now_datetime

logger = logging.getLogger(__name__)

router = APIRouter()


def _context(request: Request):
	state = request.app.state
	return state.shop, state.store


@router.get("/health")
def health(request: Request) -> Dict[str, Any]:
	"""Ping para mantener el servicio despierto."""
	shop = request.app.state.shop
	return {"ok": True, "time": now_datetime(shop.tz).isoformat()}


@router.get("/api/services", response_model=List[ServiceInfo])
def get_services(request: Request) -> List[ServiceInfo]:
	"""
	Lista el catálogo de servicios.

	Example Response:
		```json
		[
			{"id": "combo_100", "name": "腳底+全身100分", "duration": 100,
			 "resources": ["body", "foot"], "components": ["foot_40", "body_60"]}
		]
		```
	"""
	shop, _ = _context(request)
	return [
		ServiceInfo(
			id=service.id,
			name=service.name,
			duration=service.duration,
			resources=sorted(service.resources),
			components=list(service.components),
		)
		for service in shop.catalog
	]


@router.post("/api/availability", response_model=AvailabilityResponse)
def post_availability(payload: AvailabilityRequest, request: Request) -> AvailabilityResponse:
	"""
	Verifica si un grupo se puede reservar en un horario.

	Un horario no disponible no es un error: responde 200 con
	``available = false`` y el motivo.
	"""
	shop, store = _context(request)

	start = validate_datetime_string(payload.start, shop.tz)
	guests = build_guests(payload.guests)

	result = check_availability(shop, store, guests, start)
	return AvailabilityResponse(
		available=result["available"],
		start=result.get("start"),
		end=result.get("end"),
		reason=result.get("reason"),
		message=result.get("message"),
	)


@router.post("/api/next-available", response_model=NextAvailableResponse)
def post_next_available(payload: NextAvailableRequest, request: Request) -> NextAvailableResponse:
	"""Primer inicio disponible en un día (o en las próximas horas si no se indica día)."""
	shop, store = _context(request)

	target_day = validate_date_string(payload.date) if payload.date else None
	service_ids = [sanitize_string(s, max_length=50) for s in payload.service_ids]
	practitioner = sanitize_string(payload.practitioner, max_length=50) or None

	start = find_next_available(shop, store, service_ids, target_day=target_day, practitioner=practitioner)
	return NextAvailableResponse(found=start is not None, start=start)


@router.get("/api/slots", response_model=List[SlotInfo])
def get_slots(
	request: Request,
	service_id: List[str] = Query(...),
	date: str = Query(...),
	practitioner: Optional[str] = None
) -> List[SlotInfo]:
	"""
	Todos los inicios disponibles de un día.

	``service_id`` se repite una vez por invitado:
	``/api/slots?service_id=combo_100&service_id=body_60&date=2026-10-20``
	"""
	shop, store = _context(request)

	target_day = validate_date_string(date)
	service_ids = [sanitize_string(s, max_length=50) for s in service_id]
	guests = guests_for_services(service_ids, sanitize_string(practitioner, max_length=50) or None)

	return [SlotInfo(**slot) for slot in list_available_starts(shop, store, guests, target_day)]


@router.post("/api/bookings", response_model=BookingResponse)
def post_booking(payload: BookingRequest, request: Request):
	"""
	Crea la reserva de un grupo.

	Si el horario ya no está disponible responde 409 con el motivo y
	``next_available``: el siguiente inicio disponible del mismo día, a partir
	de la hora solicitada.
	"""
	shop, store = _context(request)
	state = request.app.state

	customer = Customer(name=validate_name(payload.name), phone=validate_phone(payload.phone))
	start = validate_datetime_string(payload.start, shop.tz)
	guests = build_guests(payload.guests)

	try:
		result = place_booking(
			shop,
			store,
			guests,
			start,
			customer,
			lock=state.booking_lock,
			audit_log=state.audit_log
		)
	except AvailabilityError as e:
		# Buscar desde la hora solicitada (o desde ahora si ya pasó)
		search_from = max(start, now_datetime(shop.tz))
		suggestion = find_next_available(
			shop, store, [], target_day=start.astimezone(shop.tz).date(), now=search_from, guests=guests
		)
		logger.info(f"Booking rejected ({e.code}) for {customer.name}: {e.message}")
		return JSONResponse(
			status_code=409,
			content={
				"success": False,
				**e.to_dict(),
				"next_available": suggestion.isoformat() if suggestion else None,
			}
		)

	return BookingResponse(
		success=True,
		message="Booking confirmed",
		party_id=result["party_id"],
		start=result["start"],
		end=result["end"],
		bookings=[
			BookingRecord(
				event_id=booking.id,
				service_id=booking.service_id,
				parent_service_id=booking.parent_service_id,
				guest_index=booking.guest_index,
				start=booking.start,
				end=booking.end,
				practitioner=booking.practitioner,
			)
			for booking in result["bookings"]
		],
	)
