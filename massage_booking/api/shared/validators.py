"""
Booking-specific Validators

Input validation for the public booking API. Every validator raises a
``ValidationError`` subclass, which the app maps to a 400 response.
"""

import re
from datetime import date, datetime
from typing import Iterable, List, Optional

from massage_booking.scheduling.errors import MalformedTime, ValidationError
from massage_booking.scheduling.models import GuestRequest
from massage_booking.utils import get_datetime, getdate

PHONE_PATTERN = re.compile(r"^\+?[0-9][0-9\-\s()]{5,19}$")


def sanitize_string(value: Optional[str], max_length: int = 100) -> str:
	"""Quita espacios repetidos y caracteres de control, y recorta el largo."""
	if value is None:
		return ""
	value = re.sub(r"[\x00-\x1f\x7f]", "", str(value))
	value = re.sub(r"\s+", " ", value).strip()
	return value[:max_length]


def validate_date_string(date_str: str, field_name: str = "date") -> date:
	"""
	Validate date string format (YYYY-MM-DD).

	Returns:
		date: fecha validada

	Raises:
		MalformedTime: si el formato es inválido
	"""
	if not date_str:
		raise MalformedTime(f"{field_name} is required", field=field_name)

	date_str = str(date_str).strip()

	if not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
		raise MalformedTime(f"Invalid {field_name} format. Use YYYY-MM-DD", field=field_name)

	return getdate(date_str)


def validate_datetime_string(datetime_str: str, tz, field_name: str = "start") -> datetime:
	"""
	Validate and parse a datetime string.

	Acepta ISO 8601 con o sin offset ("2026-10-20T14:30:00+08:00",
	"2026-10-20 14:30"). Sin offset se interpreta en la zona de la tienda.

	Raises:
		MalformedTime: si no se puede interpretar o la hora local es ambigua
	"""
	if not datetime_str:
		raise MalformedTime(f"{field_name} is required", field=field_name)

	datetime_str = str(datetime_str).strip()

	if not re.match(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}", datetime_str):
		raise MalformedTime(
			f"Invalid {field_name} format. Use YYYY-MM-DDTHH:MM[:SS][+HH:MM]",
			field=field_name
		)

	return get_datetime(datetime_str, tz)


def validate_name(name: str, field_name: str = "name") -> str:
	"""Nombre del cliente: requerido, máximo 50 caracteres."""
	name = sanitize_string(name, max_length=50)
	if not name:
		raise ValidationError(f"{field_name} is required", field=field_name)
	return name


def validate_phone(phone: str, field_name: str = "phone") -> str:
	"""Teléfono: dígitos con separadores opcionales."""
	phone = sanitize_string(phone, max_length=20)
	if not phone:
		raise ValidationError(f"{field_name} is required", field=field_name)
	if not PHONE_PATTERN.match(phone):
		raise ValidationError(f"Invalid {field_name}", field=field_name)
	return phone


def build_guests(guests: Iterable) -> List[GuestRequest]:
	"""Convierte los invitados del request en ``GuestRequest``."""
	return [
		GuestRequest(
			service_id=sanitize_string(guest.service_id, max_length=50),
			practitioner=sanitize_string(guest.practitioner, max_length=50) or None,
		)
		for guest in guests
	]
