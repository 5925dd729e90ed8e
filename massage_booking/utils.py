"""
Date and time helpers

Timezone-aware replacements for the datetime helpers the scheduling
services need. All datetimes handled by the engine are aware and
localized with ``pytz``.
"""

from datetime import date, datetime, time, timedelta
from typing import Union

import pytz
from dateutil import parser as date_parser

from massage_booking.scheduling.errors import MalformedTime


def now_datetime(tz: pytz.tzinfo.BaseTzInfo) -> datetime:
	"""Fecha y hora actual en la zona horaria de la tienda."""
	return datetime.now(pytz.UTC).astimezone(tz)


def localize(value: datetime, tz: pytz.tzinfo.BaseTzInfo) -> datetime:
	"""
	Localiza un datetime naive o convierte uno aware a ``tz``.

	Raises:
		MalformedTime: si la hora local es ambigua o no existe (cambio de horario)
	"""
	if value.tzinfo is not None:
		return value.astimezone(tz)

	try:
		return tz.localize(value, is_dst=None)
	except (pytz.AmbiguousTimeError, pytz.NonExistentTimeError) as e:
		raise MalformedTime(f"Ambiguous or non-existent local time: {value.isoformat()}") from e


def get_datetime(value: Union[str, datetime], tz: pytz.tzinfo.BaseTzInfo) -> datetime:
	"""
	Convierte un string o datetime a datetime aware en ``tz``.

	Raises:
		MalformedTime: si el valor no se puede interpretar
	"""
	if isinstance(value, datetime):
		return localize(value, tz)

	if not value or not str(value).strip():
		raise MalformedTime("Time is required")

	try:
		parsed = date_parser.isoparse(str(value).strip())
	except (ValueError, OverflowError):
		try:
			parsed = date_parser.parse(str(value).strip())
		except (ValueError, OverflowError) as e:
			raise MalformedTime(f"Cannot parse time: {value!r}") from e

	return localize(parsed, tz)


def getdate(value: Union[str, date, datetime]) -> date:
	"""Convierte string (YYYY-MM-DD), date o datetime a date."""
	if isinstance(value, datetime):
		return value.date()
	if isinstance(value, date):
		return value

	try:
		return date.fromisoformat(str(value).strip())
	except ValueError as e:
		raise MalformedTime(f"Invalid date: {value!r}. Use YYYY-MM-DD") from e


def start_of_day(day: date, tz: pytz.tzinfo.BaseTzInfo) -> datetime:
	"""Medianoche local del día ``day``."""
	return tz.localize(datetime.combine(day, time.min))


def round_up_to_step(value: datetime, step_minutes: int) -> datetime:
	"""
	Redondea hacia arriba a la grilla de ``step_minutes`` (en hora local).

	Un valor que ya está sobre la grilla (sin segundos) no cambia.
	"""
	floored = value.replace(second=0, microsecond=0)
	minutes_past = floored.minute % step_minutes

	if minutes_past == 0 and floored == value:
		return value

	rounded = floored + timedelta(minutes=step_minutes - minutes_past)
	# Normalizar por si cruzamos un cambio de offset
	return rounded.tzinfo.normalize(rounded) if hasattr(rounded.tzinfo, "normalize") else rounded
