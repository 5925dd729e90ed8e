"""
Business Calendar

Weekly opening hours of the shop and the time-window validity check.

Boundary convention (minute level, shop local time):
- a booking may start exactly at the opening hour
- a booking may end exactly at the closing hour
- one minute before opening or one minute past closing is rejected
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Sequence

import pytz

from massage_booking.utils import start_of_day

WEEKDAY_NAMES = (
	"Monday",
	"Tuesday",
	"Wednesday",
	"Thursday",
	"Friday",
	"Saturday",
	"Sunday",
)


@dataclass(frozen=True)
class OpeningHours:
	"""Franja de apertura de un día. ``close_hour`` 24 = medianoche."""

	open_hour: int
	close_hour: int

	def __post_init__(self):
		if not 0 <= self.open_hour < self.close_hour <= 24:
			raise ValueError(f"Invalid opening hours {self.open_hour}-{self.close_hour}")


# Lunes a domingo; None = cerrado
DEFAULT_WEEKLY_HOURS = (
	OpeningHours(11, 22),
	OpeningHours(11, 22),
	OpeningHours(11, 22),
	OpeningHours(11, 22),
	OpeningHours(11, 22),
	OpeningHours(10, 21),
	OpeningHours(10, 21),
)


def validate_weekly_hours(weekly_hours: Sequence[Optional[OpeningHours]]) -> None:
	"""La tabla semanal debe tener exactamente 7 entradas (lunes primero)."""
	if len(weekly_hours) != 7:
		raise ValueError(f"Weekly hours table needs 7 entries, got {len(weekly_hours)}")


def get_opening_window(
	local_start: datetime,
	weekly_hours: Sequence[Optional[OpeningHours]],
	tz: pytz.tzinfo.BaseTzInfo
) -> Optional[Dict[str, datetime]]:
	"""
	Obtiene la ventana de apertura del día local de ``local_start``.

	Returns:
		dict: {"open": datetime, "close": datetime} o None si el día está cerrado
	"""
	hours = weekly_hours[local_start.weekday()]
	if hours is None:
		return None

	midnight = start_of_day(local_start.date(), tz)
	return {
		"open": tz.normalize(midnight + timedelta(hours=hours.open_hour)),
		"close": tz.normalize(midnight + timedelta(hours=hours.close_hour)),
	}


def is_within_business_hours(
	start: datetime,
	duration_minutes: int,
	weekly_hours: Sequence[Optional[OpeningHours]],
	tz: pytz.tzinfo.BaseTzInfo
) -> Dict[str, Any]:
	"""
	Verifica que ``[start, start + duration)`` quede dentro del horario del día.

	Args:
		start: inicio (aware)
		duration_minutes: duración en minutos
		weekly_hours: tabla semanal de 7 entradas
		tz: zona horaria de la tienda

	Returns:
		dict: {"valid": bool, "reason": str (solo si no es válido)}
	"""
	local_start = start.astimezone(tz)
	window = get_opening_window(local_start, weekly_hours, tz)

	if window is None:
		return {
			"valid": False,
			"reason": f"Closed on {WEEKDAY_NAMES[local_start.weekday()]}",
		}

	end = local_start + timedelta(minutes=duration_minutes)

	if local_start < window["open"]:
		return {
			"valid": False,
			"reason": f"Opens at {window['open'].strftime('%H:%M')}",
		}

	if end > window["close"]:
		return {
			"valid": False,
			"reason": f"Would end at {end.astimezone(tz).strftime('%H:%M')}, after closing at {window['close'].strftime('%H:%M')}",
		}

	return {"valid": True}
