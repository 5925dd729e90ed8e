"""
Booking Audit Log

Appends one row per committed sub-booking to a Google Sheets worksheet:

    date | customer name | phone | service name | duration | time | practitioner

The log is best-effort: a failure is logged and never undoes a booking that
is already in the calendar.
"""

import logging
from typing import List, Optional, Sequence

import gspread
import pytz
from google.auth.exceptions import GoogleAuthError

from massage_booking.scheduling.catalog import ServiceCatalog
from massage_booking.scheduling.models import Booking

logger = logging.getLogger(__name__)

HEADER = ["日期", "姓名", "電話", "服務", "時長", "時間", "師傅"]


def get_worksheet(credentials_path: str, sheet_id: str, worksheet_name: str) -> gspread.Worksheet:
	"""Abre la hoja de registro con una service account."""
	client = gspread.service_account(filename=credentials_path)
	spreadsheet = client.open_by_key(sheet_id)
	return spreadsheet.worksheet(worksheet_name)


def booking_rows(
	bookings: Sequence[Booking],
	catalog: ServiceCatalog,
	tz: pytz.tzinfo.BaseTzInfo
) -> List[List[str]]:
	"""Filas del registro, una por sub-reserva, ordenadas por fecha y hora."""
	rows = []
	for booking in sorted(bookings, key=lambda b: (b.start, b.guest_index)):
		service = catalog.resolve_label(booking.service_id)
		local_start = booking.start.astimezone(tz)
		rows.append([
			local_start.strftime("%Y-%m-%d"),
			booking.customer_name,
			booking.phone,
			service.name if service else booking.service_id,
			str(booking.duration_minutes),
			local_start.strftime("%H:%M"),
			booking.practitioner or "",
		])
	return rows


class SheetAuditLog:
	"""Registro de reservas en Google Sheets."""

	def __init__(self, worksheet, catalog: ServiceCatalog, tz: pytz.tzinfo.BaseTzInfo):
		self.worksheet = worksheet
		self.catalog = catalog
		self.tz = tz

	@classmethod
	def from_settings(cls, settings, shop) -> Optional["SheetAuditLog"]:
		"""None si no hay hoja configurada o no se puede abrir."""
		if not settings.sheet_id or not settings.credentials_path:
			logger.info("Audit log disabled: GOOGLE_SHEET_ID or GOOGLE_CREDENTIALS_PATH not set")
			return None

		try:
			worksheet = get_worksheet(settings.credentials_path, settings.sheet_id, settings.worksheet_name)
			if not worksheet.row_values(1):
				worksheet.append_row(HEADER)
		except (gspread.exceptions.GSpreadException, GoogleAuthError, OSError, ValueError) as e:
			logger.error(f"Audit log disabled, cannot open worksheet '{settings.worksheet_name}': {e}", exc_info=True)
			return None

		return cls(worksheet, shop.catalog, shop.tz)

	def record(self, bookings: Sequence[Booking]) -> bool:
		"""
		Agrega las filas de las reservas.

		Returns:
			bool: True si se escribieron las filas
		"""
		rows = booking_rows(bookings, self.catalog, self.tz)
		if not rows:
			return False

		try:
			self.worksheet.append_rows(rows, value_input_option="USER_ENTERED")
		except (gspread.exceptions.GSpreadException, GoogleAuthError, OSError) as e:
			logger.error(
				f"Failed to append {len(rows)} audit row(s) for {rows[0][1]} on {rows[0][0]}: {e}",
				exc_info=True
			)
			return False

		logger.info(f"Audit log: {len(rows)} row(s) appended for {rows[0][1]} on {rows[0][0]}")
		return True
