"""
Google Calendar Store

Stores bookings as Google Calendar events.

Event encoding:
- summary: "<service name> 預約：<customer name>"
- description: "電話：<phone>"
- extendedProperties.private: structured booking metadata

Events created by hand (or by older versions of the booking site) carry no
structured metadata; for those the service is recovered from the summary
label and the practitioner from the event colorId.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

import pytz
from dateutil import parser as date_parser
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .base import CalendarStore, CalendarStoreError
from massage_booking.scheduling.catalog import ServiceCatalog
from massage_booking.scheduling.models import Booking

logger = logging.getLogger(__name__)

CALENDAR_SCOPES = ["https://www.googleapis.com/auth/calendar"]

SUMMARY_DELIMITER = "預約："
PHONE_PREFIX = "電話："

_UPSTREAM_ERRORS = (HttpError, GoogleAuthError, OSError)


def build_calendar_service(credentials_path: str):
	"""Cliente de Google Calendar v3 autenticado con una service account."""
	credentials = service_account.Credentials.from_service_account_file(
		credentials_path, scopes=CALENDAR_SCOPES
	)
	return build("calendar", "v3", credentials=credentials, cache_discovery=False)


def booking_to_event(
	booking: Booking,
	catalog: ServiceCatalog,
	tz: pytz.tzinfo.BaseTzInfo,
	practitioner_colors: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
	"""Convierte una reserva en el body de ``events.insert``."""
	service = catalog.resolve_label(booking.service_id)
	label = service.name if service else booking.service_id

	private = {
		"service_id": booking.service_id,
		"resource_kinds": ",".join(sorted(booking.resources)),
		"guest_index": str(booking.guest_index),
		"party_id": booking.party_id,
	}
	if booking.practitioner:
		private["practitioner"] = booking.practitioner
	if booking.parent_service_id:
		private["parent_service_id"] = booking.parent_service_id

	event = {
		"summary": f"{label} {SUMMARY_DELIMITER}{booking.customer_name}",
		"description": f"{PHONE_PREFIX}{booking.phone}",
		"start": {"dateTime": booking.start.astimezone(tz).isoformat(), "timeZone": tz.zone},
		"end": {"dateTime": booking.end.astimezone(tz).isoformat(), "timeZone": tz.zone},
		"extendedProperties": {"private": private},
	}

	color_id = (practitioner_colors or {}).get(booking.practitioner or "")
	if color_id:
		event["colorId"] = color_id

	return event


def _parse_event_time(value: Dict[str, Any], tz: pytz.tzinfo.BaseTzInfo) -> Optional[datetime]:
	# Eventos de todo el día sólo traen "date"
	if not value or "dateTime" not in value:
		return None
	parsed = date_parser.isoparse(value["dateTime"])
	if parsed.tzinfo is None:
		parsed = pytz.timezone(value.get("timeZone") or tz.zone).localize(parsed)
	return parsed.astimezone(tz)


def event_to_booking(
	event: Dict[str, Any],
	catalog: ServiceCatalog,
	tz: pytz.tzinfo.BaseTzInfo,
	practitioner_colors: Optional[Mapping[str, str]] = None
) -> Optional[Booking]:
	"""
	Convierte un evento de Google Calendar en ``Booking``.

	Returns:
		Booking o None si el evento no corresponde a ningún servicio
	"""
	start = _parse_event_time(event.get("start"), tz)
	end = _parse_event_time(event.get("end"), tz)
	if start is None or end is None or end <= start:
		return None

	summary = event.get("summary") or ""
	label, _, customer_name = summary.partition(SUMMARY_DELIMITER)
	private = (event.get("extendedProperties") or {}).get("private") or {}

	# 1. Metadata estructurada
	service = catalog.resolve_label(private.get("service_id", ""))
	# 2. Fallback: label del summary
	if service is None:
		service = catalog.resolve_label(label)
	if service is None:
		logger.warning(f"Ignoring calendar event {event.get('id')}: unknown service label {label.strip()!r}")
		return None

	if private.get("resource_kinds"):
		resources = frozenset(k for k in private["resource_kinds"].split(",") if k)
	else:
		resources = service.resources

	practitioner = private.get("practitioner")
	if not practitioner and event.get("colorId") and practitioner_colors:
		practitioner = next(
			(name for name, color in practitioner_colors.items() if color == event["colorId"]),
			None
		)

	description = event.get("description") or ""
	phone = description[len(PHONE_PREFIX):].strip() if description.startswith(PHONE_PREFIX) else ""

	# Un guest_index corrupto no debe sacar la reserva del ledger
	try:
		guest_index = int(private.get("guest_index") or 0)
	except (TypeError, ValueError):
		logger.warning(f"Calendar event {event.get('id')} has malformed guest_index {private.get('guest_index')!r}")
		guest_index = 0

	return Booking(
		service_id=service.id,
		resources=resources,
		start=start,
		end=end,
		practitioner=practitioner or None,
		customer_name=customer_name.strip(),
		phone=phone,
		guest_index=guest_index,
		party_id=private.get("party_id", ""),
		parent_service_id=private.get("parent_service_id"),
		id=event.get("id"),
	)


class GoogleCalendarStore(CalendarStore):
	"""Adapter para Google Calendar."""

	def __init__(
		self,
		calendar_id: str,
		catalog: ServiceCatalog,
		tz: pytz.tzinfo.BaseTzInfo,
		service=None,
		credentials_path: Optional[str] = None,
		practitioner_colors: Optional[Mapping[str, str]] = None
	):
		if service is None:
			if not credentials_path:
				raise CalendarStoreError("Google credentials path is not configured")
			try:
				service = build_calendar_service(credentials_path)
			except (GoogleAuthError, OSError, ValueError) as e:
				raise CalendarStoreError(f"Cannot build Google Calendar client: {e}") from e

		self.calendar_id = calendar_id
		self.catalog = catalog
		self.tz = tz
		self.service = service
		self.practitioner_colors = dict(practitioner_colors or {})

	def list_bookings(self, start_datetime: datetime, end_datetime: datetime) -> List[Booking]:
		bookings = []
		page_token = None

		try:
			while True:
				response = self.service.events().list(
					calendarId=self.calendar_id,
					timeMin=start_datetime.isoformat(),
					timeMax=end_datetime.isoformat(),
					singleEvents=True,
					orderBy="startTime",
					pageToken=page_token,
				).execute()

				for event in response.get("items", []):
					if event.get("status") == "cancelled":
						continue
					booking = event_to_booking(event, self.catalog, self.tz, self.practitioner_colors)
					if booking is not None:
						bookings.append(booking)

				page_token = response.get("nextPageToken")
				if not page_token:
					break
		except _UPSTREAM_ERRORS as e:
			logger.error(f"Google Calendar list failed: {e}", exc_info=True)
			raise CalendarStoreError(f"Google Calendar list failed: {e}") from e

		return bookings

	def insert_booking(self, booking: Booking) -> str:
		event = booking_to_event(booking, self.catalog, self.tz, self.practitioner_colors)

		try:
			response = self.service.events().insert(calendarId=self.calendar_id, body=event).execute()
		except _UPSTREAM_ERRORS as e:
			logger.error(f"Google Calendar insert failed: {e}", exc_info=True)
			raise CalendarStoreError(f"Google Calendar insert failed: {e}") from e

		return response["id"]

	def delete_booking(self, event_id: str) -> None:
		try:
			self.service.events().delete(calendarId=self.calendar_id, eventId=event_id).execute()
		except _UPSTREAM_ERRORS as e:
			logger.error(f"Google Calendar delete of {event_id} failed: {e}", exc_info=True)
			raise CalendarStoreError(f"Google Calendar delete failed: {e}", event_id=event_id) from e
