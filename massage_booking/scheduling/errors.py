"""
Booking Errors

Exception taxonomy shared by the scheduling services, the calendar store
adapters and the HTTP layer. Every error carries a stable ``code`` so the
boundary can map it to a response without string matching.
"""

from typing import Any, Dict, List, Optional


class BookingError(Exception):
	"""Base class for all booking errors."""

	code = "booking_error"

	def __init__(self, message: str, **details: Any):
		super().__init__(message)
		self.message = message
		self.details = details

	def to_dict(self) -> Dict[str, Any]:
		"""Serializa el error para respuestas de API y resultados del resolver."""
		return {"reason": self.code, "message": self.message, **self.details}


# ===== Validation errors (detected before any external call) =====

class ValidationError(BookingError):
	code = "validation_error"


class InvalidService(ValidationError):
	code = "invalid_service"


class InvalidPartySize(ValidationError):
	code = "invalid_party_size"


class MalformedTime(ValidationError):
	code = "malformed_time"


# ===== Availability errors (recoverable, slot search offers alternatives) =====

class AvailabilityError(BookingError):
	code = "unavailable"


class PastTime(AvailabilityError):
	code = "past_time"


class OutOfHours(AvailabilityError):
	code = "out_of_hours"


class CapacityExceeded(AvailabilityError):
	code = "capacity_exceeded"


class PractitionerBusy(AvailabilityError):
	code = "practitioner_busy"


# ===== Upstream errors =====

class UpstreamUnavailable(BookingError):
	"""The external calendar store failed (network, auth or quota)."""

	code = "upstream_unavailable"


class PartialCommitFailure(BookingError):
	"""
	Some sub-bookings were inserted and could not be rolled back.

	``orphaned_event_ids`` lists the events left in the calendar.
	"""

	code = "partial_commit_failure"

	def __init__(self, message: str, orphaned_event_ids: Optional[List[str]] = None, **details: Any):
		super().__init__(message, orphaned_event_ids=list(orphaned_event_ids or []), **details)
		self.orphaned_event_ids = list(orphaned_event_ids or [])
