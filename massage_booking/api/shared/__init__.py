"""
Shared utilities for the Massage Booking API.
"""

from .validators import (
	build_guests,
	sanitize_string,
	validate_date_string,
	validate_datetime_string,
	validate_name,
	validate_phone,
)

__all__ = [
	"build_guests",
	"sanitize_string",
	"validate_date_string",
	"validate_datetime_string",
	"validate_name",
	"validate_phone",
]
