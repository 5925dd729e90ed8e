"""
Massage Booking

Booking-slot availability engine for a multi-resource, multi-practitioner
massage shop, backed by an external calendar.
"""

__version__ = "0.1.0"
