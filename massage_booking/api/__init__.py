"""
Massage Booking API

Structure:
    api/
    ├── __init__.py              # This file
    ├── app.py                   # Application factory and error mapping
    ├── schemas.py               # Request/response models
    ├── appointments/            # Catalog, availability and booking endpoints
    │   ├── __init__.py
    │   └── endpoints.py
    └── shared/                  # Shared utilities
        ├── __init__.py
        └── validators.py        # Input validators

Usage:
    uvicorn massage_booking.api.app:create_app --factory
"""

from . import appointments
from . import shared

__all__ = [
	"appointments",
	"shared",
]
