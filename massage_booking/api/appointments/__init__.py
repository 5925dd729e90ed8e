"""
Appointments API Domain

Catalog, availability, slot search and booking endpoints.
"""

from .endpoints import router

__all__ = [
	"router",
]
