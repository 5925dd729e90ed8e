"""
Calendar Store Factory

Factory pattern to get the correct store based on provider.
"""

from .base import CalendarStore


def get_store(provider: str, settings, shop) -> CalendarStore:
	"""
	Factory para obtener el store correcto según proveedor.

	Args:
		provider: "google" o "memory"
		settings: Settings del proceso
		shop: ShopConfig

	Returns:
		CalendarStore: instancia del adapter

	Raises:
		ValueError: si provider no es soportado
	"""
	if provider == "google":
		from .google_calendar import GoogleCalendarStore
		return GoogleCalendarStore(
			calendar_id=settings.calendar_id,
			catalog=shop.catalog,
			tz=shop.tz,
			credentials_path=settings.credentials_path,
			practitioner_colors=shop.practitioner_colors,
		)
	elif provider == "memory":
		from .memory import InMemoryCalendarStore
		return InMemoryCalendarStore()
	else:
		raise ValueError(f"Unsupported calendar provider: {provider}")
