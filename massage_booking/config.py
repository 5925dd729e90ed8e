"""
Configuration

Two layers:
- ``Settings``: process settings read from the environment (``.env`` supported)
- ``ShopConfig``: immutable shop configuration (catalog, capacities, hours,
  practitioners) built once at start-up and passed to every service
"""

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Tuple

import pytz
from dotenv import load_dotenv

from massage_booking.scheduling.business_hours import (
	DEFAULT_WEEKLY_HOURS,
	OpeningHours,
	validate_weekly_hours,
)
from massage_booking.scheduling.catalog import (
	DEFAULT_COMPOSITE_SPLITS,
	DEFAULT_RESOURCE_CAPACITIES,
	DEFAULT_SERVICES,
	ServiceCatalog,
)

DEFAULT_TIMEZONE = "Asia/Taipei"
ALLOWED_STEPS = (5, 10)

# Terapeuta -> colorId de Google Calendar (la paleta tiene 11 colores)
DEFAULT_PRACTITIONER_COLORS = {
	"阿明": "1",
	"小芳": "2",
	"志豪": "3",
	"淑芬": "4",
	"建宏": "5",
	"美玲": "6",
}


@dataclass(frozen=True)
class Settings:
	"""Runtime settings sourced from environment variables."""

	calendar_provider: str = "google"
	calendar_id: str = ""
	credentials_path: str = ""
	sheet_id: str = ""
	worksheet_name: str = "預約紀錄"
	timezone: str = DEFAULT_TIMEZONE
	slot_step_minutes: int = 10
	allowed_origins: Tuple[str, ...] = ("*",)
	log_level: str = "INFO"

	@classmethod
	def from_env(cls, env_file: Optional[str] = None) -> "Settings":
		"""Lee la configuración del entorno (y de ``.env`` si existe)."""
		load_dotenv(env_file)

		origins = os.getenv("ALLOWED_ORIGINS", "*")

		return cls(
			calendar_provider=os.getenv("CALENDAR_PROVIDER", "google").strip().lower(),
			calendar_id=os.getenv("CALENDAR_ID", ""),
			credentials_path=os.getenv("GOOGLE_CREDENTIALS_PATH", ""),
			sheet_id=os.getenv("GOOGLE_SHEET_ID", ""),
			worksheet_name=os.getenv("GOOGLE_WORKSHEET_NAME", "預約紀錄"),
			timezone=os.getenv("SHOP_TIMEZONE", DEFAULT_TIMEZONE),
			slot_step_minutes=int(os.getenv("SLOT_STEP_MINUTES", "10")),
			allowed_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
			log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
		)


@dataclass(frozen=True)
class ShopConfig:
	"""
	Configuración inmutable de la tienda.

	Se construye una vez al iniciar el proceso y se inyecta en el resolver,
	la búsqueda de slots y el materializador.
	"""

	tz: pytz.tzinfo.BaseTzInfo
	catalog: ServiceCatalog
	capacities: Mapping[str, int]
	weekly_hours: Tuple[Optional[OpeningHours], ...] = DEFAULT_WEEKLY_HOURS
	practitioner_colors: Mapping[str, str] = field(default_factory=dict)
	step_minutes: int = 10
	lookahead_hours: int = 24
	max_party_size: int = 3

	def __post_init__(self):
		validate_weekly_hours(self.weekly_hours)
		if self.step_minutes not in ALLOWED_STEPS:
			raise ValueError(f"step_minutes must be one of {ALLOWED_STEPS}")
		if self.max_party_size < 1:
			raise ValueError("max_party_size must be at least 1")
		missing = self.catalog.resource_kinds - set(self.capacities)
		if missing:
			raise ValueError(f"Missing capacity for resource kinds: {sorted(missing)}")

		# Congelar los mapas
		object.__setattr__(self, "capacities", MappingProxyType(dict(self.capacities)))
		object.__setattr__(self, "practitioner_colors", MappingProxyType(dict(self.practitioner_colors)))
		object.__setattr__(self, "weekly_hours", tuple(self.weekly_hours))


def build_shop_config(
	settings: Optional[Settings] = None,
	services=DEFAULT_SERVICES,
	capacities: Mapping[str, int] = DEFAULT_RESOURCE_CAPACITIES,
	composite_splits=DEFAULT_COMPOSITE_SPLITS,
	weekly_hours: Sequence[Optional[OpeningHours]] = DEFAULT_WEEKLY_HOURS,
	practitioner_colors: Mapping[str, str] = DEFAULT_PRACTITIONER_COLORS,
	**overrides
) -> ShopConfig:
	"""Construye la configuración de la tienda con las tablas por defecto."""
	settings = settings or Settings()

	catalog = ServiceCatalog(services, resource_kinds=capacities.keys(), composite_splits=composite_splits)

	options = {
		"step_minutes": settings.slot_step_minutes,
	}
	options.update(overrides)

	return ShopConfig(
		tz=pytz.timezone(settings.timezone),
		catalog=catalog,
		capacities=capacities,
		weekly_hours=tuple(weekly_hours),
		practitioner_colors=practitioner_colors,
		**options
	)
