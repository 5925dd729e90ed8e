"""
Booking data model

Plain immutable records exchanged between the scheduling services and the
calendar store adapters.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class GuestRequest:
	"""Un invitado de la reserva: servicio y terapeuta opcional."""

	service_id: str
	practitioner: Optional[str] = None


@dataclass(frozen=True)
class Customer:
	"""Datos de contacto de quien reserva."""

	name: str
	phone: str


@dataclass(frozen=True)
class Booking:
	"""
	Reserva persistida en el calendario externo.

	El intervalo es semiabierto ``[start, end)``. Una reserva compuesta se
	materializa en varias ``Booking`` consecutivas; ``parent_service_id``
	guarda el servicio compuesto original.
	"""

	service_id: str
	resources: FrozenSet[str]
	start: datetime
	end: datetime
	practitioner: Optional[str] = None
	customer_name: str = ""
	phone: str = ""
	guest_index: int = 0
	party_id: str = ""
	parent_service_id: Optional[str] = None
	id: Optional[str] = None

	def __post_init__(self):
		if self.end <= self.start:
			raise ValueError("Booking end must be after start")

	@property
	def duration_minutes(self) -> int:
		return int((self.end - self.start).total_seconds() // 60)

	def overlaps(self, start: datetime, end: datetime) -> bool:
		"""Solapamiento estricto: extremos que se tocan no cuentan."""
		return self.start < end and self.end > start

	def with_id(self, event_id: str) -> "Booking":
		return replace(self, id=event_id)
