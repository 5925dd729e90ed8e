"""
Base Calendar Store

Defines the interface that every calendar store adapter must implement.
The external calendar is the system of record for bookings.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from massage_booking.scheduling.errors import UpstreamUnavailable
from massage_booking.scheduling.models import Booking


class CalendarStore(ABC):
	"""
	Interfaz base para calendarios externos.

	Todos los adaptadores deben implementar estos métodos.
	"""

	@abstractmethod
	def list_bookings(self, start_datetime: datetime, end_datetime: datetime) -> List[Booking]:
		"""
		Lista las reservas cuyo intervalo intersecta el rango.

		Raises:
			CalendarStoreError: si falla la consulta
		"""
		pass

	@abstractmethod
	def insert_booking(self, booking: Booking) -> str:
		"""
		Crea una reserva en el calendario.

		Returns:
			str: id del evento creado

		Raises:
			CalendarStoreError: si falla la creación
		"""
		pass

	@abstractmethod
	def delete_booking(self, event_id: str) -> None:
		"""Elimina un evento (solo para compensar commits parciales)."""
		pass


class CalendarStoreError(UpstreamUnavailable):
	"""Excepción para errores del calendario externo."""
	pass
