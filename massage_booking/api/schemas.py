"""Request and response models of the booking API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class Guest(BaseModel):
	service_id: str
	practitioner: Optional[str] = None


class ServiceInfo(BaseModel):
	id: str
	name: str
	duration: int
	resources: List[str]
	components: List[str] = []


class AvailabilityRequest(BaseModel):
	guests: List[Guest]
	start: str


class AvailabilityResponse(BaseModel):
	available: bool
	start: Optional[datetime] = None
	end: Optional[datetime] = None
	reason: Optional[str] = None
	message: Optional[str] = None


class NextAvailableRequest(BaseModel):
	service_ids: List[str]
	date: Optional[str] = None  # YYYY-MM-DD; sin fecha, próximas 24 horas
	practitioner: Optional[str] = None


class NextAvailableResponse(BaseModel):
	found: bool
	start: Optional[datetime] = None


class SlotInfo(BaseModel):
	start: datetime
	end: datetime


class BookingRequest(BaseModel):
	name: str
	phone: str
	guests: List[Guest]
	start: str


class BookingRecord(BaseModel):
	event_id: str
	service_id: str
	parent_service_id: Optional[str] = None
	guest_index: int
	start: datetime
	end: datetime
	practitioner: Optional[str] = None


class BookingResponse(BaseModel):
	success: bool
	message: str
	party_id: str
	start: datetime
	end: datetime
	bookings: List[BookingRecord]
