"""
Tests for api/

Endpoints are exercised through FastAPI's TestClient with an in-memory
calendar store.
"""

import unittest
from datetime import datetime
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from massage_booking.api.app import create_app
from massage_booking.calendar_store.base import CalendarStoreError
from massage_booking.calendar_store.memory import InMemoryCalendarStore
from massage_booking.tests.fixtures import MONDAY, local, make_booking, make_settings, make_shop


class BrokenCalendarStore(InMemoryCalendarStore):
	"""Second insert fails and nothing can be deleted."""

	def __init__(self):
		super().__init__()
		self.inserts = 0

	def insert_booking(self, booking):
		self.inserts += 1
		if self.inserts == 2:
			raise CalendarStoreError("insert timed out")
		return super().insert_booking(booking)

	def delete_booking(self, event_id):
		raise CalendarStoreError("delete timed out", event_id=event_id)


def parse(value):
	return datetime.fromisoformat(value)


class TestBookingAPI(unittest.TestCase):
	"""Tests for the public endpoints."""

	def setUp(self):
		self.shop = make_shop()
		self.store = InMemoryCalendarStore()
		self.client = self.make_client(self.store)

	def make_client(self, store):
		app = create_app(settings=make_settings(), shop=self.shop, store=store, audit_log=None)
		return TestClient(app)

	def booking_payload(self, **overrides):
		payload = {
			"name": "吳先生",
			"phone": "0912-345-678",
			"start": "2030-01-07T14:00:00+08:00",
			"guests": [{"service_id": "combo_100"}],
		}
		payload.update(overrides)
		return payload

	def test_health(self):
		response = self.client.get("/health")

		self.assertEqual(response.status_code, 200)
		self.assertTrue(response.json()["ok"])

	def test_services(self):
		response = self.client.get("/api/services")

		services = {s["id"]: s for s in response.json()}
		self.assertEqual(services["combo_100"]["components"], ["foot_40", "body_60"])
		self.assertEqual(services["combo_100"]["resources"], ["body", "foot"])
		self.assertEqual(services["body_90"]["duration"], 90)

	def test_availability(self):
		response = self.client.post("/api/availability", json={
			"start": "2030-01-07T14:00:00+08:00",
			"guests": [{"service_id": "body_90"}, {"service_id": "foot_40", "practitioner": "小芳"}],
		})

		data = response.json()
		self.assertEqual(response.status_code, 200)
		self.assertTrue(data["available"])
		self.assertEqual(parse(data["end"]), local(MONDAY, 15, 30))

	def test_availability_naive_time_uses_shop_timezone(self):
		response = self.client.post("/api/availability", json={
			"start": "2030-01-07 10:30",
			"guests": [{"service_id": "body_60"}],
		})

		data = response.json()
		self.assertFalse(data["available"])
		self.assertEqual(data["reason"], "out_of_hours")

	def test_availability_in_the_past(self):
		response = self.client.post("/api/availability", json={
			"start": "2020-01-06T14:00:00+08:00",
			"guests": [{"service_id": "body_60"}],
		})

		self.assertEqual(response.status_code, 200)
		self.assertEqual(response.json()["reason"], "past_time")

	def test_malformed_time(self):
		response = self.client.post("/api/availability", json={
			"start": "tomorrow afternoon",
			"guests": [{"service_id": "body_60"}],
		})

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()["reason"], "malformed_time")
		self.assertFalse(response.json()["success"])

	def test_next_available(self):
		for _ in range(2):
			self.store.insert_booking(make_booking(self.shop, "foot_60", local(MONDAY, 11, 0)))

		response = self.client.post("/api/next-available", json={"service_ids": ["foot_40"], "date": "2030-01-07"})

		data = response.json()
		self.assertTrue(data["found"])
		self.assertEqual(parse(data["start"]), local(MONDAY, 12, 0))

	def test_next_available_invalid_service(self):
		response = self.client.post("/api/next-available", json={"service_ids": ["hot_stone"], "date": "2030-01-07"})

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()["reason"], "invalid_service")

	def test_slots(self):
		response = self.client.get("/api/slots", params={"service_id": "foot_40", "date": "2030-01-07"})

		slots = response.json()
		self.assertEqual(response.status_code, 200)
		self.assertEqual(parse(slots[0]["start"]), local(MONDAY, 11, 0))
		self.assertEqual(parse(slots[-1]["start"]), local(MONDAY, 21, 20))

	def test_slots_bad_date(self):
		response = self.client.get("/api/slots", params={"service_id": "foot_40", "date": "07/01/2030"})

		self.assertEqual(response.status_code, 400)

	def test_create_booking(self):
		response = self.client.post("/api/bookings", json=self.booking_payload())

		data = response.json()
		self.assertEqual(response.status_code, 200)
		self.assertTrue(data["success"])
		self.assertEqual([b["service_id"] for b in data["bookings"]], ["foot_40", "body_60"])
		self.assertEqual(parse(data["end"]), local(MONDAY, 15, 40))

		stored = self.store.all_bookings()
		self.assertEqual(len(stored), 2)
		self.assertEqual(stored[0].customer_name, "吳先生")

	def test_booking_conflict_suggests_next_start(self):
		for _ in range(2):
			self.store.insert_booking(make_booking(self.shop, "foot_60", local(MONDAY, 14, 0)))

		response = self.client.post("/api/bookings", json=self.booking_payload())

		data = response.json()
		self.assertEqual(response.status_code, 409)
		self.assertEqual(data["reason"], "capacity_exceeded")
		self.assertEqual(parse(data["next_available"]), local(MONDAY, 15, 0))

	def test_booking_requires_valid_phone(self):
		response = self.client.post("/api/bookings", json=self.booking_payload(phone="call me"))

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()["field"], "phone")

	def test_booking_party_too_large(self):
		guests = [{"service_id": "body_60"}] * 4
		response = self.client.post("/api/bookings", json=self.booking_payload(guests=guests))

		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()["reason"], "invalid_party_size")

	def test_upstream_failure(self):
		store = MagicMock()
		store.list_bookings.side_effect = CalendarStoreError("calendar unreachable")
		client = self.make_client(store)

		response = client.post("/api/availability", json={
			"start": "2030-01-07T14:00:00+08:00",
			"guests": [{"service_id": "body_60"}],
		})

		self.assertEqual(response.status_code, 502)
		self.assertEqual(response.json()["reason"], "upstream_unavailable")

	def test_partial_commit(self):
		client = self.make_client(BrokenCalendarStore())

		response = client.post("/api/bookings", json=self.booking_payload())

		self.assertEqual(response.status_code, 500)
		self.assertEqual(response.json()["reason"], "partial_commit_failure")
		self.assertEqual(response.json()["orphaned_event_ids"], ["mem-1"])


class TestCreateApp(unittest.TestCase):
	"""Tests for the audit_log argument of create_app."""

	def setUp(self):
		self.shop = make_shop()
		self.settings = make_settings()

	@patch("massage_booking.api.app.SheetAuditLog.from_settings")
	def test_audit_log_built_from_settings_by_default(self, from_settings):
		app = create_app(settings=self.settings, shop=self.shop, store=InMemoryCalendarStore())

		from_settings.assert_called_once_with(self.settings, self.shop)
		self.assertIs(app.state.audit_log, from_settings.return_value)

	@patch("massage_booking.api.app.SheetAuditLog.from_settings")
	def test_explicit_none_disables_audit_log(self, from_settings):
		app = create_app(settings=self.settings, shop=self.shop, store=InMemoryCalendarStore(), audit_log=None)

		from_settings.assert_not_called()
		self.assertIsNone(app.state.audit_log)


if __name__ == "__main__":
	unittest.main()
