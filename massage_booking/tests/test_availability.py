"""
Tests for scheduling/availability.py

Tests the availability resolver: party validation, past time, business
hours, shared capacity and practitioner conflicts.
"""

import unittest
from datetime import timedelta
from unittest.mock import MagicMock

from massage_booking.calendar_store.base import CalendarStoreError
from massage_booking.calendar_store.memory import InMemoryCalendarStore
from massage_booking.scheduling.availability import check_availability, ensure_available
from massage_booking.scheduling.errors import CapacityExceeded, UpstreamUnavailable
from massage_booking.scheduling.models import GuestRequest
from massage_booking.tests.fixtures import MONDAY, NOW, SATURDAY, local, make_booking, make_shop


class TestAvailabilityResolver(unittest.TestCase):
	"""Tests for check_availability."""

	def setUp(self):
		self.shop = make_shop()
		self.store = InMemoryCalendarStore()

	def check(self, guests, start, now=NOW):
		return check_availability(self.shop, self.store, guests, start, now=now)

	def test_available_on_empty_calendar(self):
		start = local(MONDAY, 14, 0)
		result = self.check([GuestRequest("body_90")], start)

		self.assertTrue(result["available"])
		self.assertEqual(result["start"], start)
		self.assertEqual(result["end"], start + timedelta(minutes=90))

	def test_foot_capacity_full(self):
		"""Two foot bookings at 10:00-10:40 fill the foot capacity of 2."""
		for _ in range(2):
			self.store.insert_booking(make_booking(self.shop, "foot_40", local(SATURDAY, 10, 0)))

		result = self.check([GuestRequest("foot_40")], local(SATURDAY, 10, 0))

		self.assertFalse(result["available"])
		self.assertEqual(result["reason"], "capacity_exceeded")
		self.assertEqual(result["resource_kind"], "foot")

	def test_foot_capacity_back_to_back(self):
		"""The same request at 10:40 starts exactly when the others end."""
		for _ in range(2):
			self.store.insert_booking(make_booking(self.shop, "foot_40", local(SATURDAY, 10, 0)))

		result = self.check([GuestRequest("foot_40")], local(SATURDAY, 10, 40))

		self.assertTrue(result["available"])

	def test_capacity_message_counts_overlapping_bookings(self):
		"""
		Foot bookings 10:00-10:40 and 10:40-11:20 both overlap 10:20-11:20:
		the rejection reports them as overlapping bookings plus the requested unit.
		"""
		self.store.insert_booking(make_booking(self.shop, "foot_40", local(SATURDAY, 10, 0)))
		self.store.insert_booking(make_booking(self.shop, "foot_40", local(SATURDAY, 10, 40)))

		result = self.check([GuestRequest("foot_60")], local(SATURDAY, 10, 20))

		self.assertEqual(result["reason"], "capacity_exceeded")
		self.assertEqual(result["capacity_used"], 2)
		self.assertEqual(result["requested_units"], 1)
		self.assertIn("2 booking(s) overlap the window and 1 more requested, capacity 2", result["message"])

	def test_practitioner_busy(self):
		"""阿明 is booked 14:00-15:00; 14:30 conflicts, 15:00 does not."""
		self.store.insert_booking(make_booking(self.shop, "body_60", local(MONDAY, 14, 0), practitioner="阿明"))
		guests = [GuestRequest("body_60", practitioner="阿明")]

		result = self.check(guests, local(MONDAY, 14, 30))
		self.assertFalse(result["available"])
		self.assertEqual(result["reason"], "practitioner_busy")
		self.assertEqual(result["practitioner"], "阿明")

		self.assertTrue(self.check(guests, local(MONDAY, 15, 0))["available"])

	def test_same_practitioner_twice_in_party(self):
		guests = [
			GuestRequest("body_60", practitioner="阿明"),
			GuestRequest("foot_40", practitioner="阿明"),
		]

		result = self.check(guests, local(MONDAY, 14, 0))

		self.assertFalse(result["available"])
		self.assertEqual(result["reason"], "practitioner_busy")

	def test_one_second_in_the_past(self):
		"""Rejected even though every resource is free."""
		now = local(MONDAY, 14, 0)
		result = self.check([GuestRequest("foot_40")], now - timedelta(seconds=1), now=now)

		self.assertFalse(result["available"])
		self.assertEqual(result["reason"], "past_time")

	def test_start_at_now_is_allowed(self):
		now = local(MONDAY, 14, 0)
		self.assertTrue(self.check([GuestRequest("foot_40")], now, now=now)["available"])

	def test_out_of_hours_uses_longest_service(self):
		"""foot_40 alone fits at 20:30, body_120 in the same party does not."""
		start = local(MONDAY, 20, 30)

		self.assertTrue(self.check([GuestRequest("foot_40")], start)["available"])

		result = self.check([GuestRequest("foot_40"), GuestRequest("body_120")], start)
		self.assertFalse(result["available"])
		self.assertEqual(result["reason"], "out_of_hours")

	def test_party_size(self):
		self.assertEqual(self.check([], local(MONDAY, 14, 0))["reason"], "invalid_party_size")

		guests = [GuestRequest("foot_40")] * 4
		self.assertEqual(self.check(guests, local(MONDAY, 14, 0))["reason"], "invalid_party_size")

	def test_invalid_service(self):
		result = self.check([GuestRequest("hot_stone")], local(MONDAY, 14, 0))

		self.assertFalse(result["available"])
		self.assertEqual(result["reason"], "invalid_service")

	def test_party_capacity_counts_every_guest(self):
		"""One body booking + three body guests exceeds a body capacity of 3."""
		self.store.insert_booking(make_booking(self.shop, "body_60", local(MONDAY, 14, 0)))

		two = [GuestRequest("body_60")] * 2
		three = [GuestRequest("body_60")] * 3

		self.assertTrue(self.check(two, local(MONDAY, 14, 0))["available"])
		self.assertEqual(self.check(three, local(MONDAY, 14, 0))["reason"], "capacity_exceeded")

	def test_composite_capacity_per_component(self):
		"""
		combo_100 uses foot only 14:00-14:40: a full foot capacity from 14:40
		does not block it, a full foot capacity at 14:00 does.
		"""
		for _ in range(2):
			self.store.insert_booking(make_booking(self.shop, "foot_40", local(MONDAY, 14, 40)))

		self.assertTrue(self.check([GuestRequest("combo_100")], local(MONDAY, 14, 0))["available"])
		self.assertFalse(self.check([GuestRequest("combo_100")], local(MONDAY, 14, 20))["available"])

	def test_upstream_errors_propagate(self):
		store = MagicMock()
		store.list_bookings.side_effect = CalendarStoreError("quota exceeded")

		with self.assertRaises(UpstreamUnavailable):
			check_availability(self.shop, store, [GuestRequest("foot_40")], local(MONDAY, 14, 0), now=NOW)

	def test_validation_before_calendar(self):
		"""Invalid requests never reach the calendar."""
		store = MagicMock()

		result = check_availability(self.shop, store, [GuestRequest("hot_stone")], local(MONDAY, 14, 0), now=NOW)

		self.assertFalse(result["available"])
		store.list_bookings.assert_not_called()


class TestEnsureAvailable(unittest.TestCase):
	"""Tests for ensure_available (raising variant)."""

	def test_returns_window_and_plan(self):
		shop = make_shop()
		start = local(MONDAY, 12, 0)

		window = ensure_available(
			shop, InMemoryCalendarStore(), [GuestRequest("combo_130"), GuestRequest("foot_60")], start, now=NOW
		)

		self.assertEqual(window["end"], start + timedelta(minutes=130))
		self.assertEqual(len(window["planned"]), 3)

	def test_raises_first_failure(self):
		shop = make_shop(capacities={"body": 1, "foot": 2})
		start = local(MONDAY, 12, 0)
		store = InMemoryCalendarStore([make_booking(shop, "body_60", start)])

		with self.assertRaises(CapacityExceeded):
			ensure_available(shop, store, [GuestRequest("body_60")], start, now=NOW)


if __name__ == "__main__":
	unittest.main()
