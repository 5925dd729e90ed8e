"""
Shared test data.

Fixed dates far in the future so that "now" never interferes:
2030-01-07 is a Monday (11:00-22:00), 2030-01-12 a Saturday (10:00-21:00).
"""

from datetime import date, datetime, timedelta

import pytz

from massage_booking.config import Settings, build_shop_config
from massage_booking.scheduling.models import Booking

TZ = pytz.timezone("Asia/Taipei")

MONDAY = date(2030, 1, 7)
SATURDAY = date(2030, 1, 12)


def local(day, hour, minute=0, second=0):
	return TZ.localize(datetime(day.year, day.month, day.day, hour, minute, second))


NOW = local(date(2030, 1, 1), 9)


def make_settings(**overrides):
	values = {"calendar_provider": "memory", "timezone": "Asia/Taipei"}
	values.update(overrides)
	return Settings(**values)


def make_shop(**overrides):
	return build_shop_config(make_settings(), **overrides)


def make_booking(shop, service_id, start, minutes=None, practitioner=None, customer_name="王小明"):
	service = shop.catalog.lookup(service_id)
	return Booking(
		service_id=service.id,
		resources=service.resources,
		start=start,
		end=start + timedelta(minutes=minutes or service.duration),
		practitioner=practitioner,
		customer_name=customer_name,
		phone="0912345678",
	)
