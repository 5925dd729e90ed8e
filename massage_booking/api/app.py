"""
Application factory

Builds the FastAPI app with injected configuration, calendar store and audit
log. Booking errors raised anywhere below the endpoints are mapped here:

- ValidationError      -> 400
- AvailabilityError    -> 409
- UpstreamUnavailable  -> 502
- PartialCommitFailure -> 500
"""

import logging
import threading

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from massage_booking import __version__
from massage_booking.calendar_store.factory import get_store
from massage_booking.config import Settings, build_shop_config
from massage_booking.notifications.audit_log import SheetAuditLog
from massage_booking.scheduling.errors import (
	AvailabilityError,
	BookingError,
	PartialCommitFailure,
	UpstreamUnavailable,
	ValidationError,
)

from .appointments import router

logger = logging.getLogger(__name__)

_NOT_CONFIGURED = object()


def status_for(error: BookingError) -> int:
	if isinstance(error, ValidationError):
		return 400
	if isinstance(error, AvailabilityError):
		return 409
	if isinstance(error, UpstreamUnavailable):
		return 502
	return 500


def configure_logging(level: str = "INFO") -> None:
	logging.basicConfig(
		level=getattr(logging, level.upper(), logging.INFO),
		format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
	)


def create_app(settings=None, shop=None, store=None, audit_log=_NOT_CONFIGURED) -> FastAPI:
	"""
	Crea la aplicación.

	Args:
		settings: Settings (por defecto, leídos del entorno)
		shop: ShopConfig (por defecto, tablas de la tienda)
		store: CalendarStore (por defecto, según CALENDAR_PROVIDER)
		audit_log: SheetAuditLog o None para desactivarlo (por defecto, según settings)
	"""
	settings = settings or Settings.from_env()
	configure_logging(settings.log_level)

	if shop is None:
		shop = build_shop_config(settings)
	if store is None:
		store = get_store(settings.calendar_provider, settings, shop)
	if audit_log is _NOT_CONFIGURED:
		audit_log = SheetAuditLog.from_settings(settings, shop)

	app = FastAPI(title="Massage Booking", version=__version__)
	app.add_middleware(
		CORSMiddleware,
		allow_origins=list(settings.allowed_origins),
		allow_methods=["*"],
		allow_headers=["*"],
	)

	app.state.settings = settings
	app.state.shop = shop
	app.state.store = store
	app.state.audit_log = audit_log
	# Serializa check + commit dentro de este proceso
	app.state.booking_lock = threading.Lock()

	@app.exception_handler(BookingError)
	async def booking_error_handler(request: Request, exc: BookingError):
		status_code = status_for(exc)
		if isinstance(exc, PartialCommitFailure):
			logger.error(f"Partial commit on {request.url.path}: orphaned events {exc.orphaned_event_ids}")
		elif status_code >= 500:
			logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
		else:
			logger.info(f"{exc.code} on {request.url.path}: {exc.message}")

		return JSONResponse(status_code=status_code, content={"success": False, **exc.to_dict()})

	app.include_router(router)

	logger.info(
		f"Massage booking API ready: store={type(store).__name__}, "
		f"tz={shop.tz.zone}, step={shop.step_minutes}min"
	)
	return app


def main():
	settings = Settings.from_env()
	uvicorn.run(create_app(settings), host="0.0.0.0", port=8000, log_level=settings.log_level.lower())


if __name__ == "__main__":
	main()
