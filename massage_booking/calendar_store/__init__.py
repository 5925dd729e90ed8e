"""
Calendar Store Module

Provides adapters for the external calendar that holds the bookings:
- Base store interface (base.py)
- Factory for getting the right store (factory.py)
- Google Calendar implementation (google_calendar.py)
- In-memory implementation (memory.py)
"""
