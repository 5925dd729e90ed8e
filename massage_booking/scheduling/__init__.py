"""
Scheduling Services Module

This module provides core business logic for booking massage services:
- Service catalog (catalog.py)
- Business hours (business_hours.py)
- Resource capacity ledger (overlap.py)
- Practitioner ledger (practitioner.py)
- Availability resolution (availability.py)
- Slot search (slots.py)
- Booking materialization and commit (booking.py)
- Two-phase reservation flow (reservation.py)
"""
