"""
Notifications Module

Side effects triggered after a booking is committed:
- Audit log rows in Google Sheets (audit_log.py)
"""
