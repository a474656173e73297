"""
Bookings Domain

Appointment creation with overlap protection, status and payment
lifecycle, reschedule, cancellation and admin management.
"""

from .router import admin_router, router

__all__ = ["router", "admin_router"]
