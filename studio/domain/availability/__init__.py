"""
Availability Domain

Turns a (date, service) pair into the day's slot grid, subtracting the
intervals held by pending and confirmed bookings.
"""

from .router import router

__all__ = ["router"]
