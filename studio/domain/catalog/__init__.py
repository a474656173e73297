"""
Service Catalog Domain

Bookable service definitions: name, duration, price, category and the
active flag. Read by availability and booking creation.
"""

from .router import admin_router, router

__all__ = ["router", "admin_router"]
