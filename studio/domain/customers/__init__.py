"""
Customer Directory Domain

Customers are deduplicated by normalized email and created lazily on the
first booking or contact form submission.
"""

from .router import admin_router, router

__all__ = ["router", "admin_router"]
