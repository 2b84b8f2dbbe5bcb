"""Routes module initialization."""

from routes.health import base_router
from routes.invoices import invoice_router

__all__ = ["base_router", "invoice_router"]
