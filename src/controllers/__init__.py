"""Controllers package initialization."""

from controllers.base_controller import BaseController
from controllers.invoice_controller import InvoiceController

__all__ = ["BaseController", "InvoiceController"]
