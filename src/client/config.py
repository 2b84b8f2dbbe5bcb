"""
InvoiceStream Client Configuration 🧾
=====================================

Central configuration for the batch client.
"""
import os

# Backend API Settings
API_BASE_URL = os.getenv("INVOICESTREAM_API_URL", "http://localhost:8007/api/v1")
PROCESS_ENDPOINT = f"{API_BASE_URL}/process-invoices"
HEALTH_ENDPOINT = f"{API_BASE_URL}/health"

# Seconds to wait for the connection; the stream itself may stay open for minutes
CONNECT_TIMEOUT = 10
READ_TIMEOUT = 600
