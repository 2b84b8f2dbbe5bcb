"""
InvoiceStream API Service 🔌
============================

Backend API integration layer for the batch client.
Opens one Server-Sent-Events stream per document index and yields the
decoded events.
"""
import json
from typing import Any, Dict, Generator, Optional

import requests

from client.config import CONNECT_TIMEOUT, HEALTH_ENDPOINT, PROCESS_ENDPOINT, READ_TIMEOUT


def stream_invoice_events(
    start_index: int,
    endpoint: str = PROCESS_ENDPOINT,
    session: Optional[requests.Session] = None,
) -> Generator[Dict[str, Any], None, None]:
    """
    Stream progress events for the document at ``start_index``.

    Args:
        start_index: Index of the document to process
        endpoint: Full URL of the process-invoices endpoint
        session: Optional requests session (connection reuse, testing)

    Yields:
        Decoded event dicts (``info``, ``file_update``, ``index_processed``, ``error``).
        Connection problems are reported as a synthetic ``error`` event.
    """
    http = session or requests
    try:
        with http.get(
            endpoint,
            params={"start_index": start_index},
            stream=True,
            timeout=(CONNECT_TIMEOUT, READ_TIMEOUT),
        ) as response:
            response.raise_for_status()

            for line in response.iter_lines(decode_unicode=True):
                # SSE format: "data: <json>"
                if not line or not line.startswith("data: "):
                    continue
                try:
                    yield json.loads(line[6:])
                except json.JSONDecodeError:
                    yield {"type": "error", "message": "Error processing incoming SSE message."}
                    return

    except requests.exceptions.RequestException as e:
        yield {"type": "error", "message": f"Connection error: {e}"}


def check_backend_health(endpoint: str = HEALTH_ENDPOINT) -> bool:
    """
    Check if the backend API is reachable.

    Returns:
        True if backend is healthy, False otherwise
    """
    try:
        response = requests.get(endpoint, timeout=5)
        return response.status_code == 200
    except requests.exceptions.RequestException:
        return False
