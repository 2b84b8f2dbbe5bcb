"""
Invoice Routes API 🧾
=====================

FastAPI route for the streaming invoice extractor.

Endpoints:
- GET /api/v1/process-invoices?start_index=N - Process the document at index N (SSE)

Each request processes exactly one document and then ends the stream; the
client drives the batch by requesting the next index.
"""
import asyncio
from typing import Optional, Set

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from controllers.invoice_controller import InvoiceController
from services.progress_service import SSE_HEADERS, ProgressBroadcaster

invoice_router = APIRouter(
    prefix="/api/v1",
    tags=["invoices"],
)

# Singleton controller
_controller = None

# Keep producer tasks referenced until they finish
_background_tasks: Set[asyncio.Task] = set()


def get_controller() -> InvoiceController:
    """Get or create the InvoiceController singleton."""
    global _controller
    if _controller is None:
        _controller = InvoiceController()
    return _controller


@invoice_router.get("/process-invoices")
async def process_invoices(
    request: Request,
    start_index: Optional[str] = None,
    controller: InvoiceController = Depends(get_controller),
):
    """
    Stream progress for the document at ``start_index``.

    ``start_index`` is lenient: missing, non-numeric or negative values mean 0.

    Events (``data: <JSON>``):
    - ``info``: batch size or requested index
    - ``file_update``: one per status change of the document
    - ``index_processed``: final summary for this request
    - ``error``: setup failure (no documents, schema or prompt unreadable)

    A client that goes away closes the stream; the document in flight is
    abandoned before anything is written.
    """
    index = controller.coerce_index(start_index)
    broadcaster = ProgressBroadcaster()

    task = asyncio.create_task(controller.process_index(index, broadcaster))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    return StreamingResponse(
        broadcaster.frames(request.is_disconnected),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
