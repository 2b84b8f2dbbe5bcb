"""
Progress Service 📡
===================

Turns pipeline events into a Server-Sent-Events stream.

The producer (the request controller) calls ``send()``; the HTTP layer
iterates ``frames()``. Once the stream is closed, either because the producer
is done or because the client disconnected, further events are dropped and
``closed`` tells the producer to stop working.

Wire format: ``data: <JSON>\\n\\n`` per event.
"""

import asyncio
import json
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional

from schemas.events import ProgressEvent

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}

_END_OF_STREAM = None

# Seconds between background checks for a departed client
DISCONNECT_POLL_INTERVAL = 0.5


def format_sse(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


class ProgressBroadcaster:
    """Single-request event channel between the pipeline and one consumer."""

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self.sent_count = 0

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, event: ProgressEvent) -> bool:
        """
        Queue an event for delivery.

        Yields to the event loop after queueing so the consumer (and the
        disconnect watcher) can run between two pipeline steps.

        Returns:
            False if the stream is already closed and the event was dropped
        """
        if self._closed:
            logger.debug(f"Dropping '{event.type}' event: stream closed")
            return False
        self._queue.put_nowait(format_sse(event.to_payload()))
        self.sent_count += 1
        await asyncio.sleep(0)
        return True

    def close(self) -> None:
        """Mark the stream finished; safe to call more than once."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_END_OF_STREAM)

    async def watch_disconnect(
        self,
        is_disconnected: Callable[[], Awaitable[bool]],
        interval: float = DISCONNECT_POLL_INTERVAL,
    ) -> bool:
        """
        Poll ``is_disconnected`` until the stream closes.

        Runs independently of the queue, so a client that leaves while the
        producer is busy (e.g. waiting on a model call) is noticed even
        though no frame is flowing.

        Returns:
            True if the client disconnected and the stream was closed here
        """
        while not self._closed:
            if await is_disconnected():
                logger.info("Client disconnected; closing progress stream")
                self.close()
                return True
            await asyncio.sleep(interval)
        return False

    async def frames(
        self,
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
        poll_interval: float = DISCONNECT_POLL_INTERVAL,
    ) -> AsyncIterator[str]:
        """
        Yield framed events until the stream closes.

        Args:
            is_disconnected: Optional check (e.g. ``Request.is_disconnected``);
                it is polled in the background and before each frame, and
                when it reports True the stream is closed and iteration stops.
            poll_interval: Seconds between background disconnect checks
        """
        watcher: Optional[asyncio.Task] = None
        if is_disconnected is not None:
            watcher = asyncio.create_task(self.watch_disconnect(is_disconnected, poll_interval))
        try:
            while True:
                frame = await self._queue.get()
                if frame is _END_OF_STREAM:
                    break
                if is_disconnected is not None and await is_disconnected():
                    logger.info("Client disconnected; closing progress stream")
                    break
                yield frame
        finally:
            self.close()
            if watcher is not None:
                watcher.cancel()
