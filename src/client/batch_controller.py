"""
Batch Cursor Controller 🎛️
==========================

Client-side driver for a human-in-the-loop batch.

The server processes one document per stream, so the batch lives here as a
cursor: open index 0, learn the batch size from the first ``info`` event,
wait for the operator to accept each result, then open the next index.

States:
-------
- **idle**: no batch (``is_batch_active`` False)
- **streaming**: a stream is open for ``next_index_to_process``
- **waiting**: a document finished and it is not the last one;
  ``accept_and_continue()`` moves on
- **done**: the last document finished, an ``error`` arrived, or ``stop()``
"""
from typing import Any, Callable, Dict, Iterator, List, Optional

from client.api_service import stream_invoice_events
from models.enums import EventTypeEnum

EventSource = Callable[[int], Iterator[Dict[str, Any]]]
EventListener = Callable[[Dict[str, Any]], None]


class BatchCursorController:
    """Holds the batch cursor and reacts to the events of each stream."""

    def __init__(
        self,
        event_source: Optional[EventSource] = None,
        on_event: Optional[EventListener] = None,
    ):
        self.event_source: EventSource = event_source or stream_invoice_events
        self.on_event = on_event
        self._stream: Optional[Iterator[Dict[str, Any]]] = None
        self.reset()

    def reset(self) -> None:
        self.next_index_to_process = 0
        self.total_count = 0
        self.is_waiting_for_acceptance = False
        self.is_batch_active = False
        self.results: List[Dict[str, Any]] = []
        self.current_record: Optional[Dict[str, Any]] = None
        self.current_progress: Optional[Dict[str, int]] = None
        self.message = ""

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start a new batch at index 0."""
        self.reset()
        self.is_batch_active = True
        self._process(0)

    def accept_and_continue(self) -> bool:
        """
        Accept the current result and process the next document.

        Returns:
            False if the controller was not waiting for acceptance
        """
        if not self.is_waiting_for_acceptance:
            return False

        next_index = self.next_index_to_process + 1
        self.next_index_to_process = next_index
        if next_index < self.total_count:
            self._process(next_index)
        else:
            self._finish("All files in the batch have been processed.")
        return True

    def stop(self) -> None:
        """Abandon the batch and close the open stream, if any."""
        self._close_stream()
        self.is_batch_active = False
        self.is_waiting_for_acceptance = False
        self.message = "Batch processing stopped by user."

    # ------------------------------------------------------------------
    # Stream handling
    # ------------------------------------------------------------------

    def _process(self, index: int) -> None:
        self._close_stream()
        self.is_waiting_for_acceptance = False
        self.next_index_to_process = index
        self.current_record = None
        self.message = f"Requesting processing for file index {index}..."

        self._stream = self.event_source(index)
        try:
            for event in self._stream:
                if self.on_event is not None:
                    self.on_event(event)
                if not self.is_batch_active:
                    # stop() was called from the listener
                    return
                if self._handle(event, index):
                    return
            # Stream ended without a terminal event
            self._finish("Stream closed unexpectedly.")
        finally:
            self._close_stream()

    def _handle(self, event: Dict[str, Any], index: int) -> bool:
        """Apply one event; True when the stream is finished."""
        event_type = event.get("type")

        if event_type == EventTypeEnum.INFO:
            if index == 0 and event.get("totalFiles") is not None:
                self.total_count = event["totalFiles"]
                self.current_progress = {"current": 1, "total": self.total_count}
            self.message = event.get("message", "")
            return False

        if event_type == EventTypeEnum.FILE_UPDATE:
            record = event.get("data") or {}
            self.current_record = record
            self.current_progress = event.get("progress")
            self.message = f"Status for {record.get('fileName')}: {record.get('status')}"
            return False

        if event_type == EventTypeEnum.INDEX_PROCESSED:
            self.message = event.get("message", "")
            result = event.get("processedFileResult")
            if result:
                self.current_record = result
                self.results.append(result)
            if event.get("isOverallLastFile"):
                self._finish("All files in the batch have been processed.")
            else:
                self.is_waiting_for_acceptance = True
            return True

        if event_type == EventTypeEnum.ERROR:
            self._finish(f"Error from backend: {event.get('message')}")
            return True

        return False

    def _finish(self, message: str) -> None:
        self.message = message
        self.is_batch_active = False
        self.is_waiting_for_acceptance = False
        if self.total_count > 0:
            self.current_progress = {"current": self.total_count, "total": self.total_count}

    def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        close = getattr(stream, "close", None)
        if close is not None:
            close()
