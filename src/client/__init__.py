"""Client-side helpers for driving a batch over the streaming API."""

from client.batch_controller import BatchCursorController

__all__ = ["BatchCursorController"]
