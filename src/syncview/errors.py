from __future__ import annotations

from typing import Any


class SyncViewError(Exception):
    pass


class StreamOperationFailure(SyncViewError):
    """A single stream rejected a play, pause, seek or volume request.

    These are reported to failure listeners and logged; the group command that
    produced them always completes for the remaining streams.
    """

    def __init__(self, operation: str, stream: Any, cause: BaseException) -> None:
        self.operation = operation
        self.stream = stream
        self.cause = cause
        source = getattr(stream, "src", None) or "<unknown>"
        super().__init__(f"{operation} failed for {source}: {cause}")


class NoSelection(SyncViewError):
    pass


class DegenerateTimeline(SyncViewError):
    pass


class ExportError(SyncViewError):
    pass
