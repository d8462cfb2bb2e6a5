from __future__ import annotations

import logging
from enum import IntEnum
from typing import Any, Iterator, Protocol

logger = logging.getLogger(__name__)


class ReadyState(IntEnum):
    HAVE_NOTHING = 0
    HAVE_METADATA = 1
    HAVE_CURRENT_DATA = 2
    HAVE_FUTURE_DATA = 3
    HAVE_ENOUGH_DATA = 4


class StreamHandle(Protocol):
    src: str
    ready_state: int
    current_time: float
    duration: float

    def play(self) -> Any: ...

    def pause(self) -> None: ...


class StreamRegistry:
    def __init__(self) -> None:
        self._handles: list[StreamHandle] = []
        self._selected_index: int | None = None

    @property
    def handles(self) -> tuple[StreamHandle, ...]:
        return tuple(self._handles)

    @property
    def selected_index(self) -> int | None:
        return self._selected_index

    def __len__(self) -> int:
        return len(self._handles)

    def __iter__(self) -> Iterator[StreamHandle]:
        return iter(tuple(self._handles))

    def __contains__(self, handle: object) -> bool:
        return self.index_of(handle) is not None

    def index_of(self, handle: object) -> int | None:
        for index, existing in enumerate(self._handles):
            if existing is handle:
                return index
        return None

    def register(self, handle: StreamHandle) -> bool:
        if handle in self:
            return False
        self._handles.append(handle)
        if self._selected_index is None:
            self._selected_index = 0
        logger.debug("Registered stream %s (count=%d)", describe_stream(handle), len(self._handles))
        return True

    def unregister(self, handle: StreamHandle) -> bool:
        index = self.index_of(handle)
        if index is None:
            return False
        del self._handles[index]
        self._selected_index = _reindex_selection(self._selected_index, index, len(self._handles))
        logger.debug(
            "Unregistered stream %s (count=%d, selected=%s)",
            describe_stream(handle),
            len(self._handles),
            self._selected_index,
        )
        return True

    def select(self, index: int | None) -> None:
        # Unchecked; the export path validates bounds before use.
        self._selected_index = index

    def selected(self) -> StreamHandle | None:
        index = self._selected_index
        if index is None or not 0 <= index < len(self._handles):
            return None
        return self._handles[index]

    def clear(self) -> None:
        self._handles.clear()
        self._selected_index = None


def _reindex_selection(selected: int | None, removed: int, remaining: int) -> int | None:
    if remaining == 0:
        return None
    if selected == removed:
        return 0
    if selected is not None and selected > removed:
        return selected - 1
    return selected


def describe_stream(handle: object) -> str:
    return getattr(handle, "src", None) or repr(handle)
