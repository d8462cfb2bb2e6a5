from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

import httpx

from .errors import ExportError, NoSelection
from .streams import StreamRegistry
from .timeparse import format_trim_token
from .trim import TrimSelector

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "video.mp4"


@dataclass(frozen=True)
class ExportRequest:
    filename: str
    source: str
    stream_index: int
    trim_start: float | None = None
    trim_end: float | None = None

    @property
    def is_trimmed(self) -> bool:
        return self.trim_start is not None and self.trim_end is not None

    def to_dict(self) -> dict[str, object]:
        return {
            "filename": self.filename,
            "source": self.source,
            "stream_index": self.stream_index,
            "trim_start": self.trim_start,
            "trim_end": self.trim_end,
        }


ExportAction = Callable[[ExportRequest], None]
Notifier = Callable[[str], None]
Poster = Callable[[str, Mapping[str, object]], Any]


@dataclass(frozen=True)
class ExportTarget:
    index: int
    label: str
    source: str


def base_filename(source: str | None) -> str:
    if not source:
        return DEFAULT_FILENAME
    path = source.split("?", 1)[0].split("#", 1)[0] if "://" in source else source
    last = path.replace("\\", "/").rsplit("/", 1)[-1]
    if last and "." in last:
        return last
    return DEFAULT_FILENAME


def trimmed_filename(filename: str, trim_start: float, trim_end: float) -> str:
    stem, dot, ext = filename.rpartition(".")
    if not dot:
        stem, ext = filename, "mp4"
    elif not stem:
        stem = "video"
    return f"{stem}_{format_trim_token(trim_start)}-{format_trim_token(trim_end)}.{ext}"


class ExportRequestBuilder:
    def __init__(
        self,
        registry: StreamRegistry,
        trim: TrimSelector,
        action: ExportAction,
    ) -> None:
        self.registry = registry
        self.trim = trim
        self.action = action

    def needs_selection(self) -> bool:
        return len(self.registry) > 1

    def targets(self) -> list[ExportTarget]:
        targets: list[ExportTarget] = []
        for index, stream in enumerate(self.registry):
            source = getattr(stream, "src", "") or ""
            label = getattr(stream, "label", None) or f"Camera {index + 1}"
            targets.append(ExportTarget(index=index, label=label, source=source))
        return targets

    def build(self) -> ExportRequest:
        index = self.registry.selected_index
        if index is None or not 0 <= index < len(self.registry):
            logger.error("No stream selected for export (selected=%s)", index)
            raise NoSelection("No stream selected for export")
        stream = self.registry.handles[index]
        source = getattr(stream, "src", "") or ""
        filename = base_filename(source)
        trim_range = self.trim.trim_range
        if trim_range is None:
            return ExportRequest(filename=filename, source=source, stream_index=index)
        start, end = trim_range
        return ExportRequest(
            filename=trimmed_filename(filename, start, end),
            source=source,
            stream_index=index,
            trim_start=start,
            trim_end=end,
        )

    def request_export(self) -> ExportRequest:
        request = self.build()
        logger.info("Exporting %s from %s", request.filename, request.source or "<unknown>")
        self.action(request)
        if request.is_trimmed:
            self.trim.reset_trim()
        return request

    def export_stream(self, index: int) -> ExportRequest:
        self.registry.select(index)
        return self.request_export()


class NotifyExportAction:
    def __init__(self, notifier: Notifier) -> None:
        self.notifier = notifier

    def __call__(self, request: ExportRequest) -> None:
        self.notifier(f"Downloading file: {request.filename}")


class HttpExportAction:
    """POST the export descriptor to a backend that produces the clip."""

    def __init__(self, endpoint: str, poster: Poster | None = None) -> None:
        if not endpoint:
            raise ValueError("Missing export endpoint")
        self.endpoint = endpoint
        self.poster = poster or _http_post

    def __call__(self, request: ExportRequest) -> None:
        try:
            self.poster(self.endpoint, request.to_dict())
        except httpx.HTTPError as exc:
            raise ExportError(f"Export request failed: {exc}") from exc


def _http_post(url: str, payload: Mapping[str, object]) -> httpx.Response:
    with httpx.Client(follow_redirects=True, timeout=10.0) as client:
        response = client.post(url, json=dict(payload))
        response.raise_for_status()
        return response
