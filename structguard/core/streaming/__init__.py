# structguard/core/streaming/__init__.py
from structguard.core.streaming.marker_filter import (
    FilterState,
    StreamingMarkerFilter,
    could_be_marker,
    filter_stream,
    is_complete_marker,
    transition,
)

__all__ = [
    "FilterState",
    "StreamingMarkerFilter",
    "could_be_marker",
    "filter_stream",
    "is_complete_marker",
    "transition",
]
