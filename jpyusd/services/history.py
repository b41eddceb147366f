"""Session-scoped, bounded history of completed conversions."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from jpyusd.utils.datetime import utc_now

from .conversion import ConversionResult

DEFAULT_MAX_ENTRIES = 10


@dataclass(frozen=True)
class HistoryEntry:
    input_text: str
    output_text: str
    from_currency: str
    to_currency: str
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["timestamp"] = self.timestamp.isoformat()
        return payload


class ConversionHistory:
    """Most-recent-first list of conversions, evicting the oldest beyond `max_entries`."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be a positive integer")
        self._entries: deque[HistoryEntry] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    @property
    def max_entries(self) -> int:
        return self._entries.maxlen or DEFAULT_MAX_ENTRIES

    def record(self, result: ConversionResult) -> HistoryEntry | None:
        """Store a conversion; zero results are not recorded."""

        if result.converted == 0:
            return None
        entry = HistoryEntry(
            input_text=result.formatted_amount,
            output_text=result.formatted_converted,
            from_currency=result.direction.source.value,
            to_currency=result.direction.target.value,
        )
        with self._lock:
            self._entries.appendleft(entry)
        return entry

    def list(self) -> list[HistoryEntry]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def init_history(app) -> ConversionHistory:
    """Create the conversion history store on the Flask app."""

    history = ConversionHistory(int(app.config.get("HISTORY_MAX_ENTRIES", DEFAULT_MAX_ENTRIES)))
    app.extensions["conversion_history"] = history
    return history
