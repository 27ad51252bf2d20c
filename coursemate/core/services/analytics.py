"""Append-only analytics log that never raises into its callers."""

from __future__ import annotations

import copy
from dataclasses import replace
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from threading import Lock

from coursemate.core.models import AnalyticsEvent

logger = logging.getLogger(__name__)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class AnalyticsSink:
    """Records named events with arbitrary payloads.

    Events are kept in memory. When ``storage_path`` is given every event is
    also appended to that file as one JSON line, and events already in the
    file are reloaded on construction.
    """

    def __init__(self, storage_path: Path | None = None) -> None:
        self._lock = Lock()
        self._events: list[AnalyticsEvent] = []
        self._storage_path = storage_path
        if storage_path is not None and storage_path.exists():
            self._events = self._load_stored_events(storage_path)

    def record(self, name: str, payload: dict[str, object] | None = None) -> None:
        """Append an event. Failures are logged and the event is dropped."""
        try:
            data = dict(payload or {})
            if not data.get("timestamp"):
                data["timestamp"] = _utc_timestamp()
            line = json.dumps({"name": name, "data": data})
            event = AnalyticsEvent(name=name, payload=json.loads(line)["data"], timestamp=str(data["timestamp"]))
            with self._lock:
                if self._storage_path is not None:
                    self._storage_path.parent.mkdir(parents=True, exist_ok=True)
                    with self._storage_path.open("a", encoding="utf-8") as handle:
                        handle.write(line + "\n")
                self._events.append(event)
        except Exception:
            logger.warning("Dropping analytics event %r", name, exc_info=True)
            return
        logger.debug("[Analytics] Event: %s %s", name, data)

    def read_all(self) -> list[AnalyticsEvent]:
        """Return copies of the stored events. The log itself is never handed out."""
        with self._lock:
            return [replace(event, payload=copy.deepcopy(event.payload)) for event in self._events]

    def clear(self) -> None:
        with self._lock:
            self._events = []
            if self._storage_path is not None and self._storage_path.exists():
                try:
                    self._storage_path.write_text("", encoding="utf-8")
                except OSError:
                    logger.warning("Could not truncate %s", self._storage_path, exc_info=True)

    @staticmethod
    def _load_stored_events(path: Path) -> list[AnalyticsEvent]:
        events: list[AnalyticsEvent] = []
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except OSError:
            logger.warning("Could not read stored analytics from %s", path, exc_info=True)
            return events
        for number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                raw = json.loads(line)
                data = dict(raw["data"])
                events.append(
                    AnalyticsEvent(name=str(raw["name"]), payload=data, timestamp=str(data.get("timestamp", "")))
                )
            except (ValueError, KeyError, TypeError):
                logger.warning("Skipping malformed analytics line %d in %s", number, path)
        return events
