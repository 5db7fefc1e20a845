from __future__ import annotations

import csv
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TextIO

from trackclassify.utils.types import Event


def _ensure_parent(path: str) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)


@dataclass
class CsvEventSink:
    """One row per event, flushed on write. ``details`` is JSON-encoded."""

    path: str
    _f: Optional[TextIO] = None
    _w: Optional[csv.DictWriter] = None

    def open(self) -> None:
        _ensure_parent(self.path)
        self._f = open(self.path, "w", newline="", encoding="utf-8")
        self._w = csv.DictWriter(self._f, fieldnames=["timestamp_s", "kind", "severity", "track_ids", "details"])
        self._w.writeheader()

    def write(self, ev: Event) -> None:
        if self._w is None:
            raise RuntimeError("CsvEventSink not opened")
        self._w.writerow(
            {
                "timestamp_s": ev.timestamp_s,
                "kind": ev.kind,
                "severity": ev.severity,
                "track_ids": " ".join(str(t) for t in ev.track_ids),
                "details": json.dumps(ev.details, ensure_ascii=False, sort_keys=True),
            }
        )
        if self._f is not None:
            self._f.flush()

    def close(self) -> None:
        if self._f is not None:
            self._f.close()
        self._f = None
        self._w = None


@dataclass
class JsonlEventSink:
    path: str
    _f: Optional[TextIO] = None

    def open(self) -> None:
        _ensure_parent(self.path)
        self._f = open(self.path, "w", encoding="utf-8")

    def write(self, ev: Event) -> None:
        if self._f is None:
            raise RuntimeError("JsonlEventSink not opened")
        self._f.write(json.dumps(ev.to_dict(), ensure_ascii=False) + "\n")
        self._f.flush()

    def close(self) -> None:
        if self._f is not None:
            self._f.close()
        self._f = None


@dataclass
class EventSinks:
    csv: Optional[CsvEventSink]
    jsonl: Optional[JsonlEventSink]

    def open(self) -> None:
        if self.csv is not None:
            self.csv.open()
        if self.jsonl is not None:
            self.jsonl.open()

    def write(self, ev: Event) -> None:
        if self.csv is not None:
            self.csv.write(ev)
        if self.jsonl is not None:
            self.jsonl.write(ev)

    def close(self) -> None:
        if self.csv is not None:
            self.csv.close()
        if self.jsonl is not None:
            self.jsonl.close()
