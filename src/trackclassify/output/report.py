from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from trackclassify.utils.types import Event, TrackSnapshot


@dataclass
class EventReport:
    """Human-readable summary built from the event stream.

    Feed it events with :meth:`add` (it can be subscribed directly) and frame
    snapshots with :meth:`observe_frame` to record the peak person count.
    """

    person_class: str = "person"
    max_rows: int = 1000
    events: List[Event] = field(default_factory=list)
    frames: int = 0
    peak_persons: int = 0
    peak_at_s: Optional[float] = None

    def add(self, event: Event) -> None:
        if len(self.events) < self.max_rows:
            self.events.append(event)

    __call__ = add

    def observe_frame(self, timestamp_s: float, tracks: Sequence[TrackSnapshot]) -> None:
        self.frames += 1
        n = sum(1 for t in tracks if t.class_name == self.person_class)
        if n > self.peak_persons:
            self.peak_persons = n
            self.peak_at_s = float(timestamp_s)

    def counts_by_kind(self) -> Dict[str, int]:
        return dict(sorted(Counter(e.kind for e in self.events).items()))

    def counts_by_severity(self) -> Dict[str, int]:
        return dict(sorted(Counter(e.severity for e in self.events).items()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frames": self.frames,
            "total_events": len(self.events),
            "by_kind": self.counts_by_kind(),
            "by_severity": self.counts_by_severity(),
            "peak_persons": self.peak_persons,
            "peak_at_s": self.peak_at_s,
            "events": [e.to_dict() for e in self.events],
        }

    def render_text(self) -> str:
        lines = [
            "Activity report",
            f"frames processed: {self.frames}",
            f"events: {len(self.events)}",
        ]
        for kind, n in self.counts_by_kind().items():
            lines.append(f"  {kind}: {n}")
        if self.peak_at_s is None:
            lines.append("peak persons: 0")
        else:
            lines.append(f"peak persons: {self.peak_persons} at t={self.peak_at_s:.3f}s")
        lines.append("")
        lines.append(f"{'time_s':>10}  {'kind':<20}  {'severity':<8}  tracks")
        for e in self.events:
            tracks = ",".join(str(t) for t in e.track_ids) or "-"
            lines.append(f"{e.timestamp_s:>10.3f}  {e.kind:<20}  {e.severity:<8}  {tracks}")
        return "\n".join(lines) + "\n"
