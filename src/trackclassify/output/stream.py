from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, Iterable, List

from trackclassify.utils.types import Event


logger = logging.getLogger("trackclassify.output.stream")

Subscriber = Callable[[Event], None]


class EventStream:
    """Ordered, append-only fan-out of engine events.

    Subscribers are called synchronously in subscription order. A failing
    subscriber is logged and does not stop delivery to the others.
    """

    def __init__(self, history: int = 256) -> None:
        self._subscribers: List[Subscriber] = []
        self._history: Deque[Event] = deque(maxlen=max(1, int(history)))
        self._published = 0

    @property
    def published(self) -> int:
        return self._published

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def publish(self, events: Iterable[Event]) -> None:
        for ev in events:
            self._history.append(ev)
            self._published += 1
            for cb in list(self._subscribers):
                try:
                    cb(ev)
                except Exception:
                    logger.exception("event subscriber failed for kind=%s", ev.kind)

    def recent(self, n: int = 20) -> List[Event]:
        if n <= 0:
            return []
        return list(self._history)[-int(n):]
