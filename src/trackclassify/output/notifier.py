from __future__ import annotations

import json
import logging
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Protocol

from trackclassify.utils.types import Event


logger = logging.getLogger("trackclassify.output.notifier")

_SEVERITY_RANK = {"low": 0, "medium": 1, "high": 2}


class Notifier(Protocol):
    def notify(self, event: Event) -> None:
        ...


@dataclass
class LogNotifier(Notifier):
    level: str = "WARNING"

    def notify(self, event: Event) -> None:
        lvl = getattr(logging, str(self.level).upper(), logging.WARNING)
        logger.log(
            lvl,
            "EVENT %s severity=%s tracks=%s t=%.3f details=%s",
            event.kind,
            event.severity,
            ",".join(str(t) for t in event.track_ids) or "-",
            event.timestamp_s,
            event.details,
        )


@dataclass
class HttpWebhookNotifier(Notifier):
    url: str
    headers: Dict[str, str]
    timeout_s: float = 2.0

    def notify(self, event: Event) -> None:
        payload = {"type": "engine_event", **event.to_dict()}
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        req = urllib.request.Request(self.url, data=data, method="POST")
        req.add_header("Content-Type", "application/json")
        for k, v in self.headers.items():
            if k.lower() == "content-type":
                continue
            req.add_header(str(k), str(v))
        try:
            with urllib.request.urlopen(req, timeout=float(self.timeout_s)) as resp:
                _ = resp.read(1)
        except Exception:
            logger.exception("Failed to POST %s event to webhook", event.kind)


@dataclass
class FilteredNotifier(Notifier):
    """Forwards only events of the selected kinds at or above a severity."""

    inner: Notifier
    min_severity: str = "low"
    kinds: FrozenSet[str] = field(default_factory=frozenset)

    def notify(self, event: Event) -> None:
        if self.kinds and event.kind not in self.kinds:
            return
        if _SEVERITY_RANK.get(event.severity, 0) < _SEVERITY_RANK.get(self.min_severity, 0):
            return
        self.inner.notify(event)


def create_notifier(cfg: Dict[str, Any]) -> Notifier:
    t = str(cfg.get("type", "log")).lower()
    if t == "log":
        inner: Notifier = LogNotifier(level=str(cfg.get("level", "WARNING")))
    elif t == "http":
        http = dict(cfg.get("http", {}))
        url = str(http.get("url", ""))
        if not url:
            raise ValueError("notifier.http.url is required when notifier.type=http")
        headers = http.get("headers", {}) or {}
        if not isinstance(headers, dict):
            raise ValueError("notifier.http.headers must be a dict")
        timeout_s = float(http.get("timeout_s", 2.0))
        inner = HttpWebhookNotifier(url=url, headers={str(k): str(v) for k, v in headers.items()}, timeout_s=timeout_s)
    else:
        raise ValueError(f"Unknown notifier.type: {t}")

    min_severity = str(cfg.get("min_severity", "low")).lower()
    if min_severity not in _SEVERITY_RANK:
        raise ValueError("notifier.min_severity must be one of: low, medium, high")
    kinds = cfg.get("kinds") or []
    if not isinstance(kinds, list):
        raise ValueError("notifier.kinds must be a list")
    if min_severity == "low" and not kinds:
        return inner
    return FilteredNotifier(inner=inner, min_severity=min_severity, kinds=frozenset(str(k) for k in kinds))
