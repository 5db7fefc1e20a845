from .notifier import FilteredNotifier, HttpWebhookNotifier, LogNotifier, Notifier, create_notifier
from .report import EventReport
from .sinks import CsvEventSink, EventSinks, JsonlEventSink
from .stream import EventStream

__all__ = [
    "CsvEventSink",
    "EventReport",
    "EventSinks",
    "EventStream",
    "FilteredNotifier",
    "HttpWebhookNotifier",
    "JsonlEventSink",
    "LogNotifier",
    "Notifier",
    "create_notifier",
]
