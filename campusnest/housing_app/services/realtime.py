"""
In-process change feed for the named tables.

Model signals (see `housing_app.signals`) call `hub.broadcast(...)`; every
subscribed channel whose bindings match the table, event and optional
`column=eq.value` filter receives a payload:

    {"eventType": "INSERT", "schema": "public", "table": "properties",
     "new": {...}, "old": {...}}

A channel belongs to whoever created it and must be released with
`remove_channel` (or by leaving its `with` block).
"""

import logging
import threading

logger = logging.getLogger(__name__)

EVENT_TYPES = ("INSERT", "UPDATE", "DELETE")

SUBSCRIBED = "SUBSCRIBED"
CLOSED = "CLOSED"


class RealtimeError(Exception):
    pass


def _parse_filter(expr):
    if not expr:
        return None
    column, _, rest = expr.partition("=")
    op, _, value = rest.partition(".")
    if not column or op != "eq":
        raise RealtimeError(f"Unsupported filter: {expr!r}")
    return column, value


class Binding:
    def __init__(self, config: dict, callback):
        self.event = (config.get("event") or "*").upper()
        if self.event != "*" and self.event not in EVENT_TYPES:
            raise RealtimeError(f"Unsupported event: {self.event!r}")
        self.schema = config.get("schema", "public")
        self.table = config.get("table")
        self.filter = _parse_filter(config.get("filter"))
        self.callback = callback

    def matches(self, table: str, event: str, record: dict) -> bool:
        if self.table and self.table not in ("*", table):
            return False
        if self.event != "*" and self.event != event:
            return False
        if self.filter:
            column, expected = self.filter
            actual = record.get(column)
            if isinstance(actual, bool):
                actual = "true" if actual else "false"
            if str(actual) != expected:
                return False
        return True


class Channel:
    def __init__(self, name: str, hub: "RealtimeHub"):
        self.name = name
        self.hub = hub
        self.owner = None
        self.bindings = []
        self.state = "closed"
        self._status_callback = None

    def on(self, event_type: str, config: dict, callback):
        if event_type != "postgres_changes":
            raise RealtimeError(f"Unsupported channel event type: {event_type!r}")
        self.bindings.append(Binding(config, callback))
        return self

    def subscribe(self, status_callback=None):
        self.hub.join(self)
        self.state = "joined"
        self._status_callback = status_callback
        if status_callback is not None:
            status_callback(SUBSCRIBED)
        return self

    def unsubscribe(self):
        was_joined = self.state == "joined"
        self.hub.leave(self)
        self.state = "closed"
        if was_joined and self._status_callback is not None:
            self._status_callback(CLOSED)

    def deliver(self, table: str, event: str, payload: dict):
        record = payload["new"] if event != "DELETE" else payload["old"]
        for binding in list(self.bindings):
            if not binding.matches(table, event, record or {}):
                continue
            try:
                binding.callback(payload)
            except Exception:
                logger.exception("realtime listener failed on channel %s", self.name)

    def __enter__(self):
        if self.state != "joined":
            self.subscribe()
        return self

    def __exit__(self, exc_type, exc, tb):
        (self.owner or self.hub).remove_channel(self)
        return False

    def __repr__(self):
        return f"<Channel {self.name} {self.state}>"


class RealtimeHub:
    def __init__(self):
        self._channels = []
        self._lock = threading.Lock()

    def channel(self, name: str) -> Channel:
        return Channel(name, self)

    def join(self, channel: Channel):
        with self._lock:
            if channel not in self._channels:
                self._channels.append(channel)

    def leave(self, channel: Channel):
        with self._lock:
            if channel in self._channels:
                self._channels.remove(channel)

    def remove_channel(self, channel: Channel) -> str:
        channel.unsubscribe()
        return "ok"

    def remove_all_channels(self):
        for channel in self.channels():
            channel.unsubscribe()

    def channels(self) -> list:
        with self._lock:
            return list(self._channels)

    def broadcast(self, table: str, event: str, new: dict | None = None, old: dict | None = None):
        payload = {
            "eventType": event,
            "schema": "public",
            "table": table,
            "new": new or {},
            "old": old or {},
        }
        for channel in self.channels():
            channel.deliver(table, event, payload)


hub = RealtimeHub()
