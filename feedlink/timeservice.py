"""Subscription to the broker's time topics."""

from collections.abc import Callable
from enum import Enum
from typing import Any

__all__ = ["TimeFormat", "TimeService"]


class TimeFormat(Enum):
    """Formats the time service publishes in; the value names the topic."""

    SECONDS = "seconds"
    MILLIS = "millis"
    ISO = "ISO-8601"


def _coerce_format(time_format: Any) -> TimeFormat:
    if isinstance(time_format, TimeFormat):
        return time_format
    try:
        return TimeFormat(time_format)
    except ValueError:
        return TimeFormat.SECONDS


class TimeService:
    """Receives the current time from the broker in one format.

    ``io.mqtt.subscribe(topic, callback)`` is used to register the topic.
    Unknown formats fall back to seconds.
    """

    def __init__(self, io: Any, time_format: Any = TimeFormat.SECONDS) -> None:
        self.io = io
        self.format = _coerce_format(time_format)
        self.topic = f"time/{self.format.value}"
        self.data: str | None = None
        self._callback: Callable[[str], None] | None = None
        io.mqtt.subscribe(self.topic, self.sub_callback)

    def on_message(self, callback: Callable[[str], None]) -> None:
        """Call ``callback`` with each time message received."""
        self._callback = callback

    def sub_callback(self, payload: str) -> None:
        """Store an incoming time message and pass it to the callback."""
        self.data = payload
        if self._callback is not None:
            self._callback(payload)