"""A group of feeds published and received together as one CSV message."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from feedlink.data import Data

__all__ = ["Group"]

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@dataclass
class _GroupCallback:
    """A callback for the whole group, or for one feed when ``feed`` is set."""

    callback: Callable[[Data], None]
    feed: str | None = None


class Group:
    """A group of feeds owned by the current user.

    ``io`` must provide ``username``, ``key``, ``mqtt`` and ``http``.
    ``io.mqtt`` offers ``subscribe(topic, callback)`` and
    ``publish(topic, payload) -> bool``. ``io.http`` offers
    ``request(method, path, headers, body) -> (status, body)``.
    """

    def __init__(self, io: Any, name: str) -> None:
        self.io = io
        self.name = name
        self.owner = io.username
        self.topic = f"{self.owner}/g/{name}/csv"
        self.get_topic = f"{self.topic}/get"
        self.group_url = f"/api/v2/{self.owner}/groups/{name}"
        self.create_url = f"/api/v2/{self.owner}/groups"
        self._records: dict[str, Data] = {}
        self._callbacks: list[_GroupCallback] = []
        io.mqtt.subscribe(self.topic, self.sub_callback)

    @property
    def data(self) -> list[Data]:
        """The group's records in the order their feeds were first used."""
        return list(self._records.values())

    def set(self, feed: str, value: str | bool | int | float) -> None:
        """Set the value of ``feed`` for the next save."""
        self.get_feed(feed).set_value(value)

    def save(self) -> bool:
        """Publish every record as ``feed,value`` lines; False if empty."""
        if not self._records:
            return False
        payload = "".join(
            f"{record.feed_name},{record.value}\n"
            for record in self._records.values()
        )
        return bool(self.io.mqtt.publish(self.topic, payload))

    def get(self) -> bool:
        """Ask the broker to resend the group's last values."""
        return bool(self.io.mqtt.publish(self.get_topic, ""))

    def get_feed(self, feed: str) -> Data:
        """Return the record of ``feed``, adding an empty one if needed."""
        record = self._records.get(feed)
        if record is None:
            record = Data(feed)
            self._records[feed] = record
        return record

    def on_message(
        self, callback: Callable[[Data], None], feed: str | None = None
    ) -> None:
        """Register ``callback`` for every feed, or for ``feed`` alone.

        Only the first callback registered for a given feed is kept.
        """
        if feed is not None and any(
            entry.feed == feed for entry in self._callbacks
        ):
            return
        self._callbacks.append(_GroupCallback(callback, feed))

    def call(self, data: Data) -> None:
        """Pass ``data`` to every callback that wants its feed."""
        for entry in self._callbacks:
            if entry.feed is None or entry.feed == data.feed_name:
                entry.callback(data)

    def sub_callback(self, payload: str) -> None:
        """Apply an incoming group message and notify the callbacks."""
        if not self._callbacks:
            return
        for line in filter(None, payload.split("\n")):
            tokens = [token for token in line.split(",") if token]
            if not tokens:
                continue
            name = tokens[0]
            if name == "location":
                continue
            if len(tokens) < 2:
                continue
            record = self.get_feed(name)
            record.set_value(tokens[1])
            self.call(record)

    def set_location(self, lat: float = 0, lon: float = 0, ele: float = 0) -> None:
        """Set the location of every record in the group."""
        for record in self._records.values():
            record.set_location(lat, lon, ele)

    def _request(
        self, method: str, path: str, body: str | None = None
    ) -> int:
        headers = {}
        if body is not None:
            headers["Content-Type"] = _FORM_CONTENT_TYPE
            headers["Content-Length"] = str(len(body.encode("utf-8")))
        headers["X-AIO-Key"] = self.io.key
        status, _ = self.io.http.request(method, path, headers, body)
        return int(status)

    def exists(self) -> bool:
        """True when the group exists for its owner."""
        return self._request("GET", self.group_url) == 200

    def create(self) -> bool:
        """Create the group; True when the server reports it was created."""
        return self._request("POST", self.create_url, f"name={self.name}") == 201