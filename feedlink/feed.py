"""A single feed: publishing values, receiving updates and REST checks."""

import logging
from collections.abc import Callable
from typing import Any

from feedlink.data import Data

__all__ = ["Feed"]

_log = logging.getLogger(__name__)

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class Feed:
    """A feed owned by a user, reachable over MQTT and the REST API.

    ``io`` must provide ``username``, ``key``, ``mqtt`` and ``http``.
    ``io.mqtt`` offers ``subscribe(topic, callback)`` and
    ``publish(topic, payload) -> bool``. ``io.http`` offers
    ``request(method, path, headers, body) -> (status, body)``.
    """

    def __init__(self, io: Any, name: str, owner: str | None = None) -> None:
        self.io = io
        self.name = name
        self.owner = owner if owner is not None else io.username
        self.topic = f"{self.owner}/f/{name}/csv"
        self.get_topic = f"{self.topic}/get"
        self.feed_url = f"/api/v2/{self.owner}/feeds/{name}"
        self.create_url = f"/api/v2/{self.owner}/feeds"
        self.data = Data(name)
        self._callback: Callable[[Data], None] | None = None
        io.mqtt.subscribe(self.topic, self.sub_callback)

    def on_message(self, callback: Callable[[Data], None]) -> None:
        """Call ``callback`` with the feed's data on each incoming message."""
        self._callback = callback

    def save(
        self,
        value: str | bool | int | float,
        lat: float = 0,
        lon: float = 0,
        ele: float = 0,
        precision: int = 6,
    ) -> bool:
        """Publish ``value`` with its location; True when published."""
        self.data.set_value(value, lat, lon, ele, precision)
        return bool(self.io.mqtt.publish(self.topic, self.data.to_csv()))

    def get(self) -> bool:
        """Ask the broker to resend the feed's last value."""
        return bool(self.io.mqtt.publish(self.get_topic, ""))

    def _request(
        self, method: str, path: str, body: str | None = None
    ) -> tuple[int, str]:
        headers = {}
        if body is not None:
            headers["Content-Type"] = _FORM_CONTENT_TYPE
            headers["Content-Length"] = str(len(body.encode("utf-8")))
        headers["X-AIO-Key"] = self.io.key
        status, response = self.io.http.request(method, path, headers, body)
        return int(status), response or ""

    def exists(self) -> bool:
        """True when the feed exists for its owner."""
        status, _ = self._request("GET", self.feed_url)
        return status == 200

    def create(self) -> bool:
        """Create the feed; True when the server reports it was created."""
        status, _ = self._request("POST", self.create_url, f"name={self.name}")
        return status == 201

    def last_value(self) -> Data | None:
        """Fetch the most recent value, or None if there is none."""
        url = f"/api/v2/{self.owner}/feeds/{self.name}/data/retain"
        _log.debug("lastValue get %s", url)
        status, body = self._request("GET", url)
        if 200 <= status <= 299:
            return Data(self.name, body) if body else None
        _log.error(
            "error retrieving lastValue, status: %s; response body: %s",
            status,
            body,
        )
        return None

    def set_location(self, lat: float, lon: float, ele: float = 0) -> None:
        """Set the location sent with the next saved value."""
        self.data.set_location(lat, lon, ele)

    def sub_callback(self, payload: str) -> None:
        """Load an incoming CSV message and pass the data to the callback."""
        self.data.set_csv(payload)
        if self._callback is not None:
            self._callback(self.data)