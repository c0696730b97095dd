"""The client: connection state, keep-alive and factories for feeds."""

import logging
import time as _time
from enum import IntEnum
from typing import Any, Protocol

from feedlink.board import board_id as _board_id
from feedlink.board import board_type as _board_type
from feedlink.feed import Feed
from feedlink.group import Group
from feedlink.timeservice import TimeFormat, TimeService

__all__ = [
    "Client",
    "Clock",
    "Status",
    "error_callback",
    "ERROR_TOPIC",
    "THROTTLE_TOPIC",
    "PING_INTERVAL",
    "THROTTLE_RECONNECT_INTERVAL",
    "NET_CONNECTION_TIMEOUT",
    "MQTT_CONNECTION_TIMEOUT",
    "DEFAULT_PACKET_READ_TIMEOUT",
    "VERSION",
]

_log = logging.getLogger(__name__)

ERROR_TOPIC = "/errors"
THROTTLE_TOPIC = "/throttle"

PING_INTERVAL = 60000
THROTTLE_RECONNECT_INTERVAL = 60000
NET_CONNECTION_TIMEOUT = 60000
MQTT_CONNECTION_TIMEOUT = 60000
DEFAULT_PACKET_READ_TIMEOUT = 100
_NET_RETRY_DELAY = 500

VERSION = (1, 0, 0)


class Status(IntEnum):
    """Connection status; lower values mean a poorer connection."""

    IDLE = 0
    NET_DISCONNECTED = 1
    DISCONNECTED = 2

    NET_CONNECT_FAILED = 10
    CONNECT_FAILED = 11
    FINGERPRINT_INVALID = 12
    AUTH_FAILED = 13

    NET_CONNECTED = 20
    CONNECTED = 21
    CONNECTED_INSECURE = 22
    FINGERPRINT_UNSUPPORTED = 23
    FINGERPRINT_VALID = 24


_STATUS_TEXT = {
    Status.IDLE: "Idle. Waiting for connect to be called...",
    Status.NET_DISCONNECTED: "Network disconnected.",
    Status.DISCONNECTED: "Disconnected from the broker.",
    Status.NET_CONNECT_FAILED: "Network connection failed.",
    Status.CONNECT_FAILED: "Broker connection failed.",
    Status.FINGERPRINT_INVALID: "Broker SSL fingerprint verification failed.",
    Status.AUTH_FAILED: "Broker authentication failed.",
    Status.NET_CONNECTED: "Network connected.",
    Status.CONNECTED: "Broker connected.",
    Status.CONNECTED_INSECURE: (
        "Broker connected. **THIS CONNECTION IS INSECURE** SSL/TLS "
        "not supported for this platform."
    ),
    Status.FINGERPRINT_UNSUPPORTED: (
        "Broker connected over SSL/TLS. Fingerprint verification unsupported."
    ),
    Status.FINGERPRINT_VALID: (
        "Broker connected over SSL/TLS. Fingerprint valid."
    ),
}

_CONNECT_REFUSED = frozenset({1, 2, 4, 5})
_CONNECT_RETRY_LATER = frozenset({3, 6, 7})


class Clock(Protocol):
    """Source of milliseconds and of delays."""

    def millis(self) -> int: ...

    def sleep(self, ms: int) -> None: ...


class _SystemClock:
    """Clock backed by the monotonic system timer."""

    def millis(self) -> int:
        return int(_time.monotonic() * 1000)

    def sleep(self, ms: int) -> None:
        _time.sleep(ms / 1000)


def error_callback(message: str) -> None:
    """Report a message received on the error or throttle topic."""
    _log.error("ERROR: %s", message)


class Client:
    """Keeps a connection to the broker alive and hands out feeds.

    ``mqtt`` offers ``subscribe(topic, callback)``, ``publish(topic,
    payload)``, ``connected()``, ``connect(username, key) -> int``,
    ``process_packets(timeout_ms)`` and ``ping()``. ``http`` offers
    ``request(method, path, headers, body) -> (status, body)``. ``clock``
    offers ``millis()`` and ``sleep(ms)``.

    The network is taken to be up once ``connect`` has been called;
    subclasses for other links override ``network_status``,
    ``connection_type``, ``_connect`` and ``_disconnect``.
    """

    def __init__(
        self,
        username: str,
        key: str,
        mqtt: Any = None,
        http: Any = None,
        clock: Clock | None = None,
    ) -> None:
        self.username = username
        self.key = key
        self.mqtt = mqtt
        self.http = http
        self.clock: Clock = clock if clock is not None else _SystemClock()
        self.packet_read_timeout = DEFAULT_PACKET_READ_TIMEOUT
        self.error_topic = f"{username}{ERROR_TOPIC}"
        self.throttle_topic = f"{username}{THROTTLE_TOPIC}"
        self._status = Status.IDLE
        self._last_ping = self.clock.millis()
        self._last_mqtt_connect = 0
        self._user_agent: str | None = None
        self._error_subscribed = False
        self._network_up = False

    def connect(self) -> None:
        """Start connecting to the network and the broker."""
        _log.debug("connect()")
        self._last_mqtt_connect = 0
        self._status = Status.IDLE
        self._last_ping = 0
        if not self._error_subscribed:
            self.mqtt.subscribe(self.error_topic, error_callback)
            self.mqtt.subscribe(self.throttle_topic, error_callback)
            self._error_subscribed = True
        self._connect()

    def wifi_disconnect(self) -> None:
        """Disconnect from the network."""
        _log.debug("wifi_disconnect()")
        self._disconnect()

    def _connect(self) -> None:
        self._network_up = True
        self._status = Status.NET_CONNECTED

    def _disconnect(self) -> None:
        self._network_up = False
        self._status = Status.NET_DISCONNECTED

    def run(self, busywait_ms: int = 0, fail_fast: bool = False) -> Status:
        """Keep the connection alive; call this often.

        Without ``fail_fast`` the network and broker connections are
        repaired before returning, which may take a while.
        """
        time_start = self.clock.millis()
        if self.status() < Status.NET_CONNECTED:
            if fail_fast:
                return self.status()
            _log.error("run() connection failed -- retrying")
            started = self.clock.millis()
            self.connect()
            while self.status() < Status.CONNECTED:
                if self.clock.millis() - started > NET_CONNECTION_TIMEOUT:
                    return self.status()
                self.clock.sleep(_NET_RETRY_DELAY)

        while (
            self.mqtt_status(fail_fast) != Status.CONNECTED
            and self.clock.millis() - time_start < MQTT_CONNECTION_TIMEOUT
        ):
            pass
        if self.mqtt_status(fail_fast) != Status.CONNECTED:
            return self.status()

        if busywait_ms > 0:
            self.packet_read_timeout = busywait_ms
        self.mqtt.process_packets(self.packet_read_timeout)

        if self.clock.millis() > self._last_ping + PING_INTERVAL:
            self.mqtt.ping()
            self._last_ping = self.clock.millis()
        return self.status()

    def feed(self, name: str, owner: str | None = None) -> Feed:
        """A feed of this user, or of ``owner`` when given."""
        return Feed(self, name, owner)

    def group(self, name: str) -> Group:
        """A group of this user."""
        return Group(self, name)

    def time(self, time_format: Any = TimeFormat.SECONDS) -> TimeService:
        """A subscription to the time service in ``time_format``."""
        return TimeService(self, time_format)

    def status_text(self) -> str:
        """A sentence describing the last known status."""
        return _STATUS_TEXT.get(self._status, "Unknown status code")

    def status(self) -> Status:
        """Check the network, then the broker, and return the status."""
        net_status = self.network_status()
        if net_status != Status.NET_CONNECTED:
            self._status = net_status
            return self._status
        self._status = self.mqtt_status()
        return self._status

    def network_status(self) -> Status:
        """Status of the network link."""
        return Status.NET_CONNECTED if self._network_up else Status.NET_DISCONNECTED

    def mqtt_status(self, fail_fast: bool = False) -> Status:
        """Status of the broker connection, reconnecting when allowed."""
        if self._status == Status.CONNECT_FAILED:
            _log.error("mqtt_status() failed to connect")
            return self._status

        if self.mqtt.connected():
            return Status.CONNECTED

        now = self.clock.millis()
        if (
            self._last_mqtt_connect == 0
            or now - self._last_mqtt_connect > THROTTLE_RECONNECT_INTERVAL
        ):
            self._last_mqtt_connect = now
            code = self.mqtt.connect(self.username, self.key)
            if code == 0:
                return Status.CONNECTED
            if code in _CONNECT_REFUSED:
                return Status.CONNECT_FAILED
            if code in _CONNECT_RETRY_LATER and not fail_fast:
                self.clock.sleep(THROTTLE_RECONNECT_INTERVAL)
            return Status.DISCONNECTED
        return Status.DISCONNECTED

    def board_id(self) -> str:
        return _board_id()

    def board_type(self) -> str:
        return _board_type()

    def version(self) -> str:
        """The client version as ``major.minor.patch``."""
        return ".".join(str(part) for part in VERSION)

    def user_agent(self) -> str:
        """The user agent sent with HTTP requests."""
        if self._user_agent is None:
            self._user_agent = (
                f"feedlink/{self.version()} "
                f"({self.board_type()}-{self.connection_type()})"
            )
        return self._user_agent

    def connection_type(self) -> str:
        """Name of the network link in use."""
        return "host"