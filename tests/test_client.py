import logging
import re

import pytest

from feedlink.client import (
    DEFAULT_PACKET_READ_TIMEOUT,
    PING_INTERVAL,
    THROTTLE_RECONNECT_INTERVAL,
    Client,
    Status,
    error_callback,
)
from feedlink.feed import Feed
from feedlink.group import Group
from feedlink.timeservice import TimeFormat, TimeService


class FakeClock:
    def __init__(self, now=1, step=0):
        self.now = now
        self.step = step
        self.slept = []

    def millis(self):
        self.now += self.step
        return self.now

    def sleep(self, ms):
        self.slept.append(ms)
        self.now += ms


class FakeMqtt:
    def __init__(self, codes=(0,)):
        self.codes = list(codes)
        self.is_connected = False
        self.subscriptions = {}
        self.published = []
        self.connect_calls = []
        self.processed = []
        self.pings = 0

    def subscribe(self, topic, callback):
        self.subscriptions[topic] = callback

    def publish(self, topic, payload):
        self.published.append((topic, payload))
        return True

    def connected(self):
        return self.is_connected

    def connect(self, username, key):
        self.connect_calls.append((username, key))
        code = self.codes[0] if len(self.codes) == 1 else self.codes.pop(0)
        if code == 0:
            self.is_connected = True
        return code

    def process_packets(self, timeout):
        self.processed.append(timeout)

    def ping(self):
        self.pings += 1


def make_client(codes=(0,), step=0):
    mqtt = FakeMqtt(codes)
    clock = FakeClock(step=step)
    client = Client("alice", "placeholder", mqtt, None, clock)
    return client, mqtt, clock


def test_status_before_connect_is_network_disconnected():
    client, _, _ = make_client()
    assert client.status() == Status.NET_DISCONNECTED
    assert client.status_text() == "Network disconnected."


def test_initial_status_text_is_idle():
    client, _, _ = make_client()
    assert client.status_text() == "Idle. Waiting for connect to be called..."


def test_connect_subscribes_error_topics():
    client, mqtt, _ = make_client()
    client.connect()
    assert mqtt.subscriptions[client.error_topic] is error_callback
    assert mqtt.subscriptions[client.throttle_topic] is error_callback
    assert client.error_topic.startswith("alice")


def test_connect_then_status_connected():
    client, mqtt, _ = make_client()
    client.connect()
    assert client.status() == Status.CONNECTED
    assert mqtt.connect_calls == [("alice", "placeholder")]


@pytest.mark.parametrize("code", [1, 2, 4, 5])
def test_refused_codes_fail_and_stick(code):
    client, mqtt, _ = make_client(codes=(code,))
    client.connect()
    assert client.status() == Status.CONNECT_FAILED
    assert client.status() == Status.CONNECT_FAILED
    assert len(mqtt.connect_calls) == 1


@pytest.mark.parametrize("code", [3, 6, 7])
def test_retry_codes_delay_unless_fail_fast(code):
    client, _, clock = make_client(codes=(code,))
    client.connect()
    assert client.mqtt_status() == Status.DISCONNECTED
    assert clock.slept == [THROTTLE_RECONNECT_INTERVAL]

    other, _, other_clock = make_client(codes=(code,))
    other.connect()
    assert other.mqtt_status(fail_fast=True) == Status.DISCONNECTED
    assert other_clock.slept == []


def test_reconnect_attempts_are_throttled():
    client, mqtt, clock = make_client(codes=(3,))
    client.connect()
    client.mqtt_status(fail_fast=True)
    client.mqtt_status(fail_fast=True)
    assert len(mqtt.connect_calls) == 1
    clock.now += THROTTLE_RECONNECT_INTERVAL + 1
    client.mqtt_status(fail_fast=True)
    assert len(mqtt.connect_calls) == 2


def test_connect_resets_failed_status():
    client, mqtt, _ = make_client(codes=(5, 0))
    client.connect()
    assert client.status() == Status.CONNECT_FAILED
    client.connect()
    assert client.status() == Status.CONNECTED


def test_run_fail_fast_does_not_connect():
    client, mqtt, _ = make_client()
    assert client.run(fail_fast=True) == Status.NET_DISCONNECTED
    assert mqtt.connect_calls == []


def test_run_connects_and_processes_packets():
    client, mqtt, _ = make_client()
    assert client.run() == Status.CONNECTED
    assert mqtt.processed == [DEFAULT_PACKET_READ_TIMEOUT]


def test_run_busywait_sets_timeout():
    client, mqtt, _ = make_client()
    client.run(busywait_ms=250)
    client.run()
    assert mqtt.processed == [250, 250]


def test_run_pings_after_interval():
    client, mqtt, clock = make_client()
    client.run()
    pings_before = mqtt.pings
    clock.now += PING_INTERVAL + 1
    client.run()
    assert mqtt.pings == pings_before + 1
    client.run()
    assert mqtt.pings == pings_before + 1


def test_run_gives_up_when_broker_refuses():
    client, mqtt, _ = make_client(codes=(5,))
    assert client.run() == Status.CONNECT_FAILED
    assert mqtt.processed == []


def test_wifi_disconnect():
    client, _, _ = make_client()
    client.connect()
    client.wifi_disconnect()
    assert client.status() == Status.NET_DISCONNECTED


def test_version_and_user_agent():
    client, _, _ = make_client()
    assert re.fullmatch(r"\d+\.\d+\.\d+", client.version())
    agent = client.user_agent()
    assert client.version() in agent
    assert f"({client.board_type()}-{client.connection_type()})" in agent
    assert client.user_agent() is agent


def test_board_identity():
    client, _, _ = make_client()
    assert client.board_type() == "unknown"
    assert client.board_id() == "unknown"


def test_feed_factory():
    client, mqtt, _ = make_client()
    feed = client.feed("temp")
    assert isinstance(feed, Feed)
    assert feed.owner == "alice"
    assert feed.topic in mqtt.subscriptions
    other = client.feed("temp", "bob")
    assert other.owner == "bob"


def test_group_factory():
    client, mqtt, _ = make_client()
    group = client.group("sensors")
    assert isinstance(group, Group)
    assert group.topic in mqtt.subscriptions


def test_time_factory():
    client, mqtt, _ = make_client()
    service = client.time(TimeFormat.MILLIS)
    assert isinstance(service, TimeService)
    assert "time/millis" in mqtt.subscriptions


def test_error_callback_logs(caplog):
    with caplog.at_level(logging.ERROR, logger="feedlink.client"):
        error_callback("boom")
    assert "ERROR: boom" in caplog.text


def test_status_ordering_reflects_connection_quality():
    disconnected, _, _ = make_client()
    assert disconnected.status() < Status.NET_CONNECTED

    failed, _, _ = make_client(codes=(5,))
    failed.connect()
    assert failed.status() < Status.NET_CONNECTED

    connected, _, _ = make_client()
    connected.connect()
    assert connected.status() > Status.NET_CONNECTED