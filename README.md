# feedlink

A small client library for a feed-based IoT data service. It models the
service's building blocks and leaves the actual network transport to you.

- **Data records** (`feedlink.data.Data`): a value held as text plus
  latitude, longitude and elevation, read from the `value,lat,lon,ele` CSV
  form and written back as `"value",lat,lon,ele`, with conversions to bool,
  int, float, pin level (`HIGH`/`LOW`) and `#RRGGBB` colour components.
- **CSV fields** (`feedlink.csvfields`): `count_fields` and `parse_csv`
  split one CSV line, honouring double-quoted runs; an unterminated quote
  raises `CsvError`.
- **Feeds** (`feedlink.feed.Feed`): publish values, ask for the retained
  value, check that the feed exists, create it, fetch its last value over
  HTTP and receive new values through a callback.
- **Groups** (`feedlink.group.Group`): set several feed values and publish
  them together as `feed,value` lines; dispatch incoming group messages to
  callbacks for every feed or for one feed by name.
- **Time service** (`feedlink.timeservice.TimeService`): subscribe to
  `time/seconds`, `time/millis` or `time/ISO-8601` (`TimeFormat`).
- **Client** (`feedlink.client.Client`): connection state (`Status`),
  broker reconnection with throttling, keep-alive pings, status text,
  version and user-agent strings.
- **Board** (`feedlink.board`): `board_type()` and `board_id()`, which both
  return `"unknown"`.

## Installation

```
pip install feedlink
```

Python 3.10 or newer is required. There are no third-party dependencies.

## Transports

The client is given three objects:

- `mqtt` with `subscribe(topic, callback)`, `publish(topic, payload) -> bool`,
  `connected()`, `connect(username, key) -> int` (0 for success),
  `process_packets(timeout_ms)` and `ping()`;
- `http` with `request(method, path, headers, body) -> (status, body)`;
- `clock` with `millis()` and `sleep(ms)`; when omitted, the monotonic
  system timer is used.

Feeds, groups and the time service subscribe their topics through
`mqtt.subscribe` when they are created, and HTTP requests carry the key in
an `X-AIO-Key` header.

## Working with data records

```python
from feedlink.data import Data

record = Data("temperature", "21.5")
record.to_float()      # 21.5

record.set_value(True, 52.1, 4.3, 10)
record.to_csv()        # '"1",52.100000,4.300000,10.00'

color = Data("lamp", "#ff8000")
color.to_red(), color.to_green(), color.to_blue()   # (255, 128, 0)
color.to_neopixel()                                  # 0xff8000
```

Notes on behaviour:

- `set_location` (and the location arguments of `set_value`) leaves the
  stored location alone when latitude, longitude and elevation are all zero.
- `set_csv` returns `True` when the line has one to four fields. Latitude,
  longitude and elevation are all read from the **second** column of the
  line. A line with an unterminated quote, or with more than four fields,
  returns `False`.
- Float values are formatted with `precision` decimals (6 by default);
  `to_bool` is true for `"1"` or any value starting with `t` or `T`.

## Using the client

```python
from feedlink.client import Client

client = Client("someuser", "placeholder", mqtt=my_mqtt, http=my_http)

temperature = client.feed("temperature")
temperature.on_message(lambda data: print("new value:", data.to_float()))

client.connect()
while True:
    client.run()
    temperature.save(21.5)
```

`connect()` subscribes the `<username>/errors` and `<username>/throttle`
topics (messages on them are logged) and marks the network as up.
`client.status()` returns a `Status` member; `client.status_text()` explains
the last known status. `client.run(busywait_ms, fail_fast)` processes
incoming packets, pings when the ping interval has passed and, unless
`fail_fast` is set, tries to repair the connection before returning.
Subclasses for other links override `network_status`, `connection_type`,
`_connect` and `_disconnect`.

Groups and the time service are created the same way:

```python
from feedlink.timeservice import TimeFormat

weather = client.group("weather")
weather.set("humidity", 40)
weather.set("pressure", 1013)
weather.save()        # publishes "humidity,40\npressure,1013\n"

clock = client.time(TimeFormat.ISO)
clock.on_message(lambda value: print("server time:", value))
```

A group ignores incoming messages until at least one callback is
registered, and keeps only the first callback registered for a given feed.

## What this package does not do

- It contains no MQTT or HTTP implementation; you supply the transports.
- It does not manage dashboards or dashboard blocks.
- It does not detect hardware: the board type and identifier are always
  `"unknown"`, and the default connection type is `"host"`.

## Running the tests

```
pip install -e ".[test]"
pytest
```