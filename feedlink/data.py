"""A single data record of a feed: a value plus optional location."""

import re

from feedlink.csvfields import CsvError, count_fields, parse_csv

__all__ = ["Data", "format_double", "HIGH", "LOW"]

HIGH = 1
LOW = 0

# Longest text a formatted coordinate may take.
_DOUBLE_TEXT_LIMIT = 18
_LOCATION_EPSILON = 0.000001

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(
    r"\s*([+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?"
    r"|inf(?:inity)?|nan))",
    re.IGNORECASE,
)
_LEADING_HEX = re.compile(r"[0-9a-fA-F]+")


def _leading_int(text: str) -> int:
    """Parse the integer at the start of ``text``; 0 when there is none."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _leading_float(text: str) -> float:
    """Parse the number at the start of ``text``; 0.0 when there is none."""
    match = _LEADING_FLOAT.match(text)
    return float(match.group(1)) if match else 0.0


def _leading_hex(text: str) -> int:
    """Parse the hexadecimal digits at the start of ``text``; 0 when none."""
    match = _LEADING_HEX.match(text)
    return int(match.group(0), 16) if match else 0


def format_double(d: float, precision: int = 6) -> str:
    """Format ``d`` with ``precision`` decimals, cut to the coordinate limit."""
    return f"{d:.{precision}f}"[:_DOUBLE_TEXT_LIMIT]


class Data:
    """A feed value held as text, with latitude, longitude and elevation."""

    def __init__(self, feed_name: str = "", csv: str | None = None) -> None:
        self.feed_name = feed_name
        self.value = ""
        self.lat = 0.0
        self.lon = 0.0
        self.ele = 0.0
        if csv is not None:
            self.set_csv(csv)

    def __str__(self) -> str:
        return self.value

    def set_csv(self, csv: str) -> bool:
        """Load ``value,lat,lon,ele`` from a CSV line.

        Returns True when the line held at most four fields and parsed.
        """
        try:
            field_count = count_fields(csv)
        except CsvError:
            return False
        fields = parse_csv(csv)
        self.value = fields[0]
        remaining = field_count - 1
        # Every location field is read from the second column.
        if remaining > 0:
            self.lat = _leading_float(fields[1])
            remaining -= 1
        if remaining > 0:
            self.lon = _leading_float(fields[1])
            remaining -= 1
        if remaining > 0:
            self.ele = _leading_float(fields[1])
            remaining -= 1
        return remaining == 0

    def set_location(self, lat: float, lon: float, ele: float = 0) -> None:
        """Set the location, unless all three coordinates are zero."""
        if (
            abs(lat) < _LOCATION_EPSILON
            and abs(lon) < _LOCATION_EPSILON
            and abs(ele) < _LOCATION_EPSILON
        ):
            return
        self.lat = float(lat)
        self.lon = float(lon)
        self.ele = float(ele)

    def set_value(
        self,
        value: str | bool | int | float,
        lat: float = 0,
        lon: float = 0,
        ele: float = 0,
        precision: int = 6,
    ) -> None:
        """Store ``value`` as text and update the location."""
        if isinstance(value, bool):
            self.value = "1" if value else "0"
        elif isinstance(value, int):
            self.value = str(value)
        elif isinstance(value, float):
            self.value = f"{value:0.{precision}f}"
        elif isinstance(value, str):
            self.value = value
        else:
            raise TypeError(f"unsupported value type: {type(value).__name__}")
        self.set_location(lat, lon, ele)

    def to_bool(self) -> bool:
        """True for ``"1"`` or any value starting with ``t`` or ``T``."""
        return self.value == "1" or self.value[:1] in ("t", "T")

    def is_true(self) -> bool:
        return self.to_bool()

    def is_false(self) -> bool:
        return not self.to_bool()

    def to_int(self) -> int:
        """The integer at the start of the value, or 0."""
        return _leading_int(self.value)

    def to_pin_level(self) -> int:
        """HIGH when the value is true, otherwise LOW."""
        return HIGH if self.is_true() else LOW

    def to_float(self) -> float:
        """The number at the start of the value, or 0.0."""
        return _leading_float(self.value)

    def to_red(self) -> int:
        """Red component of a ``#RRGGBB`` value."""
        return _leading_hex(self.value[1:3])

    def to_green(self) -> int:
        """Green component of a ``#RRGGBB`` value."""
        return _leading_hex(self.value[3:5])

    def to_blue(self) -> int:
        """Blue component of a ``#RRGGBB`` value."""
        return _leading_hex(self.value[5:7])

    def to_neopixel(self) -> int:
        """A ``#RRGGBB`` value as a packed 24-bit colour."""
        return _leading_hex(self.value[1:7])

    def to_csv(self) -> str:
        """The record as ``"value",lat,lon,ele``."""
        return (
            f'"{self.value}",'
            f"{format_double(self.lat)},"
            f"{format_double(self.lon)},"
            f"{format_double(self.ele, 2)}"
        )