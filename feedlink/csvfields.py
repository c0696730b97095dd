"""Splitting of a single CSV line into its fields.

Fields are separated by commas. A double quote outside a quoted run starts
one; inside a quoted run a doubled quote stands for a literal quote and a
single quote ends the run. Commas inside quoted runs do not split fields.
"""

from collections.abc import Iterator

__all__ = ["CsvError", "count_fields", "parse_csv"]


class CsvError(ValueError):
    """Raised when a CSV line has an unterminated quoted run."""


def _scan(line: str) -> Iterator[str]:
    """Yield the fields of ``line`` one by one."""
    current: list[str] = []
    in_quotes = False
    pos = 0
    length = len(line)
    while pos < length:
        char = line[pos]
        if in_quotes:
            if char == '"':
                if pos + 1 < length and line[pos + 1] == '"':
                    current.append('"')
                    pos += 2
                    continue
                in_quotes = False
            else:
                current.append(char)
        elif char == '"':
            in_quotes = True
        elif char == ",":
            yield "".join(current)
            current.clear()
        else:
            current.append(char)
        pos += 1
    if in_quotes:
        raise CsvError(f"unterminated quoted field in {line!r}")
    yield "".join(current)


def count_fields(line: str) -> int:
    """Return the number of fields in ``line``.

    Raises CsvError if a quoted run is left open.
    """
    return sum(1 for _ in _scan(line))


def parse_csv(line: str) -> list[str]:
    """Return the fields of ``line`` with quoting removed.

    Raises CsvError if a quoted run is left open.
    """
    return list(_scan(line))