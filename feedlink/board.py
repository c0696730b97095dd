"""Identification of the board the client runs on.

A host without a known board reports ``"unknown"`` for both its type and
its identifier.
"""

__all__ = ["board_id", "board_type"]

_BOARD_TYPE = "unknown"
_BOARD_ID = "unknown"


def board_type() -> str:
    """Return the name of the board type."""
    return _BOARD_TYPE


def board_id() -> str:
    """Return the board's identifier."""
    return _BOARD_ID