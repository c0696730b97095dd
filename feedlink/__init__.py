"""Client for a feed-based IoT data service: feeds, groups, time service and CSV data records."""

__version__ = "0.1.0"

__all__ = ["board", "client", "csvfields", "data", "feed", "group", "timeservice"]