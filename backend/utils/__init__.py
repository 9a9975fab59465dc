from .time import utc_now, parse_iso_date
from .log import setup_logging

__all__ = ["utc_now", "parse_iso_date", "setup_logging"]
