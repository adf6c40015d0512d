from .logger import setup_logging
from .timestamps import utc_now_iso

__all__ = ["setup_logging", "utc_now_iso"]
