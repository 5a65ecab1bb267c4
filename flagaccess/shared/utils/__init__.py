"""Small utilities (datetime, id generation)."""

from flagaccess.shared.utils.datetime import ensure_utc, utc_now
from flagaccess.shared.utils.generators import generate_cuid

__all__ = ["utc_now", "ensure_utc", "generate_cuid"]
