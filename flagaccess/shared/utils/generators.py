"""Primary-key generation (CUID2) for segment, flag and activity log rows."""

from cuid2 import Cuid

# 24 is the CUID2 default; ids stay short enough for log lines and URLs.
_cuid = Cuid(length=24)


def generate_cuid() -> str:
    """Return a new collision-resistant id."""
    return _cuid.generate()
