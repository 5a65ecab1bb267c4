"""flagaccess: permission-filtered, audited data access for feature-flag resources."""

__version__ = "1.0.0"
