"""Logging setup and OpenTelemetry span helpers used around resource operations."""

from flagaccess.shared.telemetry.logging import get_logger, setup_logging
from flagaccess.shared.telemetry.tracing import TracedOperation, add_span_attributes

__all__ = ["setup_logging", "get_logger", "TracedOperation", "add_span_attributes"]
