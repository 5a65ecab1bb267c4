"""Typed input payloads validated before they reach a store."""

from flagaccess.schemas.segment import SegmentCreate, SegmentRule, SegmentUpdate

__all__ = ["SegmentCreate", "SegmentRule", "SegmentUpdate"]
