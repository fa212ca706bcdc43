"""Persistent storage for bookings and channel titles."""

from .base import BookingConflict, SlotStore, StoreError

__all__ = ["BookingConflict", "SlotStore", "StoreError"]
