"""Command resolution and slot scheduling."""

from .identity import Identity, custom_identity_key, resolve_identity
from .scheduler import SchedulingEngine
from .time_resolver import InvalidDay, InvalidHour, TimeSpecError, resolve_instant

__all__ = [
    "Identity",
    "InvalidDay",
    "InvalidHour",
    "SchedulingEngine",
    "TimeSpecError",
    "custom_identity_key",
    "resolve_identity",
    "resolve_instant",
]
