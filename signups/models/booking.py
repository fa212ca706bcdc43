"""Pydantic models for bookings and channel titles."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

# Identity keys built from an operator-supplied name carry this prefix so
# they can never collide with a platform user id.
CUSTOM_IDENTITY_PREFIX = "custom:"


class Booking(BaseModel):
    """One reserved slot in a channel."""

    channel: str
    identity_key: str
    display_name: str
    instant: datetime  # aware, UTC, whole hour
    guild_id: Optional[str] = None

    @property
    def is_custom(self) -> bool:
        return self.identity_key.startswith(CUSTOM_IDENTITY_PREFIX)


class ChannelTitle(BaseModel):
    """Display title shown above a channel's schedule."""

    channel: str
    title: str
