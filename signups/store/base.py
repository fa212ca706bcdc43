"""Abstract base class for slot stores.

Defines the queries the scheduling engine needs. Any durable backend
(SQL database, hosted table service, ...) implements this ABC.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from signups.models.booking import Booking, ChannelTitle


class StoreError(Exception):
    """The backend could not complete a read or write."""


class BookingConflict(Exception):
    """A booking already exists for this channel at this instant."""

    def __init__(self, channel: str, instant: datetime) -> None:
        super().__init__(f"{channel} already has a booking at {instant.isoformat()}")
        self.channel = channel
        self.instant = instant


class SlotStore(ABC):
    """Abstract booking/title backend.

    All instants passed in and returned are timezone-aware UTC.
    """

    @abstractmethod
    async def find_booking(
        self, channel: str, instant: datetime
    ) -> Optional[Booking]:
        """Return the booking in ``channel`` at exactly ``instant``, if any."""

    @abstractmethod
    async def list_bookings(
        self,
        channel: str,
        *,
        not_before: Optional[datetime] = None,
        before: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[Booking]:
        """Return bookings in ``channel`` ordered by ascending instant.

        Args:
            channel: Channel to query.
            not_before: Only bookings with ``instant >= not_before``.
            before: Only bookings with ``instant < before``.
            limit: Maximum number of rows to return.
        """

    @abstractmethod
    async def insert_booking(self, booking: Booking) -> None:
        """Insert a booking.

        Raises:
            BookingConflict: the channel already has a booking at that instant.
        """

    @abstractmethod
    async def delete_bookings(
        self,
        channel: str,
        identity_key: Optional[str] = None,
        *,
        at: Optional[datetime] = None,
        not_before: Optional[datetime] = None,
        before: Optional[datetime] = None,
    ) -> int:
        """Delete matching bookings in ``channel`` and return how many went.

        With no filters every booking in the channel is deleted.
        """

    @abstractmethod
    async def get_title(self, channel: str) -> Optional[ChannelTitle]:
        """Return the channel's title row, if one exists."""

    @abstractmethod
    async def upsert_title(self, channel: str, title: str) -> None:
        """Create or replace the channel's title."""

    @abstractmethod
    async def delete_title(self, channel: str) -> None:
        """Remove the channel's title row (no-op when absent)."""

    @abstractmethod
    async def list_titles(self) -> list[ChannelTitle]:
        """Return every channel title, ordered by title."""
