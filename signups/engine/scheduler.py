"""SchedulingEngine: command semantics on top of a SlotStore.

Each command is a short, independent sequence of store calls. The engine
keeps no state between calls; the store is the single source of truth.

User mistakes (bad hour/day, slot taken, nothing to remove) come back as
ordinary reply text. Store failures propagate as ``StoreError`` for the
dispatcher to report.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from signups.models.booking import Booking
from signups.models.commands import Caller, Command, Reply
from signups.store.base import BookingConflict, SlotStore, StoreError

from .identity import Identity, resolve_identity
from .time_resolver import InvalidHour, TimeSpecError, resolve_instant

log = logging.getLogger("signups.engine")

ChannelNameLookup = Callable[[str], Awaitable[Optional[str]]]
Clock = Callable[[], datetime]

INVALID_HOUR_TEXT = "Please provide a valid hour between 0-23 (e.g. 14 for 2 PM)."
INVALID_DAY_TEXT = "Please provide a valid day between 1-31."
ALREADY_BOOKED_TEXT = "That time is already booked in this channel!"
EMPTY_LIST_TEXT = (
    "_No signups for upcoming times._\n"
    "Use `/add hour:<0-23>` to sign up, optionally with `day:<1-31>` "
    "or `name:<someone>` to sign up someone else."
)
EMPTY_NEXT_TEXT = "No upcoming signups in this channel."


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ── Formatting helpers ─────────────────────────────────────────────


def discord_timestamp(instant: datetime) -> str:
    """Render an instant as a client-localised Discord timestamp."""
    return f"<t:{int(instant.timestamp())}:f>"


def describe_slot(instant: datetime) -> str:
    """``day 5 at 09:00 UTC (<t:...:f>)``"""
    return f"day {instant.day} at {instant:%H}:00 UTC ({discord_timestamp(instant)})"


def mention(identity_key: str, display_name: str, is_custom: bool) -> str:
    if is_custom:
        return f"**{display_name}**"
    return f"<@{identity_key}>"


def format_countdown(delta_seconds: float) -> str:
    if delta_seconds <= 0:
        return "happening now"
    minutes = int(delta_seconds // 60)
    if minutes == 0:
        return "in less than a minute"
    hours, minutes = divmod(minutes, 60)
    return f"in {hours}h {minutes}m"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def _time_error_text(error: TimeSpecError) -> str:
    if isinstance(error, InvalidHour):
        return INVALID_HOUR_TEXT
    return INVALID_DAY_TEXT


class SchedulingEngine:
    """Implements the slash commands for one store.

    Args:
        store: Durable bookings/titles backend.
        channel_name_lookup: Async callable returning a channel's name, used
            to give untitled channels a default title. ``None`` disables it.
        clock: Returns the current aware UTC time.
    """

    def __init__(
        self,
        store: SlotStore,
        channel_name_lookup: Optional[ChannelNameLookup] = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._lookup = channel_name_lookup
        self._clock = clock

    async def run(self, command: Command) -> Reply:
        """Execute ``command``.

        Title provisioning is not part of this; callers run
        :meth:`ensure_title` first, before the command is even parsed.
        """
        channel = command.channel
        caller = command.caller
        args = command.args

        log.info("/%s in channel %s by %s", command.name, channel, caller.id)

        if command.name == "add":
            text = await self.add(
                channel, caller, args.hour, args.day, args.name, guild_id=command.guild_id
            )
        elif command.name == "remove":
            text = await self.remove(channel, caller, args.hour, args.day, args.name)
        elif command.name == "list":
            text = await self.list_schedule(channel)
        elif command.name == "next":
            text = await self.next_up(channel)
        elif command.name == "settitle":
            text = await self.set_title(channel, args.title)
        elif command.name == "config":
            text = await self.configure(channel, args.title)
        else:
            text = await self.clear(channel)

        return Reply(text=text)

    async def ensure_title(self, channel: str) -> Optional[str]:
        """Give an untitled channel its platform name as title.

        Best effort: a failed lookup or store write leaves the channel
        untitled and never blocks the command that triggered it.
        """
        try:
            existing = await self._store.get_title(channel)
        except StoreError as e:
            log.warning("Could not read title for channel %s: %s", channel, e)
            return None
        if existing is not None:
            return existing.title
        if self._lookup is None:
            return None

        try:
            name = await self._lookup(channel)
        except Exception as e:
            log.warning("Channel name lookup failed for %s: %s", channel, e)
            return None
        if not name:
            return None

        try:
            await self._store.upsert_title(channel, name)
        except StoreError as e:
            log.warning("Could not title channel %s as %r: %s", channel, name, e)
            return None
        log.info("Titled channel %s as %r", channel, name)
        return name

    # ── Commands ───────────────────────────────────────────────────

    async def add(
        self,
        channel: str,
        caller: Caller,
        hour: int,
        day: Optional[int] = None,
        name: Optional[str] = None,
        guild_id: Optional[str] = None,
    ) -> str:
        try:
            instant = resolve_instant(hour, day, self._clock())
        except TimeSpecError as e:
            return _time_error_text(e)

        who = resolve_identity(caller, name)

        if await self._store.find_booking(channel, instant) is not None:
            return ALREADY_BOOKED_TEXT
        booking = Booking(
            channel=channel,
            identity_key=who.key,
            display_name=who.display_name,
            instant=instant,
            guild_id=guild_id,
        )
        try:
            await self._store.insert_booking(booking)
        except BookingConflict:
            # Lost a race with a concurrent /add for the same slot
            return ALREADY_BOOKED_TEXT

        if who.is_custom:
            return f"**{who.display_name}** has been added for {describe_slot(instant)}."
        return f"You have been added for {describe_slot(instant)}."

    async def remove(
        self,
        channel: str,
        caller: Caller,
        hour: Optional[int] = None,
        day: Optional[int] = None,
        name: Optional[str] = None,
    ) -> str:
        who = resolve_identity(caller, name)
        now = self._clock()

        if hour is None:
            count = await self._store.delete_bookings(channel, who.key, not_before=now)
            slots = _plural(count, "upcoming slot")
            if who.is_custom:
                return f"**{who.display_name}** has been removed from {slots} in this channel."
            return f"You have been removed from {slots} in this channel."

        try:
            instant = resolve_instant(hour, day, now)
        except TimeSpecError as e:
            return _time_error_text(e)

        count = await self._store.delete_bookings(channel, who.key, at=instant)
        return self._removal_text(who, instant, removed=count > 0)

    @staticmethod
    def _removal_text(who: Identity, instant: datetime, removed: bool) -> str:
        slot = describe_slot(instant)
        if who.is_custom:
            subject = f"**{who.display_name}**"
            if removed:
                return f"{subject} has been removed from {slot}."
            return f"{subject} was not signed up for {slot}."
        if removed:
            return f"You have been removed from {slot}."
        return f"You were not signed up for {slot}."

    async def list_schedule(self, channel: str) -> str:
        now = self._clock()
        # Expired bookings are only ever cleaned up here
        await self._store.delete_bookings(channel, before=now)

        title = await self._store.get_title(channel)
        bookings = await self._store.list_bookings(channel, not_before=now)

        lines: list[str] = []
        if title is not None:
            lines.append(f"**{title.title}**")
        if not bookings:
            lines.append(EMPTY_LIST_TEXT)
        else:
            for position, booking in enumerate(bookings, start=1):
                who = mention(booking.identity_key, booking.display_name, booking.is_custom)
                lines.append(f"{position}. {who} on {describe_slot(booking.instant)}")
        return "\n".join(lines)

    async def next_up(self, channel: str) -> str:
        now = self._clock()
        upcoming = await self._store.list_bookings(channel, not_before=now, limit=1)
        if not upcoming:
            return EMPTY_NEXT_TEXT

        booking = upcoming[0]
        who = mention(booking.identity_key, booking.display_name, booking.is_custom)
        countdown = format_countdown((booking.instant - now).total_seconds())
        return f"Next up: {who} on {describe_slot(booking.instant)}, {countdown}."

    async def set_title(self, channel: str, title: str) -> str:
        await self._store.upsert_title(channel, title)
        return f"List title set to: **{title}**"

    async def configure(self, channel: str, title: str) -> str:
        await self._store.upsert_title(channel, title)
        await self._store.delete_bookings(channel)
        return (
            f"Configuration set! New list title: **{title}** "
            "and all previous signups were cleared."
        )

    async def clear(self, channel: str) -> str:
        await self._store.delete_bookings(channel)
        await self._store.delete_title(channel)
        return "All signups and the title for this channel have been deleted."
