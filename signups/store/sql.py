"""SQLAlchemy-backed slot store.

Two tables mirror the hosted schema the bot was first deployed against:

  signups  (id, guild_id, channel_id, user_id, username, time)
  titles   (channel_id, title)

``signups`` carries a unique constraint on ``(channel_id, time)`` so two
concurrent ``/add`` calls for the same slot cannot both succeed; the
loser surfaces as :class:`BookingConflict`. Title writes are a single
INSERT ... ON CONFLICT statement on SQLite and PostgreSQL, so two commands
provisioning the same channel both succeed.

SQLAlchemy sessions are synchronous, so every call runs in the default
thread pool to keep the event loop responsive.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from functools import partial
from typing import Any, Optional

from sqlalchemy import (
    DateTime,
    Integer,
    String,
    UniqueConstraint,
    create_engine,
    delete,
    select,
    update,
)
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from signups.models.booking import Booking, ChannelTitle

from .base import BookingConflict, SlotStore, StoreError

logger = logging.getLogger("signups.store")


class Base(DeclarativeBase):
    pass


class SignupRow(Base):
    __tablename__ = "signups"
    __table_args__ = (
        UniqueConstraint("channel_id", "time", name="uq_signups_channel_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    guild_id: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    channel_id: Mapped[str] = mapped_column(String(32), index=True)
    user_id: Mapped[str] = mapped_column(String(128))
    username: Mapped[str] = mapped_column(String(256))
    # Naive UTC; SQLite has no timezone-aware column type
    time: Mapped[datetime] = mapped_column(DateTime)


class TitleRow(Base):
    __tablename__ = "titles"

    channel_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    title: Mapped[str] = mapped_column(String(256))


def _to_aware_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _to_naive_utc(dt: datetime) -> datetime:
    return _to_aware_utc(dt).replace(tzinfo=None)


def _row_to_booking(row: SignupRow) -> Booking:
    return Booking(
        channel=row.channel_id,
        identity_key=row.user_id,
        display_name=row.username,
        instant=_to_aware_utc(row.time),
        guild_id=row.guild_id,
    )


class SqlSlotStore(SlotStore):
    """SlotStore backed by any SQLAlchemy-supported database."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, url: str) -> "SqlSlotStore":
        """Build a store from a database URL.

        ``sqlite://`` (in-memory) shares one connection across threads so
        the schema survives between executor calls.
        """
        if url in ("sqlite://", "sqlite:///:memory:"):
            engine = create_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        elif url.startswith("sqlite"):
            engine = create_engine(url, connect_args={"check_same_thread": False})
        else:
            engine = create_engine(url, pool_pre_ping=True)
        return cls(engine)

    def create_schema(self) -> None:
        Base.metadata.create_all(self._engine)

    def dispose(self) -> None:
        self._engine.dispose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _run(self, func, *args, **kwargs) -> Any:
        """Run a synchronous session call in the default thread pool."""
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, partial(func, *args, **kwargs))
        except SQLAlchemyError as e:
            logger.error("Store operation %s failed: %s", func.__name__, e)
            raise StoreError(str(e)) from e

    @staticmethod
    def _booking_filters(
        channel: str,
        identity_key: Optional[str] = None,
        at: Optional[datetime] = None,
        not_before: Optional[datetime] = None,
        before: Optional[datetime] = None,
    ) -> list:
        clauses = [SignupRow.channel_id == channel]
        if identity_key is not None:
            clauses.append(SignupRow.user_id == identity_key)
        if at is not None:
            clauses.append(SignupRow.time == _to_naive_utc(at))
        if not_before is not None:
            clauses.append(SignupRow.time >= _to_naive_utc(not_before))
        if before is not None:
            clauses.append(SignupRow.time < _to_naive_utc(before))
        return clauses

    # ---- sync implementations ------------------------------------------

    def _find_booking(self, channel: str, instant: datetime) -> Optional[Booking]:
        with self._sessions() as session:
            row = session.scalars(
                select(SignupRow).where(*self._booking_filters(channel, at=instant))
            ).first()
            return _row_to_booking(row) if row else None

    def _list_bookings(
        self,
        channel: str,
        not_before: Optional[datetime],
        before: Optional[datetime],
        limit: Optional[int],
    ) -> list[Booking]:
        query = (
            select(SignupRow)
            .where(*self._booking_filters(channel, not_before=not_before, before=before))
            .order_by(SignupRow.time.asc())
        )
        if limit is not None:
            query = query.limit(limit)
        with self._sessions() as session:
            return [_row_to_booking(row) for row in session.scalars(query)]

    def _insert_booking(self, booking: Booking) -> None:
        with self._sessions() as session:
            session.add(
                SignupRow(
                    guild_id=booking.guild_id,
                    channel_id=booking.channel,
                    user_id=booking.identity_key,
                    username=booking.display_name,
                    time=_to_naive_utc(booking.instant),
                )
            )
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise BookingConflict(booking.channel, booking.instant) from e

    def _delete_bookings(
        self,
        channel: str,
        identity_key: Optional[str],
        at: Optional[datetime],
        not_before: Optional[datetime],
        before: Optional[datetime],
    ) -> int:
        clauses = self._booking_filters(channel, identity_key, at, not_before, before)
        with self._sessions() as session:
            result = session.execute(delete(SignupRow).where(*clauses))
            session.commit()
            return result.rowcount or 0

    def _get_title(self, channel: str) -> Optional[ChannelTitle]:
        with self._sessions() as session:
            row = session.get(TitleRow, channel)
            return ChannelTitle(channel=row.channel_id, title=row.title) if row else None

    def _upsert_title(self, channel: str, title: str) -> None:
        dialect_name = self._engine.dialect.name
        with self._sessions() as session:
            if dialect_name in {"sqlite", "postgresql"}:
                insert_factory = sqlite_insert if dialect_name == "sqlite" else pg_insert
                stmt = insert_factory(TitleRow).values(channel_id=channel, title=title)
                session.execute(
                    stmt.on_conflict_do_update(
                        index_elements=[TitleRow.channel_id],
                        set_={"title": stmt.excluded.title},
                    )
                )
                session.commit()
                return

            session.add(TitleRow(channel_id=channel, title=title))
            try:
                session.commit()
            except IntegrityError:
                # Row already exists, possibly created by a concurrent writer
                session.rollback()
                session.execute(
                    update(TitleRow)
                    .where(TitleRow.channel_id == channel)
                    .values(title=title)
                )
                session.commit()

    def _delete_title(self, channel: str) -> None:
        with self._sessions() as session:
            session.execute(delete(TitleRow).where(TitleRow.channel_id == channel))
            session.commit()

    def _list_titles(self) -> list[ChannelTitle]:
        with self._sessions() as session:
            rows = session.scalars(select(TitleRow).order_by(TitleRow.title.asc()))
            return [ChannelTitle(channel=r.channel_id, title=r.title) for r in rows]

    # ------------------------------------------------------------------
    # SlotStore interface
    # ------------------------------------------------------------------

    async def find_booking(self, channel: str, instant: datetime) -> Optional[Booking]:
        return await self._run(self._find_booking, channel, instant)

    async def list_bookings(
        self,
        channel: str,
        *,
        not_before: Optional[datetime] = None,
        before: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[Booking]:
        return await self._run(self._list_bookings, channel, not_before, before, limit)

    async def insert_booking(self, booking: Booking) -> None:
        await self._run(self._insert_booking, booking)
        logger.info(
            "Booked %s in channel %s at %s",
            booking.identity_key,
            booking.channel,
            booking.instant.isoformat(),
        )

    async def delete_bookings(
        self,
        channel: str,
        identity_key: Optional[str] = None,
        *,
        at: Optional[datetime] = None,
        not_before: Optional[datetime] = None,
        before: Optional[datetime] = None,
    ) -> int:
        count = await self._run(
            self._delete_bookings, channel, identity_key, at, not_before, before
        )
        if count:
            logger.info("Deleted %d booking(s) in channel %s", count, channel)
        return count

    async def get_title(self, channel: str) -> Optional[ChannelTitle]:
        return await self._run(self._get_title, channel)

    async def upsert_title(self, channel: str, title: str) -> None:
        await self._run(self._upsert_title, channel, title)

    async def delete_title(self, channel: str) -> None:
        await self._run(self._delete_title, channel)

    async def list_titles(self) -> list[ChannelTitle]:
        return await self._run(self._list_titles)
