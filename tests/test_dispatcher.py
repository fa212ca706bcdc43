"""Tests for CommandDispatcher: interaction payloads in, responses out."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from signups.dispatcher import (
    STORE_FAILURE_TEXT,
    UNKNOWN_COMMAND_TEXT,
    CommandDispatcher,
    MalformedInteraction,
)
from signups.engine.scheduler import INVALID_HOUR_TEXT, SchedulingEngine
from signups.store.sql import SqlSlotStore


def interaction(name, options=None, *, dm=False, **extra):
    user = {"id": "111", "username": "alice", "global_name": "Alice A."}
    payload = {
        "type": 2,
        "channel_id": "c1",
        "data": {"name": name, "options": options or []},
    }
    if dm:
        payload["user"] = user
    else:
        payload["guild_id"] = "g1"
        payload["member"] = {"user": user}
    payload.update(extra)
    return payload


def opt(name, value):
    return {"name": name, "value": value}


@pytest.fixture
def dispatcher(store, clock):
    return CommandDispatcher(SchedulingEngine(store, clock=clock))


class TestHandle:
    async def test_ping(self, dispatcher):
        assert await dispatcher.handle({"type": 1}) == {"type": 1}

    async def test_add_from_guild_member(self, dispatcher, store):
        response = await dispatcher.handle(interaction("add", [opt("hour", 15)]))

        assert response["type"] == 4
        assert response["data"]["content"].startswith("You have been added")
        [booking] = await store.list_bookings("c1")
        assert booking.identity_key == "111"
        assert booking.display_name == "Alice A."
        assert booking.guild_id == "g1"
        assert booking.instant == datetime(2025, 1, 1, 15, tzinfo=timezone.utc)

    async def test_add_from_direct_message_user(self, dispatcher, store):
        await dispatcher.handle(interaction("add", [opt("hour", 15)], dm=True))
        [booking] = await store.list_bookings("c1")
        assert booking.identity_key == "111"

    async def test_missing_hour_gets_hint(self, dispatcher, store):
        response = await dispatcher.handle(interaction("add", [opt("day", 3)]))
        assert response["data"]["content"] == INVALID_HOUR_TEXT
        assert await store.list_bookings("c1") == []

    async def test_unknown_option_gets_generic_hint(self, dispatcher):
        response = await dispatcher.handle(interaction("list", [opt("foo", 1)]))
        assert response["data"]["content"] == "Please provide valid options for /list."

    async def test_unknown_command(self, dispatcher):
        response = await dispatcher.handle(interaction("dance"))
        assert response["data"]["content"] == UNKNOWN_COMMAND_TEXT

    async def test_store_failure_is_reported_not_raised(self, clock):
        broken = SqlSlotStore.from_url("sqlite://")  # no schema
        try:
            dispatcher = CommandDispatcher(SchedulingEngine(broken, clock=clock))
            response = await dispatcher.handle(interaction("list"))
        finally:
            broken.dispose()
        assert response["data"]["content"] == STORE_FAILURE_TEXT

    async def test_unsupported_interaction_type(self, dispatcher):
        with pytest.raises(MalformedInteraction):
            await dispatcher.handle({"type": 3})

    async def test_missing_user(self, dispatcher):
        payload = interaction("list")
        del payload["member"]
        with pytest.raises(MalformedInteraction):
            await dispatcher.handle(payload)

    async def test_missing_channel(self, dispatcher):
        payload = interaction("list")
        del payload["channel_id"]
        with pytest.raises(MalformedInteraction):
            await dispatcher.handle(payload)


class GatedLookup:
    """Channel-name lookup that holds every caller until ``parties`` arrive."""

    def __init__(self, parties: int, name: str = "general"):
        self.parties = parties
        self.name = name
        self.arrived = 0
        self.all_arrived = asyncio.Event()

    async def __call__(self, channel_id):
        self.arrived += 1
        if self.arrived >= self.parties:
            self.all_arrived.set()
        await self.all_arrived.wait()
        return self.name


class TestTitleProvisioning:
    async def test_rejected_options_still_title_channel(self, store, clock):
        lookup = AsyncMock(return_value="general")
        dispatcher = CommandDispatcher(SchedulingEngine(store, lookup, clock=clock))

        response = await dispatcher.handle(interaction("add", [opt("day", 3)]))

        assert response["data"]["content"] == INVALID_HOUR_TEXT
        lookup.assert_awaited_once_with("c1")
        assert (await store.get_title("c1")).title == "general"

    async def test_unknown_command_still_titles_channel(self, store, clock):
        lookup = AsyncMock(return_value="general")
        dispatcher = CommandDispatcher(SchedulingEngine(store, lookup, clock=clock))

        response = await dispatcher.handle(interaction("dance"))

        assert response["data"]["content"] == UNKNOWN_COMMAND_TEXT
        assert (await store.get_title("c1")).title == "general"

    async def test_concurrent_first_commands_both_succeed(self, tmp_path, clock):
        file_store = SqlSlotStore.from_url(f"sqlite:///{tmp_path / 'signups.db'}")
        file_store.create_schema()
        try:
            lookup = GatedLookup(parties=2)
            dispatcher = CommandDispatcher(
                SchedulingEngine(file_store, lookup, clock=clock)
            )

            responses = await asyncio.gather(
                dispatcher.handle(interaction("add", [opt("hour", 15)])),
                dispatcher.handle(interaction("add", [opt("hour", 16)])),
            )

            texts = [r["data"]["content"] for r in responses]
            assert STORE_FAILURE_TEXT not in texts
            assert all(t.startswith("You have been added") for t in texts)
            assert (await file_store.get_title("c1")).title == "general"
            assert len(await file_store.list_bookings("c1")) == 2
        finally:
            file_store.dispose()
