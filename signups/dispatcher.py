"""CommandDispatcher: Discord interaction payload in, response payload out.

Interaction flow:

  PING (type 1)                → {"type": 1}
  APPLICATION_COMMAND (type 2) → ensure title → parse + validate → SchedulingEngine.run
                               → {"type": 4, "data": {"content": ...}}

Validation problems and store failures are both answered with a normal
channel message; nothing raised here reaches the HTTP layer except a
payload that is not an interaction at all.
"""

from __future__ import annotations

import logging
from typing import Any

from signups.engine.scheduler import INVALID_DAY_TEXT, INVALID_HOUR_TEXT, SchedulingEngine
from signups.models.commands import (
    Caller,
    CommandArgumentError,
    Reply,
    UnknownCommand,
    parse_command,
)
from signups.store.base import StoreError

log = logging.getLogger("signups.dispatcher")

PING = 1
APPLICATION_COMMAND = 2

PONG = 1
CHANNEL_MESSAGE_WITH_SOURCE = 4

STORE_FAILURE_TEXT = (
    "Something went wrong while talking to the schedule store. Please try again."
)
UNKNOWN_COMMAND_TEXT = "Unknown command."

_ARGUMENT_HINTS = {
    "hour": INVALID_HOUR_TEXT,
    "day": INVALID_DAY_TEXT,
    "name": "Please provide a valid name.",
    "title": "Please provide a valid title.",
}


class MalformedInteraction(ValueError):
    """The payload is not a ping or application command we can answer."""


def _caller_from(payload: dict[str, Any]) -> Caller:
    # Guild interactions carry member.user, DMs carry user
    user = (payload.get("member") or {}).get("user") or payload.get("user") or {}
    if "id" not in user:
        raise MalformedInteraction("interaction has no invoking user")
    name = user.get("global_name") or user.get("username") or user["id"]
    return Caller(id=str(user["id"]), name=name)


def _options_from(data: dict[str, Any]) -> dict[str, Any]:
    return {opt["name"]: opt.get("value") for opt in data.get("options") or []}


def message(text: str) -> dict[str, Any]:
    return {"type": CHANNEL_MESSAGE_WITH_SOURCE, "data": {"content": text}}


class CommandDispatcher:
    """Routes verified interactions to a :class:`SchedulingEngine`."""

    def __init__(self, engine: SchedulingEngine) -> None:
        self._engine = engine

    async def handle(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Answer one interaction payload.

        Raises:
            MalformedInteraction: unsupported interaction type or missing fields.
        """
        kind = payload.get("type")
        if kind == PING:
            return {"type": PONG}
        if kind != APPLICATION_COMMAND:
            raise MalformedInteraction(f"unsupported interaction type {kind!r}")

        data = payload.get("data") or {}
        channel = payload.get("channel_id")
        if not channel or "name" not in data:
            raise MalformedInteraction("interaction has no channel or command name")

        reply = await self.dispatch(
            name=data["name"],
            channel=str(channel),
            caller=_caller_from(payload),
            options=_options_from(data),
            guild_id=payload.get("guild_id"),
        )
        return message(reply.text)

    async def dispatch(
        self,
        name: str,
        channel: str,
        caller: Caller,
        options: dict[str, Any],
        guild_id: str | None = None,
    ) -> Reply:
        """Run one command, provisioning the channel title first.

        The title is provisioned even when the command name or its options
        are rejected below.
        """
        await self._engine.ensure_title(channel)

        try:
            command = parse_command(name, channel, caller, options, guild_id=guild_id)
        except UnknownCommand:
            log.info("Unknown command /%s in channel %s", name, channel)
            return Reply(text=UNKNOWN_COMMAND_TEXT)
        except CommandArgumentError as e:
            log.info("Rejected /%s options %s: bad %s", name, options, e.field)
            hint = _ARGUMENT_HINTS.get(
                e.field or "", f"Please provide valid options for /{name}."
            )
            return Reply(text=hint)

        try:
            return await self._engine.run(command)
        except StoreError:
            log.exception("Store failure while handling /%s in channel %s", name, channel)
            return Reply(text=STORE_FAILURE_TEXT)
