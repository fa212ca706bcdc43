"""Validated command shapes passed from the dispatcher to the engine.

Every slash command has its own argument model. Unknown options are
rejected and missing or ill-typed ones surface as
:class:`CommandArgumentError` naming the offending field, so the engine
only ever sees well-formed input. Range checks on ``hour`` and ``day``
are left to the time resolver, which owns those rules.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

CommandName = Literal["add", "remove", "list", "next", "settitle", "config", "clear"]


class UnknownCommand(Exception):
    """Raised for a command name the bot does not implement."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown command: {name!r}")
        self.name = name


class CommandArgumentError(Exception):
    """Raised when a command's options fail validation."""

    def __init__(self, command: str, field: str | None) -> None:
        super().__init__(f"Invalid option {field!r} for /{command}")
        self.command = command
        self.field = field


class Caller(BaseModel):
    """The authenticated user who issued the command."""

    id: str
    name: str


class CommandArgs(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)


class EmptyArgs(CommandArgs):
    pass


class AddArgs(CommandArgs):
    hour: int
    day: Optional[int] = None
    name: Optional[str] = Field(default=None, min_length=1)


class RemoveArgs(CommandArgs):
    hour: Optional[int] = None
    day: Optional[int] = None
    name: Optional[str] = Field(default=None, min_length=1)


class TitleArgs(CommandArgs):
    title: str = Field(min_length=1)


COMMAND_ARGS: dict[str, type[CommandArgs]] = {
    "add": AddArgs,
    "remove": RemoveArgs,
    "list": EmptyArgs,
    "next": EmptyArgs,
    "settitle": TitleArgs,
    "config": TitleArgs,
    "clear": EmptyArgs,
}


class Command(BaseModel):
    """A verified, parsed inbound command."""

    name: CommandName
    channel: str
    caller: Caller
    args: CommandArgs
    guild_id: Optional[str] = None


class Reply(BaseModel):
    """Single human-readable message returned for every command."""

    text: str


def parse_command(
    name: str,
    channel: str,
    caller: Caller,
    options: dict[str, Any],
    guild_id: str | None = None,
) -> Command:
    """Build a :class:`Command`, validating ``options`` for its kind."""
    args_model = COMMAND_ARGS.get(name)
    if args_model is None:
        raise UnknownCommand(name)

    # Blank free-text options count as missing
    cleaned = {
        key: value.strip() if isinstance(value, str) else value
        for key, value in options.items()
    }
    try:
        args = args_model.model_validate(cleaned)
    except ValidationError as e:
        errors = e.errors()
        field = str(errors[0]["loc"][0]) if errors and errors[0]["loc"] else None
        raise CommandArgumentError(name, field) from e

    return Command(name=name, channel=channel, caller=caller, args=args, guild_id=guild_id)
