"""Data models for the signup layer."""

from .booking import CUSTOM_IDENTITY_PREFIX, Booking, ChannelTitle
from .commands import (
    COMMAND_ARGS,
    Caller,
    Command,
    CommandArgumentError,
    Reply,
    UnknownCommand,
    parse_command,
)

__all__ = [
    "Booking",
    "COMMAND_ARGS",
    "CUSTOM_IDENTITY_PREFIX",
    "Caller",
    "ChannelTitle",
    "Command",
    "CommandArgumentError",
    "Reply",
    "UnknownCommand",
    "parse_command",
]
