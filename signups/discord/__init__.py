"""Discord collaborators: REST client, command catalogue, request signatures."""

from .client import DiscordClient
from .commands import COMMANDS
from .signature import verify_signature

__all__ = ["COMMANDS", "DiscordClient", "verify_signature"]
