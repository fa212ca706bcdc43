"""Register the bot's slash commands with Discord.

Usage:
    # Global commands (can take up to an hour to appear)
    python -m signups.register_commands

    # Guild commands (appear immediately; handy while developing)
    python -m signups.register_commands --guild 123456789012345678

Reads DISCORD_BOT_TOKEN and DISCORD_APPLICATION_ID from the environment
or .env.
"""

import argparse
import asyncio
import sys

import httpx
from dotenv import load_dotenv

from signups.config import Settings
from signups.discord.client import DiscordClient
from signups.discord.commands import COMMANDS


async def register(settings: Settings, guild_id: str | None = None) -> list[dict]:
    """Push ``COMMANDS`` to Discord and return what was registered."""
    client = DiscordClient(
        bot_token=settings.discord_bot_token,
        application_id=settings.discord_application_id,
        api_base=settings.discord_api_base,
        timeout=settings.http_timeout_seconds,
    )
    try:
        return await client.register_commands(COMMANDS, guild_id=guild_id)
    finally:
        await client.aclose()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Register slash commands for the signup bot",
        prog="python -m signups.register_commands",
    )
    parser.add_argument(
        "--guild",
        help="Register as guild commands for this guild id instead of globally",
    )
    args = parser.parse_args(argv)

    load_dotenv()
    settings = Settings()
    if not settings.discord_bot_token:
        print("DISCORD_BOT_TOKEN is not set.", file=sys.stderr)
        return 1

    try:
        registered = asyncio.run(register(settings, args.guild))
    except (ValueError, httpx.HTTPError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    scope = f"guild {args.guild}" if args.guild else "global"
    for command in registered:
        print(f"  Registered: /{command['name']}")
    print(f"Done: {len(registered)} {scope} commands registered")
    return 0


if __name__ == "__main__":
    sys.exit(main())
