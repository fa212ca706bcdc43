"""Minimal Discord REST client.

Only the two calls the bot needs: looking up a channel's name (to title
new lists) and bulk-registering slash commands.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

log = logging.getLogger("signups.discord")

DEFAULT_API_BASE = "https://discord.com/api/v10"


class DiscordClient:
    """Async wrapper around the Discord HTTP API using a bot token."""

    def __init__(
        self,
        bot_token: str,
        application_id: str = "",
        api_base: str = DEFAULT_API_BASE,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._token = bot_token
        self._application_id = application_id
        self._client = client or httpx.AsyncClient(
            base_url=api_base.rstrip("/"),
            timeout=timeout,
        )

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bot {self._token}"}

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_channel_name(self, channel_id: str) -> Optional[str]:
        """Return the channel's name, or None if it cannot be fetched."""
        if not self._token:
            return None

        resp = await self._client.get(f"/channels/{channel_id}", headers=self._headers)
        if resp.status_code != 200:
            log.warning(
                "Channel lookup for %s returned HTTP %d", channel_id, resp.status_code
            )
            return None
        return resp.json().get("name") or None

    async def register_commands(
        self, commands: list[dict[str, Any]], guild_id: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """Overwrite the application's slash commands.

        Guild commands update instantly; global ones can take up to an hour.

        Raises:
            ValueError: no application id configured.
            httpx.HTTPStatusError: Discord rejected the request.
        """
        if not self._application_id:
            raise ValueError("DISCORD_APPLICATION_ID is required to register commands.")

        path = f"/applications/{self._application_id}/commands"
        if guild_id:
            path = f"/applications/{self._application_id}/guilds/{guild_id}/commands"

        resp = await self._client.put(path, json=commands, headers=self._headers)
        resp.raise_for_status()
        registered = resp.json()
        log.info("Registered %d command(s) at %s", len(registered), path)
        return registered
