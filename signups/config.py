"""Application configuration via environment variables."""

from __future__ import annotations

import logging

from pydantic_settings import BaseSettings

log = logging.getLogger("signups.config")


class Settings(BaseSettings):
    # Discord application
    discord_public_key: str = ""
    discord_bot_token: str = ""
    discord_application_id: str = ""
    discord_api_base: str = "https://discord.com/api/v10"
    http_timeout_seconds: float = 10.0

    # Storage
    database_url: str = "sqlite:///signups.db"

    # Admin auth
    admin_api_key: str = ""

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def validate_startup(self) -> list[str]:
        """Validate configuration at startup. Returns warnings, raises on errors."""
        warnings: list[str] = []

        # Interaction signatures cannot be checked without the public key
        if not self.discord_public_key and not self.debug:
            raise ValueError(
                "DISCORD_PUBLIC_KEY is missing. Set it in .env so inbound "
                "interactions can be verified."
            )

        if not self.discord_bot_token:
            warnings.append(
                "DISCORD_BOT_TOKEN not set. Channel titles will not be "
                "provisioned from channel names and commands cannot be registered."
            )

        if not self.admin_api_key:
            if self.debug:
                warnings.append(
                    "ADMIN_API_KEY not set. Admin APIs are open (DEBUG=true)."
                )
            else:
                warnings.append(
                    "ADMIN_API_KEY not set. Admin APIs are locked in production. "
                    "Set ADMIN_API_KEY in .env to enable admin access."
                )

        return warnings


settings = Settings()
