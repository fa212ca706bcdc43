"""FastAPI application: Discord interactions webhook plus admin API.

Endpoints:

  POST   /interactions                       Discord interactions webhook (signed)
  GET    /interactions                       Reachability probe for setup
  GET    /health                             Health check

  GET    /api/channels                       Titled channels (admin)
  GET    /api/channels/{id}/bookings         All bookings in a channel (admin)
  PUT    /api/channels/{id}/title            Set a channel's title (admin)
  DELETE /api/channels/{id}                  Drop a channel's list and title (admin)
  POST   /api/channels/{id}/bookings         Add a named booking (admin)
  DELETE /api/channels/{id}/bookings         Remove one booking (admin)

The interaction flow:
  1. Discord POSTs a signed interaction to /interactions
  2. We verify the Ed25519 signature over timestamp + raw body
  3. CommandDispatcher validates the command and runs it on SchedulingEngine
  4. The reply text goes back as a CHANNEL_MESSAGE_WITH_SOURCE response
"""

from __future__ import annotations

# Load .env into os.environ early so every settings consumer sees it.
from dotenv import load_dotenv
load_dotenv()

import json
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable, Optional

# Configure root logger early so all app loggers (signups.engine, etc.)
# have a handler and are visible when run via `uvicorn signups.app:app`.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
)

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from signups.auth import require_admin_token
from signups.config import settings
from signups.discord.client import DiscordClient
from signups.discord.signature import SIGNATURE_HEADER, TIMESTAMP_HEADER, verify_signature
from signups.dispatcher import CommandDispatcher, MalformedInteraction
from signups.engine.identity import custom_identity_key
from signups.engine.scheduler import SchedulingEngine, utc_now
from signups.models.booking import Booking
from signups.store.base import BookingConflict, SlotStore, StoreError
from signups.store.sql import SqlSlotStore

log = logging.getLogger("signups.app")

_START_TIME = time.time()


class TitleIn(BaseModel):
    title: str = Field(min_length=1)


class BookingIn(BaseModel):
    display_name: str = Field(min_length=1)
    time: datetime


def _as_utc_hour(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).replace(minute=0, second=0, microsecond=0)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    for warning in settings.validate_startup():
        log.warning(warning)

    owned_store: Optional[SqlSlotStore] = None
    owned_discord: Optional[DiscordClient] = None

    if app.state.store is None:
        owned_store = SqlSlotStore.from_url(settings.database_url)
        owned_store.create_schema()
        app.state.store = owned_store
        log.info("Using store at %s", settings.database_url.split("@")[-1])

    if app.state.discord is None:
        owned_discord = DiscordClient(
            bot_token=settings.discord_bot_token,
            application_id=settings.discord_application_id,
            api_base=settings.discord_api_base,
            timeout=settings.http_timeout_seconds,
        )
        app.state.discord = owned_discord

    try:
        yield
    finally:
        if owned_discord is not None:
            await owned_discord.aclose()
        if owned_store is not None:
            owned_store.dispose()


def create_app(
    store: Optional[SlotStore] = None,
    discord: Optional[DiscordClient] = None,
    clock: Callable[[], datetime] = utc_now,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Slot store to use. Built from ``DATABASE_URL`` at startup
            when omitted.
        discord: Discord REST client for channel-name lookups. Built from
            the bot token at startup when omitted.
        clock: Source of the current UTC time for the scheduling engine.
    """
    app = FastAPI(
        title="Channel Signups",
        description="Slash-command signup scheduling for chat channels",
        version="0.1.0",
        lifespan=_lifespan,
    )
    app.state.store = store
    app.state.discord = discord
    app.state.clock = clock

    def _store() -> SlotStore:
        if app.state.store is None:
            raise HTTPException(status_code=503, detail="Store not initialised.")
        return app.state.store

    def _dispatcher() -> CommandDispatcher:
        discord_client = app.state.discord
        lookup = discord_client.get_channel_name if discord_client is not None else None
        engine = SchedulingEngine(_store(), lookup, app.state.clock)
        return CommandDispatcher(engine)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        log.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse({"error": "Store unavailable"}, status_code=503)

    # ── Health check ───────────────────────────────────────────

    @app.get("/health")
    async def health() -> JSONResponse:
        uptime = round(time.time() - _START_TIME, 1)
        return JSONResponse({"status": "ok", "uptime": uptime})

    # ── Discord interactions webhook ───────────────────────────

    @app.get("/interactions")
    async def interactions_probe() -> JSONResponse:
        """Setup aid: confirms the endpoint is reachable and a key is configured."""
        return JSONResponse({
            "message": "Interactions endpoint is reachable",
            "has_public_key": bool(settings.discord_public_key),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    @app.post("/interactions")
    async def interactions(request: Request) -> Response:
        raw_body = await request.body()

        verified = verify_signature(
            settings.discord_public_key,
            request.headers.get(SIGNATURE_HEADER, ""),
            request.headers.get(TIMESTAMP_HEADER, ""),
            raw_body,
        )
        if not verified:
            log.warning("Interaction signature verification failed")
            return Response(content="Invalid request signature", status_code=401)

        try:
            payload = json.loads(raw_body)
        except ValueError:
            return JSONResponse({"error": "Invalid JSON"}, status_code=400)
        if not isinstance(payload, dict):
            return JSONResponse({"error": "Bad request"}, status_code=400)

        try:
            body = await _dispatcher().handle(payload)
        except MalformedInteraction as e:
            log.warning("Malformed interaction: %s", e)
            return JSONResponse({"error": str(e)}, status_code=400)
        return JSONResponse(body)

    # ── Admin dashboard API ────────────────────────────────────

    admin = [Depends(require_admin_token)]

    @app.get("/api/channels", dependencies=admin)
    async def list_channels() -> JSONResponse:
        titles = await _store().list_titles()
        return JSONResponse({"channels": [t.model_dump() for t in titles]})

    @app.get("/api/channels/{channel_id}/bookings", dependencies=admin)
    async def list_channel_bookings(channel_id: str) -> JSONResponse:
        bookings = await _store().list_bookings(channel_id)
        return JSONResponse({
            "channel": channel_id,
            "bookings": [b.model_dump(mode="json") for b in bookings],
        })

    @app.put("/api/channels/{channel_id}/title", dependencies=admin)
    async def update_title(channel_id: str, body: TitleIn) -> JSONResponse:
        await _store().upsert_title(channel_id, body.title)
        log.info("Admin set title of %s to %r", channel_id, body.title)
        return JSONResponse({"channel": channel_id, "title": body.title})

    @app.delete("/api/channels/{channel_id}", dependencies=admin)
    async def delete_channel(channel_id: str) -> JSONResponse:
        store = _store()
        if await store.get_title(channel_id) is None and not await store.list_bookings(
            channel_id, limit=1
        ):
            raise HTTPException(status_code=404, detail="Channel not found")
        deleted = await store.delete_bookings(channel_id)
        await store.delete_title(channel_id)
        log.info("Admin cleared channel %s (%d bookings)", channel_id, deleted)
        return JSONResponse({"channel": channel_id, "deleted_bookings": deleted})

    @app.post(
        "/api/channels/{channel_id}/bookings",
        dependencies=admin,
        status_code=status.HTTP_201_CREATED,
    )
    async def add_booking(channel_id: str, body: BookingIn) -> JSONResponse:
        booking = Booking(
            channel=channel_id,
            identity_key=custom_identity_key(body.display_name),
            display_name=body.display_name,
            instant=_as_utc_hour(body.time),
        )
        try:
            await _store().insert_booking(booking)
        except BookingConflict:
            raise HTTPException(
                status_code=409, detail="That time is already booked."
            ) from None
        return JSONResponse(booking.model_dump(mode="json"), status_code=201)

    @app.delete("/api/channels/{channel_id}/bookings", dependencies=admin)
    async def remove_booking(
        channel_id: str, identity_key: str, at: datetime = Query(alias="time")
    ) -> JSONResponse:
        deleted = await _store().delete_bookings(
            channel_id, identity_key, at=_as_utc_hour(at)
        )
        if not deleted:
            raise HTTPException(status_code=404, detail="Booking not found")
        return JSONResponse({"channel": channel_id, "deleted": deleted})

    return app


# ── Module-level app instance for uvicorn ──────────────────────

app = create_app()


if __name__ == "__main__":
    import uvicorn

    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["default"]["fmt"] = (
        "%(asctime)s %(name)-12s %(levelname)-8s %(message)s"
    )

    uvicorn.run(
        "signups.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_config=log_config,
    )
