"""Request/response bodies for the REST API. Session state itself is `core.models.Session`."""

from __future__ import annotations

from pydantic import BaseModel, Field

from gaia_engine.core.models import Seat, Session


class SessionCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    max_seats: int = Field(4, ge=1, le=4)
    seed: int | None = None


class SessionListResponse(BaseModel):
    sessions: list[Session]


class JoinRequest(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=40)


class AddBotRequest(BaseModel):
    display_name: str | None = Field(None, min_length=1, max_length=40)


class ReadyRequest(BaseModel):
    ready: bool = True


class SeatJoinedResponse(BaseModel):
    seat: Seat
    session: Session


class SeatLookupResponse(BaseModel):
    seat_id: str
    session_id: str


class BotRunResponse(BaseModel):
    session_id: str
    handled: bool
