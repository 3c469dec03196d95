from __future__ import annotations

from typing import Any, NoReturn
from uuid import UUID

import redis
from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from gaia_engine.actions import ActionResult, dispatch_command
from gaia_engine.api.deps import get_redis
from gaia_engine.api.models import (
    AddBotRequest,
    BotRunResponse,
    JoinRequest,
    ReadyRequest,
    SeatJoinedResponse,
    SeatLookupResponse,
    SessionCreateRequest,
    SessionListResponse,
)
from gaia_engine.bot_runner import BotRunnerConfig, run_session_bots_once
from gaia_engine.core.errors import NotYourSeat, SessionNotFound
from gaia_engine.core.models import Session
from gaia_engine.session_store import (
    add_bot,
    create_session,
    find_session_for_seat,
    get_session,
    join_session,
    list_sessions,
    set_ready,
    start,
)
from gaia_engine.turn_processing.commands import parse_command
from gaia_engine.websocket_hub import hub, session_updated

router = APIRouter()


def _raise_for(e: ValueError) -> NoReturn:
    if isinstance(e, SessionNotFound):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e


@router.websocket("/ws/session/{session_id}")
async def session_ws(
    websocket: WebSocket,
    session_id: UUID,
    seat_id: str | None = None,
    r: redis.Redis = Depends(get_redis),
) -> None:
    sid = str(session_id)
    await hub.connect(sid, websocket, seat_id)

    try:
        while True:
            message = await websocket.receive_json()
            await _handle_ws_message(websocket=websocket, session_id=session_id, message=message, r=r)
    except WebSocketDisconnect:
        await hub.disconnect(sid, websocket)
    except Exception:
        await hub.disconnect(sid, websocket)
        raise


async def _handle_ws_message(*, websocket: WebSocket, session_id: UUID, message: object, r: redis.Redis) -> None:
    if not isinstance(message, dict) or message.get("type") != "command":
        await hub.send(websocket, {"type": "command_rejected", "reason": "Unknown message type"})
        return

    seat_id = hub.seat_for(websocket)
    if seat_id is None:
        await hub.send(websocket, {"type": "game_error", "message": str(NotYourSeat())})
        return

    try:
        command = parse_command(message.get("command"))
    except ValidationError as e:
        await hub.send(websocket, {"type": "command_rejected", "reason": str(e)})
        return

    try:
        result = dispatch_command(r=r, session_id=session_id, seat_id=seat_id, command=command)
    except ValueError as e:
        await hub.send(websocket, {"type": "game_error", "message": str(e)})
        return

    if result.applied:
        await hub.broadcast(str(session_id), session_updated(result.session))
    elif result.explicit:
        await hub.send(websocket, {"type": "game_error", "message": result.reason})
    else:
        await hub.send(websocket, {"type": "command_rejected", "reason": result.reason})


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/sessions", response_model=Session, status_code=status.HTTP_201_CREATED)
async def create_session_route(payload: SessionCreateRequest, r: redis.Redis = Depends(get_redis)) -> Session:
    return create_session(r=r, name=payload.name, max_seats=payload.max_seats, seed=payload.seed)


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions_route(r: redis.Redis = Depends(get_redis)) -> SessionListResponse:
    return SessionListResponse(sessions=list_sessions(r=r))


@router.get("/sessions/{session_id}", response_model=Session)
async def get_session_route(session_id: UUID, r: redis.Redis = Depends(get_redis)) -> Session:
    session = get_session(r=r, session_id=session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return session


@router.post("/sessions/{session_id}/seats", response_model=SeatJoinedResponse, status_code=status.HTTP_201_CREATED)
async def join_session_route(
    session_id: UUID,
    payload: JoinRequest,
    r: redis.Redis = Depends(get_redis),
) -> SeatJoinedResponse:
    try:
        session, seat = join_session(r=r, session_id=session_id, display_name=payload.display_name)
    except ValueError as e:
        _raise_for(e)

    await hub.broadcast(str(session_id), session_updated(session))
    return SeatJoinedResponse(seat=seat, session=session)


@router.post("/sessions/{session_id}/bots", response_model=SeatJoinedResponse, status_code=status.HTTP_201_CREATED)
async def add_bot_route(
    session_id: UUID,
    payload: AddBotRequest,
    r: redis.Redis = Depends(get_redis),
) -> SeatJoinedResponse:
    try:
        session, seat = add_bot(r=r, session_id=session_id, display_name=payload.display_name)
    except ValueError as e:
        _raise_for(e)

    await hub.broadcast(str(session_id), session_updated(session))
    return SeatJoinedResponse(seat=seat, session=session)


@router.post("/sessions/{session_id}/seats/{seat_id}/ready", response_model=Session)
async def ready_route(
    session_id: UUID,
    seat_id: str,
    payload: ReadyRequest,
    r: redis.Redis = Depends(get_redis),
) -> Session:
    try:
        session = set_ready(r=r, session_id=session_id, seat_id=seat_id, ready=payload.ready)
    except ValueError as e:
        _raise_for(e)

    await hub.broadcast(str(session_id), session_updated(session))
    return session


@router.post("/sessions/{session_id}/start", response_model=Session)
async def start_route(session_id: UUID, r: redis.Redis = Depends(get_redis)) -> Session:
    try:
        session = start(r=r, session_id=session_id)
    except ValueError as e:
        _raise_for(e)

    await hub.broadcast(str(session_id), session_updated(session))
    return session


@router.get("/seats/{seat_id}/session", response_model=SeatLookupResponse)
async def seat_lookup_route(seat_id: str, r: redis.Redis = Depends(get_redis)) -> SeatLookupResponse:
    """Rejoin: which live session does this seat belong to."""

    session_id = find_session_for_seat(r=r, seat_id=seat_id)
    if session_id is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No live session for this seat")
    return SeatLookupResponse(seat_id=seat_id, session_id=str(session_id))


@router.post("/sessions/{session_id}/seats/{seat_id}/commands", response_model=Session)
async def command_route(
    session_id: UUID,
    seat_id: str,
    body: dict[str, Any],
    r: redis.Redis = Depends(get_redis),
) -> Session:
    try:
        command = parse_command(body)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    try:
        result: ActionResult = dispatch_command(r=r, session_id=session_id, seat_id=seat_id, command=command)
    except ValueError as e:
        _raise_for(e)

    if not result.applied:
        if isinstance(result.error, NotYourSeat):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=result.reason)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=result.reason)

    await hub.broadcast(str(session_id), session_updated(result.session))
    return result.session


@router.post("/sessions/{session_id}/bots/run_once", response_model=BotRunResponse)
async def run_bots_once_route(
    session_id: UUID,
    block_ms: int = 0,
    count: int = 10,
    r: redis.Redis = Depends(get_redis),
) -> BotRunResponse:
    """Dev endpoint: one bot tick for this session, without a separate worker process."""

    if block_ms < 0 or block_ms > 10_000:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="block_ms must be 0..10000")
    if count < 1 or count > 100:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be 1..100")

    handled = await run_session_bots_once(
        r=r,
        session_id=str(session_id),
        config=BotRunnerConfig(block_ms=block_ms, count=count, delay_ms=0),
    )

    return BotRunResponse(session_id=str(session_id), handled=handled)
