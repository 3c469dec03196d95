from __future__ import annotations

import asyncio
from collections import defaultdict

from fastapi import WebSocket

from gaia_engine.core.models import Session


class SessionWebSocketHub:
    """In-process WebSocket pub/sub keyed by session_id.

    Contract:
      - a connection joins a session (and controls one seat) via `connect(session_id, websocket, seat_id)`.
      - `broadcast(session_id, payload)` reaches every connection of the session.
      - `send(websocket, payload)` answers a single caller.

    Payloads should be JSON-serializable dicts.

    Note: this is intentionally minimal. If we later run multiple API replicas,
    this should move to Redis pub/sub.
    """

    def __init__(self) -> None:
        self._by_session: dict[str, set[WebSocket]] = defaultdict(set)
        self._seat_of: dict[WebSocket, str | None] = {}
        self._lock = asyncio.Lock()

    async def connect(self, session_id: str, websocket: WebSocket, seat_id: str | None = None) -> None:
        await websocket.accept()
        async with self._lock:
            self._by_session[session_id].add(websocket)
            self._seat_of[websocket] = seat_id

    async def disconnect(self, session_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            self._seat_of.pop(websocket, None)
            conns = self._by_session.get(session_id)
            if not conns:
                return
            conns.discard(websocket)
            if not conns:
                self._by_session.pop(session_id, None)

    def seat_for(self, websocket: WebSocket) -> str | None:
        return self._seat_of.get(websocket)

    async def send(self, websocket: WebSocket, payload: dict[str, object]) -> None:
        await websocket.send_json(payload)

    async def broadcast(self, session_id: str, payload: dict[str, object]) -> None:
        async with self._lock:
            conns = list(self._by_session.get(session_id, set()))

        if not conns:
            return

        dead: list[WebSocket] = []
        for ws in conns:
            try:
                await ws.send_json(payload)
            except Exception:
                dead.append(ws)

        if dead:
            async with self._lock:
                for ws in dead:
                    self._by_session.get(session_id, set()).discard(ws)
                    self._seat_of.pop(ws, None)


def session_updated(session: Session) -> dict[str, object]:
    """Full-state payload sent after every applied change."""

    return {"type": "session_updated", "session": session.model_dump(mode="json")}


hub = SessionWebSocketHub()
