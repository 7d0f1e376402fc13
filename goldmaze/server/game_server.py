"""
Gold Maze - Play Session Server

Runs play sessions for connected clients.

Each session owns:
- a PlayState (the traversal engine's state)
- a SessionClock ticking that state down
- a send callable writing messages back to the client

Client messages become intents and are applied one at a time. When a
transition makes the session terminal the clock is stopped before any
await, the score is recorded exactly once and a session_over message is
sent.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from goldmaze.database import ScoreStore
from goldmaze.engine.game_loop import SessionClock
from goldmaze.engine.grid import Position
from goldmaze.engine.traversal import (
    Intent, PlayState, TransitionResult, apply, finalize_to_score_record, start_session
)
from goldmaze.models import ScoreRecord
from goldmaze.server.protocol import (
    BreakWallData, Message, MessageBuilder, MessageType, PlayerMoveData, ProtocolError
)
from goldmaze.world.maps import MapCatalog

logger = logging.getLogger(__name__)


SendFn = Callable[[Message], Awaitable[None]]


class ConnectionState(Enum):
    """Session lifecycle"""
    CONNECTED = "connected"
    IN_GAME = "in_game"
    FINISHED = "finished"
    CLOSED = "closed"


@dataclass
class SessionStats:
    started_at: float = field(default_factory=time.time)
    last_message_at: float = field(default_factory=time.time)
    messages_received: int = 0
    messages_sent: int = 0


class PlaySession:
    """One client playing one map"""

    def __init__(self, session_id: str, play_state: PlayState, store: ScoreStore,
                 send: SendFn, tick_seconds: float = 1.0):
        self.session_id = session_id
        self.play_state = play_state
        self.store = store
        self._send_fn = send

        self.state = ConnectionState.CONNECTED
        self.stats = SessionStats()
        self.score: Optional[ScoreRecord] = None
        self._finalized = False

        self.clock = SessionClock(play_state, tick_seconds=tick_seconds, on_tick=self._on_tick)

        self._handlers = {
            MessageType.PLAYER_MOVE: self._handle_move,
            MessageType.HAMMER_ARM: self._handle_hammer_arm,
            MessageType.HAMMER_DISARM: self._handle_hammer_disarm,
            MessageType.HAMMER_TOGGLE: self._handle_hammer_toggle,
            MessageType.BREAK_WALL: self._handle_break_wall,
            MessageType.REQUEST_STATE: self._handle_request_state,
            MessageType.PING: self._handle_ping,
        }

    @property
    def is_finished(self) -> bool:
        return self._finalized

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    async def start(self) -> None:
        """Send the opening state and start the countdown"""
        self.state = ConnectionState.IN_GAME
        await self._send(MessageBuilder.game_state(self.play_state.to_dict()))
        self.clock.start()
        logger.info(
            f"Session {self.session_id} started: {self.play_state.player_name} "
            f"({self.play_state.character}) on {self.play_state.map.id}"
        )

    async def close(self) -> None:
        """Stop the clock. An unfinished attempt is abandoned without a score."""
        self.clock.stop()
        await self.clock.wait_stopped()
        if not self._finalized:
            logger.info(f"Session {self.session_id} abandoned at {self.play_state.time_remaining}s left")
        self.state = ConnectionState.CLOSED

    # ========================================================================
    # MESSAGE HANDLING
    # ========================================================================

    async def handle_raw(self, raw: str) -> None:
        """Decode and route one client message"""
        self.stats.last_message_at = time.time()
        self.stats.messages_received += 1

        try:
            msg = Message.from_json(raw)
        except ProtocolError as e:
            logger.warning(f"Invalid message on session {self.session_id}: {e}")
            await self._send(MessageBuilder.error("INVALID_MESSAGE", str(e)))
            return

        await self.handle_message(msg)

    async def handle_message(self, msg: Message) -> None:
        handler = self._handlers.get(msg.type)
        if handler is None:
            logger.warning(f"Unhandled message type: {msg.type}")
            await self._send(MessageBuilder.error("UNSUPPORTED_MESSAGE", msg.type.value))
            return

        try:
            await handler(msg)
        except ProtocolError as e:
            await self._send(MessageBuilder.error("INVALID_MESSAGE", str(e)))

    async def _handle_move(self, msg: Message) -> None:
        move = PlayerMoveData.parse(msg.data)
        await self._apply(Intent.move(move.dx, move.dy))

    async def _handle_hammer_arm(self, msg: Message) -> None:
        await self._apply(Intent.arm_hammer())

    async def _handle_hammer_disarm(self, msg: Message) -> None:
        await self._apply(Intent.disarm_hammer())

    async def _handle_hammer_toggle(self, msg: Message) -> None:
        await self._apply(Intent.toggle_hammer())

    async def _handle_break_wall(self, msg: Message) -> None:
        target = BreakWallData.parse(msg.data)
        await self._apply(Intent.break_wall(Position(target.x, target.y)))

    async def _handle_request_state(self, msg: Message) -> None:
        await self._send(MessageBuilder.game_state(self.play_state.to_dict()))

    async def _handle_ping(self, msg: Message) -> None:
        await self._send(MessageBuilder.pong(msg.data.get("ts", 0)))

    # ========================================================================
    # TRANSITIONS
    # ========================================================================

    async def _apply(self, intent: Intent) -> None:
        result = apply(self.play_state, intent)
        if result.finished:
            # Before any await, so a pending tick cannot land after the win
            self.clock.stop()
        await self._after_transition(result)

    async def _on_tick(self, result: TransitionResult) -> None:
        await self._after_transition(result)

    async def _after_transition(self, result: TransitionResult) -> None:
        if result.finished:
            await self._finish()
        elif result.changed:
            await self._send(MessageBuilder.game_state(self.play_state.to_dict()))

    async def _finish(self) -> None:
        if self._finalized:
            return
        self._finalized = True
        self.state = ConnectionState.FINISHED

        record = finalize_to_score_record(self.play_state)
        try:
            self.score = await self.store.append(record)
        except Exception as e:
            logger.error(f"Failed to record score for session {self.session_id}: {e}", exc_info=True)
            await self._send(MessageBuilder.error("SCORE_NOT_SAVED", "Your result could not be saved"))

        await self._send(MessageBuilder.session_over(
            result=self.play_state.state.value,
            state=self.play_state.to_dict(),
            score=self.score.to_dict() if self.score else None,
        ))

    # ========================================================================
    # UTILITIES
    # ========================================================================

    async def _send(self, msg: Message) -> None:
        try:
            await self._send_fn(msg)
            self.stats.messages_sent += 1
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error sending to session {self.session_id}: {e}")


class SessionManager:
    """
    Creates and tracks play sessions.

    One instance per application, created in the app lifespan together
    with the map catalog and score store it serves.
    """

    def __init__(self, catalog: MapCatalog, store: ScoreStore, tick_seconds: float = 1.0):
        self.catalog = catalog
        self.store = store
        self.tick_seconds = tick_seconds
        self.sessions: Dict[str, PlaySession] = {}

    async def open_session(self, map_id: str, player_name: str, character: str,
                           send: SendFn, hammer_charges_override: Optional[int] = None) -> PlaySession:
        """Start a session on map_id. Raises NotFound for unknown maps."""
        map_def = self.catalog.get_map(map_id)
        play_state = start_session(
            map_def,
            character=character,
            hammer_charges_override=hammer_charges_override,
            player_name=player_name,
        )
        session = PlaySession(
            session_id=uuid.uuid4().hex,
            play_state=play_state,
            store=self.store,
            send=send,
            tick_seconds=self.tick_seconds,
        )
        self.sessions[session.session_id] = session
        await session.start()
        return session

    async def close_session(self, session: PlaySession) -> None:
        await session.close()
        self.sessions.pop(session.session_id, None)

    async def close_all(self) -> None:
        for session in list(self.sessions.values()):
            await self.close_session(session)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "active_sessions": sum(1 for s in self.sessions.values() if s.state == ConnectionState.IN_GAME),
            "open_sessions": len(self.sessions),
        }
