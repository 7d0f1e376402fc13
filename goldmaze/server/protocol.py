"""
Gold Maze - Network Protocol

Message types exchanged over a play session's WebSocket.

MESSAGE FORMAT:
{
    "type": str,         # Message type
    "id": int,           # Message ID for request/response tracking
    "ts": float,         # Sender timestamp
    "data": {...}        # Payload
}
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from enum import Enum
import json
import time


class MessageType(Enum):
    """All message types"""

    # Client -> Server
    PLAYER_MOVE = "player_move"
    HAMMER_ARM = "hammer_arm"
    HAMMER_DISARM = "hammer_disarm"
    HAMMER_TOGGLE = "hammer_toggle"
    BREAK_WALL = "break_wall"
    REQUEST_STATE = "request_state"
    PING = "ping"

    # Server -> Client
    GAME_STATE = "game_state"
    SESSION_OVER = "session_over"
    PONG = "pong"
    ERROR = "error"


class ProtocolError(ValueError):
    """Raised for messages that cannot be decoded"""


@dataclass
class Message:
    """Base message structure"""
    type: MessageType
    data: Dict[str, Any] = field(default_factory=dict)
    id: int = 0
    ts: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "id": self.id,
            "ts": self.ts,
            "data": self.data
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @staticmethod
    def from_dict(obj: Any) -> 'Message':
        if not isinstance(obj, dict):
            raise ProtocolError("Message must be a JSON object")
        try:
            msg_type = MessageType(obj.get("type"))
        except ValueError:
            raise ProtocolError(f"Unknown message type: {obj.get('type')!r}") from None
        data = obj.get("data") or {}
        if not isinstance(data, dict):
            raise ProtocolError("Message data must be an object")
        return Message(
            type=msg_type,
            id=obj.get("id", 0),
            ts=obj.get("ts", time.time()),
            data=data
        )

    @staticmethod
    def from_json(raw: str) -> 'Message':
        try:
            obj = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ProtocolError(f"Invalid JSON: {e}") from None
        return Message.from_dict(obj)


# ============================================================================
# CLIENT -> SERVER PAYLOADS
# ============================================================================

def _is_int(value: Any) -> bool:
    # bool is an int subclass; JSON true/false are not coordinates
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class PlayerMoveData:
    dx: int  # -1, 0, 1
    dy: int  # -1, 0, 1

    @staticmethod
    def parse(data: Dict[str, Any]) -> 'PlayerMoveData':
        dx, dy = data.get("dx", 0), data.get("dy", 0)
        if not _is_int(dx) or not _is_int(dy):
            raise ProtocolError("dx and dy must be integers")
        return PlayerMoveData(dx=dx, dy=dy)


@dataclass
class BreakWallData:
    x: int
    y: int

    @staticmethod
    def parse(data: Dict[str, Any]) -> 'BreakWallData':
        x, y = data.get("x"), data.get("y")
        if not _is_int(x) or not _is_int(y):
            raise ProtocolError("break_wall needs integer x and y")
        return BreakWallData(x=x, y=y)


# ============================================================================
# MESSAGE BUILDERS
# ============================================================================

class MessageBuilder:
    """Factory for server messages"""

    _msg_id = 0

    @classmethod
    def _next_id(cls) -> int:
        cls._msg_id += 1
        return cls._msg_id

    @classmethod
    def game_state(cls, state: Dict[str, Any]) -> Message:
        return Message(
            type=MessageType.GAME_STATE,
            id=cls._next_id(),
            data=state
        )

    @classmethod
    def session_over(cls, result: str, state: Dict[str, Any], score: Optional[Dict[str, Any]]) -> Message:
        return Message(
            type=MessageType.SESSION_OVER,
            id=cls._next_id(),
            data={
                "result": result,
                "state": state,
                "score": score
            }
        )

    @classmethod
    def pong(cls, client_ts: float) -> Message:
        return Message(
            type=MessageType.PONG,
            id=cls._next_id(),
            data={"client_ts": client_ts, "server_ts": time.time()}
        )

    @classmethod
    def error(cls, code: str, message: str) -> Message:
        return Message(
            type=MessageType.ERROR,
            id=cls._next_id(),
            data={"code": code, "message": message}
        )
