"""
Gold Maze - Traversal Engine

Finite-state machine for a single play session.

STATES:
- ACTIVE:    accepting intents
- WON:       player reached the exit holding every gold piece
- TIMED_OUT: the countdown reached zero

ARCHITECTURE:
- A transition table maps (state, intent kind) to a handler
- Pairs missing from the table are no-ops, which makes every intent a
  no-op once the session is terminal
- Invalid intents (walking into a wall, breaking the border, ...) are
  routine and never raise
- Intents are applied one at a time and fully before the next; the
  session's grid is a private copy of the map's grid
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from goldmaze.engine.grid import CellKind, Grid, Position
from goldmaze.errors import SessionNotFinished
from goldmaze.models import ScoreRecord
from goldmaze.world.maps import MapDefinition

logger = logging.getLogger(__name__)


class SessionState(Enum):
    ACTIVE = "active"
    WON = "won"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self != SessionState.ACTIVE


class IntentKind(Enum):
    MOVE = "move"
    TICK = "tick"
    ARM_HAMMER = "arm_hammer"
    DISARM_HAMMER = "disarm_hammer"
    TOGGLE_HAMMER = "toggle_hammer"
    BREAK_WALL = "break_wall"


# Named unit moves; (dx, dy) with y growing downwards
DIRECTIONS: Dict[str, Tuple[int, int]] = {
    "up": (0, -1),
    "down": (0, 1),
    "left": (-1, 0),
    "right": (1, 0),
}
UNIT_MOVES = frozenset(DIRECTIONS.values())


@dataclass(frozen=True)
class Intent:
    """One player or clock action"""
    kind: IntentKind
    dx: int = 0
    dy: int = 0
    target: Optional[Position] = None

    @classmethod
    def move(cls, dx: int, dy: int) -> "Intent":
        return cls(IntentKind.MOVE, dx=dx, dy=dy)

    @classmethod
    def tick(cls) -> "Intent":
        return cls(IntentKind.TICK)

    @classmethod
    def arm_hammer(cls) -> "Intent":
        return cls(IntentKind.ARM_HAMMER)

    @classmethod
    def disarm_hammer(cls) -> "Intent":
        return cls(IntentKind.DISARM_HAMMER)

    @classmethod
    def toggle_hammer(cls) -> "Intent":
        return cls(IntentKind.TOGGLE_HAMMER)

    @classmethod
    def break_wall(cls, target: Position) -> "Intent":
        return cls(IntentKind.BREAK_WALL, target=target)


@dataclass
class PlayState:
    """
    Mutable state of one attempt.

    INVARIANTS:
    - grid is never the map's own grid
    - gold_collected + grid.count(GOLD) == map.gold_count
    - 0 <= time_remaining <= map.time_limit_seconds
    - hammer_armed implies hammer_charges > 0
    """
    map: MapDefinition
    grid: Grid
    player_position: Position
    time_remaining: int
    hammer_charges: int
    starting_hammer_charges: int
    character: str = ""
    player_name: str = ""
    gold_collected: int = 0
    hammer_armed: bool = False
    state: SessionState = SessionState.ACTIVE
    moves_made: int = field(default=0)

    @property
    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    @property
    def outcome(self) -> Optional[SessionState]:
        """WON or TIMED_OUT once finished, None while active"""
        return self.state if self.state.is_terminal else None

    @property
    def time_elapsed(self) -> int:
        return self.map.time_limit_seconds - self.time_remaining

    @property
    def hammers_used(self) -> int:
        return self.starting_hammer_charges - self.hammer_charges

    def to_dict(self) -> Dict[str, Any]:
        return {
            "map_id": self.map.id,
            "state": self.state.value,
            "player_name": self.player_name,
            "character": self.character,
            "position": self.player_position.to_dict(),
            "gold_collected": self.gold_collected,
            "gold_count": self.map.gold_count,
            "time_remaining": self.time_remaining,
            "time_limit": self.map.time_limit_seconds,
            "hammer_charges": self.hammer_charges,
            "hammer_armed": self.hammer_armed,
            "hammers_used": self.hammers_used,
            "grid": self.grid.to_rows(),
        }


@dataclass
class TransitionResult:
    """What applying one intent did"""
    state: PlayState
    changed: bool
    finished: bool = False


# ============================================================================
# SESSION START
# ============================================================================

def start_session(
    map_def: MapDefinition,
    character: str = "",
    hammer_charges_override: Optional[int] = None,
    player_name: str = "",
) -> PlayState:
    """Create the initial ACTIVE state for an attempt on map_def"""
    charges = map_def.hammer_charges if hammer_charges_override is None else max(0, int(hammer_charges_override))
    return PlayState(
        map=map_def,
        grid=map_def.grid.copy(),
        player_position=map_def.start,
        time_remaining=map_def.time_limit_seconds,
        hammer_charges=charges,
        starting_hammer_charges=charges,
        character=character,
        player_name=player_name,
    )


# ============================================================================
# TRANSITION HANDLERS
# Each returns True when it changed the state.
# ============================================================================

def _tick(state: PlayState, intent: Intent) -> bool:
    state.time_remaining -= 1
    if state.time_remaining <= 0:
        state.time_remaining = 0
        state.hammer_armed = False
        state.state = SessionState.TIMED_OUT
    return True


def _move(state: PlayState, intent: Intent) -> bool:
    if (intent.dx, intent.dy) not in UNIT_MOVES:
        logger.debug(f"Rejected move ({intent.dx}, {intent.dy}): not a unit step")
        return False

    target = state.player_position.offset(intent.dx, intent.dy)
    if not state.grid.in_bounds(target):
        return False

    kind = state.grid.get(target)
    if not kind.is_walkable:
        return False

    state.player_position = target
    state.moves_made += 1

    if kind == CellKind.GOLD:
        state.grid.set_in_place(target, CellKind.EMPTY)
        state.gold_collected += 1

    # Gold and exit never share a cell, so the win can only come from
    # stepping onto the exit after the last pickup
    if kind == CellKind.EXIT and state.gold_collected == state.map.gold_count:
        state.hammer_armed = False
        state.state = SessionState.WON

    return True


def _arm_hammer(state: PlayState, intent: Intent) -> bool:
    if state.hammer_charges <= 0 or state.hammer_armed:
        return False
    state.hammer_armed = True
    return True


def _disarm_hammer(state: PlayState, intent: Intent) -> bool:
    if not state.hammer_armed:
        return False
    state.hammer_armed = False
    return True


def _toggle_hammer(state: PlayState, intent: Intent) -> bool:
    if state.hammer_armed:
        return _disarm_hammer(state, intent)
    return _arm_hammer(state, intent)


def _break_wall(state: PlayState, intent: Intent) -> bool:
    pos = intent.target
    if pos is None or not state.hammer_armed or state.hammer_charges <= 0:
        return False
    if not state.grid.in_bounds(pos) or state.grid.is_border(pos):
        return False
    if state.grid.get(pos) != CellKind.WALL:
        return False

    state.grid.set_in_place(pos, CellKind.EMPTY)
    state.hammer_charges -= 1
    if state.hammer_charges == 0:
        state.hammer_armed = False
    return True


Handler = Callable[[PlayState, Intent], bool]

TRANSITIONS: Dict[Tuple[SessionState, IntentKind], Handler] = {
    (SessionState.ACTIVE, IntentKind.TICK): _tick,
    (SessionState.ACTIVE, IntentKind.MOVE): _move,
    (SessionState.ACTIVE, IntentKind.ARM_HAMMER): _arm_hammer,
    (SessionState.ACTIVE, IntentKind.DISARM_HAMMER): _disarm_hammer,
    (SessionState.ACTIVE, IntentKind.TOGGLE_HAMMER): _toggle_hammer,
    (SessionState.ACTIVE, IntentKind.BREAK_WALL): _break_wall,
}


# ============================================================================
# PUBLIC API
# ============================================================================

def apply(state: PlayState, intent: Intent) -> TransitionResult:
    """Apply one intent. Unknown (state, intent) pairs leave the state alone."""
    handler = TRANSITIONS.get((state.state, intent.kind))
    if handler is None:
        return TransitionResult(state=state, changed=False)

    changed = handler(state, intent)
    finished = changed and state.state.is_terminal
    if finished:
        logger.info(
            f"Session on {state.map.id} finished: {state.state.value} "
            f"(gold {state.gold_collected}/{state.map.gold_count}, {state.time_elapsed}s)"
        )
    return TransitionResult(state=state, changed=changed, finished=finished)


def apply_tick(state: PlayState) -> PlayState:
    return apply(state, Intent.tick()).state


def apply_move(state: PlayState, dx: int, dy: int) -> PlayState:
    return apply(state, Intent.move(dx, dy)).state


def apply_arm_hammer(state: PlayState) -> PlayState:
    return apply(state, Intent.arm_hammer()).state


def apply_disarm_hammer(state: PlayState) -> PlayState:
    return apply(state, Intent.disarm_hammer()).state


def apply_toggle_hammer(state: PlayState) -> PlayState:
    return apply(state, Intent.toggle_hammer()).state


def apply_break_wall(state: PlayState, pos: Position) -> PlayState:
    return apply(state, Intent.break_wall(pos)).state


def finalize_to_score_record(state: PlayState, player_name: Optional[str] = None) -> ScoreRecord:
    """Build the score record for a finished session. The caller stores it."""
    if not state.state.is_terminal:
        raise SessionNotFinished(state.map.id)

    return ScoreRecord(
        map_id=state.map.id,
        player_name=player_name if player_name is not None else state.player_name,
        character=state.character,
        gold_score=state.gold_collected,
        time_completed=state.time_elapsed,
        completed_in_time=state.state == SessionState.WON,
    )
