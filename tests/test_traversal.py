import pytest

from goldmaze.engine.grid import CellKind, Position
from goldmaze.engine.traversal import (
    DIRECTIONS, Intent, SessionState, TRANSITIONS, apply, apply_arm_hammer, apply_break_wall,
    apply_disarm_hammer, apply_move, apply_tick, apply_toggle_hammer, finalize_to_score_record,
    start_session,
)
from goldmaze.errors import SessionNotFinished
from goldmaze.world.maps import Difficulty

from conftest import make_map

UP, DOWN, LEFT, RIGHT = DIRECTIONS["up"], DIRECTIONS["down"], DIRECTIONS["left"], DIRECTIONS["right"]


def walk(state, *steps):
    for dx, dy in steps:
        apply_move(state, dx, dy)
    return state


def collect_both_gold(state):
    # (1,1) -> (1,3) gold -> back -> (3,1) gold -> (5,2), one step above the exit
    return walk(state, DOWN, DOWN, UP, UP, RIGHT, RIGHT, RIGHT, RIGHT, DOWN)


# ============================================================================
# SESSION START
# ============================================================================

def test_start_session_initial_state(two_gold_map):
    state = start_session(two_gold_map, character="ninja", player_name="Alice")

    assert state.state == SessionState.ACTIVE
    assert state.outcome is None
    assert state.player_position == two_gold_map.start
    assert state.gold_collected == 0
    assert state.time_remaining == 60
    assert state.hammer_charges == 0
    assert not state.hammer_armed
    assert state.grid is not two_gold_map.grid
    assert state.grid == two_gold_map.grid


def test_hard_map_starts_with_three_hammers(hard_map):
    assert start_session(hard_map).hammer_charges == 3


def test_hammer_override(two_gold_map, hard_map):
    assert start_session(two_gold_map, hammer_charges_override=2).hammer_charges == 2
    assert start_session(hard_map, hammer_charges_override=0).hammer_charges == 0


def test_play_never_mutates_the_map(two_gold_map):
    before = two_gold_map.grid.to_rows()
    collect_both_gold(start_session(two_gold_map))
    assert two_gold_map.grid.to_rows() == before


# ============================================================================
# MOVE
# ============================================================================

@pytest.mark.parametrize("step", [UP, LEFT])
def test_moving_into_wall_keeps_position(two_gold_map, step):
    state = start_session(two_gold_map)
    result = apply(state, Intent.move(*step))

    assert not result.changed
    assert state.player_position == Position(1, 1)


def test_moving_out_of_bounds_is_a_no_op():
    open_edge = [
        "#####",
        "#....",
        "#.G.#",
        "#..E#",
        "#####",
    ]
    state = start_session(make_map(open_edge, start=(1, 1), exit=(3, 3)))
    walk(state, RIGHT, RIGHT, RIGHT)
    assert state.player_position == Position(4, 1)

    apply_move(state, *RIGHT)
    assert state.player_position == Position(4, 1)


@pytest.mark.parametrize("step", [(1, 1), (2, 0), (0, 0), (-1, -1)])
def test_non_unit_moves_are_ignored(two_gold_map, step):
    state = start_session(two_gold_map)
    assert not apply(state, Intent.move(*step)).changed
    assert state.player_position == Position(1, 1)


def test_picking_up_gold_clears_the_cell(two_gold_map):
    state = walk(start_session(two_gold_map), RIGHT, RIGHT)

    assert state.player_position == Position(3, 1)
    assert state.gold_collected == 1
    assert state.grid.get(Position(3, 1)) == CellKind.EMPTY

    # Walking back over the same cell does not count twice
    walk(state, LEFT, RIGHT)
    assert state.gold_collected == 1


def test_collect_all_gold_then_exit_wins(two_gold_map):
    state = collect_both_gold(start_session(two_gold_map))
    assert state.gold_collected == 2
    assert state.is_active

    result = apply(state, Intent.move(*DOWN))
    assert result.finished
    assert state.state == SessionState.WON
    assert state.outcome == SessionState.WON
    assert state.player_position == two_gold_map.exit


def test_exit_with_missing_gold_stays_active(two_gold_map):
    state = walk(start_session(two_gold_map), RIGHT, RIGHT, RIGHT, RIGHT, DOWN, DOWN)

    assert state.player_position == two_gold_map.exit
    assert state.gold_collected == 1
    assert state.state == SessionState.ACTIVE


def test_win_after_stepping_off_and_back_on_exit(two_gold_map):
    state = walk(start_session(two_gold_map), RIGHT, RIGHT, RIGHT, RIGHT, DOWN, DOWN)
    assert state.is_active

    # Fetch the second gold piece and come back
    walk(state, UP, UP, LEFT, LEFT, LEFT, LEFT, DOWN, DOWN)
    assert state.gold_collected == 2
    walk(state, UP, UP, RIGHT, RIGHT, RIGHT, RIGHT, DOWN)
    assert state.is_active
    apply_move(state, *DOWN)
    assert state.state == SessionState.WON


# ============================================================================
# TICK
# ============================================================================

def test_tick_counts_down(two_gold_map):
    state = start_session(two_gold_map)
    apply_tick(state)
    assert state.time_remaining == 59
    assert state.time_elapsed == 1


def test_last_tick_times_out_and_later_ticks_do_nothing():
    state = start_session(make_map(time_limit=2))
    apply_tick(state)
    assert state.time_remaining == 1

    result = apply(state, Intent.tick())
    assert result.finished
    assert state.state == SessionState.TIMED_OUT
    assert state.time_remaining == 0

    for _ in range(3):
        assert not apply(state, Intent.tick()).changed
    assert state.time_remaining == 0


def test_terminal_state_ignores_every_intent(two_gold_map):
    state = collect_both_gold(start_session(two_gold_map, hammer_charges_override=1))
    apply_move(state, *DOWN)
    assert state.state == SessionState.WON
    snapshot = state.to_dict()

    for intent in [Intent.tick(), Intent.move(*UP), Intent.arm_hammer(),
                   Intent.toggle_hammer(), Intent.break_wall(Position(3, 2))]:
        assert not apply(state, intent).changed
    assert state.to_dict() == snapshot


def test_transition_table_only_covers_active():
    assert {state for state, _ in TRANSITIONS} == {SessionState.ACTIVE}


# ============================================================================
# HAMMER
# ============================================================================

def test_arm_hammer_without_charges_stays_disarmed(two_gold_map):
    state = apply_arm_hammer(start_session(two_gold_map))
    assert not state.hammer_armed
    assert not apply_toggle_hammer(state).hammer_armed


def test_arm_disarm_and_toggle(hard_map):
    state = start_session(hard_map)
    assert apply_arm_hammer(state).hammer_armed
    assert not apply_disarm_hammer(state).hammer_armed
    assert apply_toggle_hammer(state).hammer_armed
    assert not apply_toggle_hammer(state).hammer_armed


def test_break_interior_wall(hard_map):
    state = apply_arm_hammer(start_session(hard_map))
    apply_break_wall(state, Position(3, 2))

    assert state.grid.get(Position(3, 2)) == CellKind.EMPTY
    assert state.hammer_charges == 2
    assert state.hammers_used == 1
    assert state.hammer_armed
    assert hard_map.grid.get(Position(3, 2)) == CellKind.WALL


@pytest.mark.parametrize("pos", [Position(0, 0), Position(0, 2), Position(6, 3), Position(3, 4)])
def test_break_border_wall_is_a_no_op(hard_map, pos):
    state = apply_arm_hammer(start_session(hard_map))
    result = apply(state, Intent.break_wall(pos))

    assert not result.changed
    assert state.grid.get(pos) == CellKind.WALL
    assert state.hammer_charges == 3


def test_break_requires_armed_hammer(hard_map):
    state = start_session(hard_map)
    apply_break_wall(state, Position(3, 2))
    assert state.grid.get(Position(3, 2)) == CellKind.WALL
    assert state.hammer_charges == 3


@pytest.mark.parametrize("pos", [Position(2, 1), Position(3, 1), Position(40, 40)])
def test_break_non_wall_or_outside_does_not_consume(hard_map, pos):
    state = apply_arm_hammer(start_session(hard_map))
    assert not apply(state, Intent.break_wall(pos)).changed
    assert state.hammer_charges == 3


def test_last_charge_disarms(hard_map):
    state = apply_arm_hammer(start_session(hard_map))
    for pos in [Position(2, 2), Position(3, 2), Position(4, 2)]:
        apply_break_wall(state, pos)

    assert state.hammer_charges == 0
    assert not state.hammer_armed
    # Nothing left to break with
    apply_break_wall(state, Position(4, 3))
    assert state.grid.get(Position(4, 3)) == CellKind.WALL


def test_broken_wall_opens_a_shortcut(hard_map):
    state = apply_arm_hammer(start_session(hard_map))
    apply_break_wall(state, Position(1, 2))  # already floor, no-op
    apply_break_wall(state, Position(4, 3))
    walk(state, DOWN, DOWN, RIGHT, RIGHT, RIGHT)
    assert state.player_position == Position(4, 3)


# ============================================================================
# FINALIZE
# ============================================================================

def test_finalize_requires_terminal_state(two_gold_map):
    with pytest.raises(SessionNotFinished):
        finalize_to_score_record(start_session(two_gold_map), "Alice")


def test_scenario_win_at_tick_40(two_gold_map):
    state = collect_both_gold(start_session(two_gold_map, character="explorer"))
    for _ in range(40):
        apply_tick(state)
    apply_move(state, *DOWN)

    record = finalize_to_score_record(state, "Alice")
    assert record.map_id == "m1"
    assert record.player_name == "Alice"
    assert record.character == "explorer"
    assert record.gold_score == 2
    assert record.time_completed == 40
    assert record.completed_in_time is True


def test_scenario_timeout_with_one_gold(two_gold_map):
    state = walk(start_session(two_gold_map, player_name="Bob"), RIGHT, RIGHT)
    for _ in range(60):
        apply_tick(state)

    assert state.state == SessionState.TIMED_OUT
    record = finalize_to_score_record(state)
    assert record.player_name == "Bob"
    assert record.gold_score == 1
    assert record.time_completed == 60
    assert record.completed_in_time is False


def test_finalize_gives_unique_ids(two_gold_map):
    state = start_session(make_map(time_limit=1))
    apply_tick(state)
    first = finalize_to_score_record(state, "A")
    second = finalize_to_score_record(state, "A")
    assert first.id != second.id


def test_hard_difficulty_enum_drives_charges():
    assert start_session(make_map(difficulty=Difficulty.MEDIUM)).hammer_charges == 0
