import asyncio

import pytest

from goldmaze.engine.game_loop import GameLoopState, SessionClock
from goldmaze.engine.traversal import DIRECTIONS, SessionState, apply_move, start_session

from conftest import make_map


async def _wait(clock, timeout=2.0):
    await asyncio.wait_for(clock.wait_stopped(), timeout)


@pytest.mark.asyncio
async def test_clock_runs_session_to_timeout():
    state = start_session(make_map(time_limit=3))
    seen = []

    async def on_tick(result):
        seen.append((result.state.time_remaining, result.finished))

    clock = SessionClock(state, tick_seconds=0.01, on_tick=on_tick)
    clock.start()
    await _wait(clock)

    assert state.state == SessionState.TIMED_OUT
    assert state.time_remaining == 0
    assert clock.current_tick == 3
    assert seen == [(2, False), (1, False), (0, True)]
    assert clock.state == GameLoopState.STOPPED


@pytest.mark.asyncio
async def test_stop_cancels_pending_tick():
    state = start_session(make_map(time_limit=30))
    clock = SessionClock(state, tick_seconds=5.0)
    clock.start()
    await asyncio.sleep(0)

    clock.stop()
    await _wait(clock)

    assert state.time_remaining == 30
    assert clock.current_tick == 0
    assert not clock.running


@pytest.mark.asyncio
async def test_no_tick_after_win_even_without_stop():
    map_def = make_map(
        ["#####", "#.GE#", "#####"],
        start=(1, 1), exit=(3, 1), time_limit=10,
    )
    state = start_session(map_def)
    clock = SessionClock(state, tick_seconds=0.02)
    clock.start()

    # Win before the first tick is due
    apply_move(state, *DIRECTIONS["right"])
    apply_move(state, *DIRECTIONS["right"])
    assert state.state == SessionState.WON

    await _wait(clock)
    assert state.time_remaining == 10
    assert clock.current_tick == 0


@pytest.mark.asyncio
async def test_clock_cannot_start_twice():
    clock = SessionClock(start_session(make_map()), tick_seconds=5.0)
    clock.start()
    with pytest.raises(RuntimeError):
        clock.start()
    clock.stop()
    await _wait(clock)


@pytest.mark.asyncio
async def test_failing_callback_does_not_stop_the_clock():
    state = start_session(make_map(time_limit=2))

    async def on_tick(result):
        raise RuntimeError("boom")

    clock = SessionClock(state, tick_seconds=0.01, on_tick=on_tick)
    clock.start()
    await _wait(clock)

    assert state.state == SessionState.TIMED_OUT


@pytest.mark.asyncio
async def test_tick_history_keeps_only_the_latest_ticks():
    state = start_session(make_map(time_limit=5))
    clock = SessionClock(state, tick_seconds=0.01, max_history=2)
    clock.start()
    await _wait(clock)

    assert clock.current_tick == 5
    assert [s.tick_number for s in clock.tick_history] == [4, 5]
