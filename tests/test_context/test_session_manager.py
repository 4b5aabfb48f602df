"""
Unit tests for the Session Context Manager.
"""

import asyncio

import pytest

from navcaddy.context.session_manager import SessionContextManager
from navcaddy.models.intent import Club, Lie
from navcaddy.models.session import CourseConditions, Role
from navcaddy.models.shot import MissDirection, Shot


@pytest.fixture
def manager(now):
    return SessionContextManager(max_history=10, session_id="session-1", clock=lambda: now)


@pytest.mark.asyncio
async def test_starts_empty(manager):
    context = manager.context

    assert context.session_id == "session-1"
    assert context.current_round is None
    assert context.conversation_history == ()
    assert not manager.has_active_round()


@pytest.mark.asyncio
async def test_round_lifecycle(manager):
    await manager.update_round("r1", "Pebble Beach", starting_hole=1, starting_par=4)
    await manager.update_hole(7, 3)
    await manager.update_score(total_score=28, holes_completed=6)

    round_state = manager.get_current_round_state()
    assert round_state.course_name == "Pebble Beach"
    assert round_state.current_hole == 7
    assert round_state.current_par == 3
    assert round_state.total_score == 28
    assert manager.context.current_hole == 7
    assert manager.has_active_round()


@pytest.mark.asyncio
async def test_update_conditions(manager):
    await manager.update_round("r1", "Pebble Beach")
    conditions = CourseConditions(weather="Sunny", wind_speed=12, wind_direction="NW", temperature=68)

    await manager.update_conditions(conditions)

    assert manager.get_current_round_state().conditions == conditions


@pytest.mark.asyncio
@pytest.mark.parametrize("hole,par", [(0, 4), (19, 4), (5, 2), (5, 6)])
async def test_invalid_hole_rejected(manager, hole, par):
    await manager.update_round("r1", "Pebble Beach")
    before = manager.context

    with pytest.raises(ValueError):
        await manager.update_hole(hole, par)

    assert manager.context is before


@pytest.mark.asyncio
async def test_round_updates_need_active_round(manager):
    with pytest.raises(ValueError):
        await manager.update_hole(3, 4)
    with pytest.raises(ValueError):
        await manager.update_score(10, 2)

    assert manager.context.current_round is None


@pytest.mark.asyncio
async def test_invalid_round_rejected(manager):
    with pytest.raises(ValueError):
        await manager.update_round("r1", "Pebble Beach", starting_hole=19)
    assert not manager.has_active_round()


@pytest.mark.asyncio
async def test_conversation_turn_pairs(manager, now):
    await manager.add_conversation_turn("what club?", "Try the 7-iron.")

    history = manager.get_recent_conversation()
    assert [t.role for t in history] == [Role.USER, Role.ASSISTANT]
    assert history[0].timestamp == now
    assert history[1].timestamp > history[0].timestamp


@pytest.mark.asyncio
@pytest.mark.parametrize("turns", [1, 3, 5, 6, 12])
async def test_history_bounded(manager, turns):
    """Test that N exchanges keep min(2N, 10) turns, newest last."""
    for i in range(turns):
        await manager.add_conversation_turn(f"question {i}", f"answer {i}")

    history = manager.get_recent_conversation()

    assert len(history) == min(2 * turns, 10)
    assert history[-1].content == f"answer {turns - 1}"
    assert history[0].role == Role.USER


@pytest.mark.asyncio
async def test_recent_conversation_count(manager):
    for i in range(3):
        await manager.add_conversation_turn(f"question {i}", f"answer {i}")

    recent = manager.get_recent_conversation(2)

    assert [t.content for t in recent] == ["question 2", "answer 2"]
    assert manager.get_recent_conversation(0) == ()


@pytest.mark.asyncio
async def test_add_single_turn(manager, now):
    await manager.add_turn(Role.ASSISTANT, "Welcome back.")

    history = manager.get_recent_conversation()

    assert len(history) == 1
    assert history[0].role == Role.ASSISTANT
    assert history[0].content == "Welcome back."
    assert history[0].timestamp == now

    with pytest.raises(ValueError):
        await manager.add_turn(Role.USER, "  ")
    assert len(manager.get_recent_conversation()) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("user,assistant", [("", "ok"), ("   ", "ok"), ("hi", "")])
async def test_blank_turn_rejected(manager, user, assistant):
    with pytest.raises(ValueError):
        await manager.add_conversation_turn(user, assistant)
    assert manager.get_recent_conversation() == ()


@pytest.mark.asyncio
async def test_concurrent_turns_keep_pairs(manager):
    await asyncio.gather(*(
        manager.add_conversation_turn(f"question {i}", f"answer {i}")
        for i in range(20)
    ))

    history = manager.get_recent_conversation()

    assert len(history) == 10
    for user_turn, assistant_turn in zip(history[::2], history[1::2]):
        assert user_turn.role == Role.USER
        assert assistant_turn.role == Role.ASSISTANT
        assert user_turn.content.split()[-1] == assistant_turn.content.split()[-1]


@pytest.mark.asyncio
async def test_record_shot_and_recommendation(manager):
    shot = Shot(club=Club.parse("7i"), lie=Lie.FAIRWAY, miss_direction=MissDirection.PUSH)

    await manager.record_shot(shot)
    await manager.record_recommendation("Aim left of the pin")

    assert manager.context.last_shot == shot
    assert manager.context.last_recommendation == "Aim left of the pin"

    with pytest.raises(ValueError):
        await manager.record_recommendation("  ")


@pytest.mark.asyncio
async def test_clear_history_keeps_round(manager):
    await manager.update_round("r1", "Pebble Beach")
    await manager.add_conversation_turn("hello", "Hi there")

    await manager.clear_conversation_history()

    assert manager.get_recent_conversation() == ()
    assert manager.has_active_round()


@pytest.mark.asyncio
async def test_clear_session_keeps_id(manager):
    await manager.update_round("r1", "Pebble Beach")
    await manager.add_conversation_turn("hello", "Hi there")

    await manager.clear_session()

    assert manager.context.session_id == "session-1"
    assert manager.context.current_round is None
    assert manager.context.conversation_history == ()


@pytest.mark.asyncio
async def test_end_round_clears_context(manager):
    await manager.update_round("r1", "Pebble Beach")
    await manager.record_recommendation("Play safe")

    await manager.end_round()

    assert not manager.has_active_round()
    assert manager.context.last_recommendation is None


@pytest.mark.asyncio
async def test_subscribe_and_unsubscribe(manager):
    seen = []
    unsubscribe = manager.subscribe(seen.append)

    await manager.update_round("r1", "Pebble Beach")
    unsubscribe()
    await manager.update_hole(2, 5)

    assert len(seen) == 1
    assert seen[0].current_round.round_id == "r1"


@pytest.mark.asyncio
async def test_failing_listener_does_not_block_update(manager):
    def broken(context):
        raise RuntimeError("listener bug")

    manager.subscribe(broken)

    await manager.update_round("r1", "Pebble Beach")

    assert manager.has_active_round()


@pytest.mark.asyncio
async def test_updates_stream(manager):
    stream = manager.updates()

    first = await stream.__anext__()
    assert first.current_round is None

    await manager.update_round("r1", "Pebble Beach")
    second = await stream.__anext__()
    assert second.current_round.course_name == "Pebble Beach"

    await stream.aclose()


def test_max_history_validated():
    with pytest.raises(ValueError):
        SessionContextManager(max_history=1)
