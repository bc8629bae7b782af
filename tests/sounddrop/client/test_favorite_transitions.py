from __future__ import annotations

import pytest

from sounddrop.client.favorites import (
    TRANSITIONS,
    FavoriteEvent,
    FavoriteState,
    InvalidTransition,
    next_state,
)


@pytest.mark.parametrize(
    ("state", "event", "expected"),
    [
        (FavoriteState.IDLE, FavoriteEvent.ADD_REQUESTED, FavoriteState.PENDING_ADD),
        (FavoriteState.PENDING_ADD, FavoriteEvent.ADD_CONFIRMED, FavoriteState.CONFIRMED),
        (FavoriteState.PENDING_ADD, FavoriteEvent.ADD_FAILED, FavoriteState.IDLE),
        (FavoriteState.CONFIRMED, FavoriteEvent.REMOVE_REQUESTED, FavoriteState.PENDING_REMOVE),
        (FavoriteState.PENDING_REMOVE, FavoriteEvent.REMOVE_CONFIRMED, FavoriteState.IDLE),
        (FavoriteState.PENDING_REMOVE, FavoriteEvent.REMOVE_FAILED, FavoriteState.CONFIRMED),
        (FavoriteState.IDLE, FavoriteEvent.LOADED, FavoriteState.CONFIRMED),
    ],
)
def test_mutation_lifecycle(state, event, expected):
    assert next_state(state, event) is expected


@pytest.mark.parametrize("state", list(FavoriteState))
def test_reset_always_returns_to_idle(state):
    assert next_state(state, FavoriteEvent.RESET) is FavoriteState.IDLE


@pytest.mark.parametrize(
    "state", [FavoriteState.PENDING_ADD, FavoriteState.PENDING_REMOVE]
)
def test_server_reload_leaves_pending_states_alone(state):
    assert next_state(state, FavoriteEvent.LOADED) is state


def test_confirmed_favorite_cannot_be_added_again():
    with pytest.raises(InvalidTransition) as excinfo:
        next_state(FavoriteState.CONFIRMED, FavoriteEvent.ADD_REQUESTED)

    assert excinfo.value.state is FavoriteState.CONFIRMED
    assert excinfo.value.event is FavoriteEvent.ADD_REQUESTED


def test_idle_favorite_cannot_be_removed():
    with pytest.raises(InvalidTransition):
        next_state(FavoriteState.IDLE, FavoriteEvent.REMOVE_REQUESTED)


def test_no_transition_is_defined_for_reset():
    assert all(event is not FavoriteEvent.RESET for _, event in TRANSITIONS)
