import pytest

from foodhub.domain.status import (
    FLOW,
    OrderStatus as S,
    allowed_next,
    can_transition,
    derive_overall_status,
)


def test_each_status_moves_one_step_forward_or_cancels():
    for current, following in zip(FLOW, FLOW[1:]):
        assert allowed_next(current) == {following, S.CANCELLED}


def test_terminal_states_have_no_exits():
    assert allowed_next(S.DELIVERED) == frozenset()
    assert allowed_next(S.CANCELLED) == frozenset()


@pytest.mark.parametrize(
    "current,new",
    [
        (S.DELIVERED, S.PREPARING),
        (S.READY, S.ACCEPTED),
        (S.PENDING, S.READY),
        (S.CANCELLED, S.PENDING),
        (S.DELIVERED, S.CANCELLED),
    ],
)
def test_illegal_moves(current, new):
    assert not can_transition(current, new)


def test_overall_status_waits_for_slowest_partner():
    assert derive_overall_status([S.DELIVERED, S.PREPARING]) == S.PREPARING
    assert derive_overall_status(["on_the_way", "accepted", "ready"]) == S.ACCEPTED


def test_overall_status_edges():
    assert derive_overall_status([S.DELIVERED, S.DELIVERED]) == S.DELIVERED
    assert derive_overall_status([S.CANCELLED, S.CANCELLED]) == S.CANCELLED
    assert derive_overall_status([S.PENDING, S.PENDING]) == S.PENDING
    # anulowany partner nie blokuje reszty
    assert derive_overall_status([S.CANCELLED, S.DELIVERED]) == S.DELIVERED
    assert derive_overall_status([S.CANCELLED, S.PENDING]) == S.PENDING
    assert derive_overall_status([S.PENDING, S.DELIVERED]) == S.PENDING
