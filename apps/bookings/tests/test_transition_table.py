"""Unit tests for the in-memory transition table."""

from __future__ import annotations

import pytest

from apps.bookings.domain.errors import InvalidTransition, UnknownAutoAction
from apps.bookings.domain.state_machine import (
    DEFAULT_TRANSITIONS,
    ActorType,
    AutoAction,
    BookingStatus,
    TransitionTable,
)


def test_default_table_loads() -> None:
    table = TransitionTable.from_rows(DEFAULT_TRANSITIONS)

    rule = table.get(BookingStatus.PENDING, BookingStatus.CANCELLED)
    assert rule is not None
    assert rule.permits(ActorType.USER)
    assert rule.requires_reason
    assert AutoAction.NOTIFY_USER in rule.auto_actions

    assert table.get(BookingStatus.CONFIRMED, BookingStatus.PENDING) is None


def test_only_system_records_payment_of_pending_booking() -> None:
    table = TransitionTable.from_rows(DEFAULT_TRANSITIONS)
    rule = table.get(BookingStatus.PENDING, BookingStatus.PAID)

    assert rule.permits(ActorType.SYSTEM)
    assert not rule.permits(ActorType.ADMIN)
    assert not rule.permits(ActorType.USER)


def test_terminal_statuses_have_no_way_out_except_completed_refund() -> None:
    table = TransitionTable.from_rows(DEFAULT_TRANSITIONS)

    for status in (BookingStatus.CANCELLED, BookingStatus.REFUNDED, BookingStatus.NO_SHOW):
        for actor in ActorType:
            assert table.targets_for(status, actor) == []
    assert [r.to_status for r in table.targets_for(BookingStatus.COMPLETED, ActorType.ADMIN)] == [
        BookingStatus.REFUNDED
    ]


def test_targets_for_filters_by_actor() -> None:
    table = TransitionTable.from_rows(DEFAULT_TRANSITIONS)

    user_targets = [r.to_status for r in table.targets_for(BookingStatus.PENDING, ActorType.USER)]
    system_targets = [r.to_status for r in table.targets_for(BookingStatus.PENDING, ActorType.SYSTEM)]

    assert user_targets == [BookingStatus.CANCELLED]
    assert system_targets == [BookingStatus.CANCELLED, BookingStatus.CONFIRMED, BookingStatus.PAID]


def test_unknown_auto_action_fails_at_load() -> None:
    rows = [
        {
            "from_status": "pending",
            "to_status": "confirmed",
            "allowed_actors": ["admin"],
            "auto_actions": ["send_fax"],
        }
    ]

    with pytest.raises(UnknownAutoAction):
        TransitionTable.from_rows(rows)


def test_unknown_status_or_actor_is_an_invalid_transition() -> None:
    with pytest.raises(InvalidTransition):
        TransitionTable.from_rows([{"from_status": "pending", "to_status": "archived", "allowed_actors": []}])
    with pytest.raises(InvalidTransition):
        TransitionTable.from_rows([{"from_status": "pending", "to_status": "paid", "allowed_actors": ["robot"]}])


def test_terminal_flags() -> None:
    assert BookingStatus.COMPLETED.is_terminal
    assert BookingStatus.NO_SHOW.is_terminal
    assert not BookingStatus.PAID.is_terminal
    assert BookingStatus.PAID.timestamp_field == "paid_at"
    assert BookingStatus.PENDING.timestamp_field is None
