from __future__ import annotations

import pytest

from repoprofile.deadline import Deadline


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_deadline_expires_after_budget() -> None:
    clock = FakeClock()
    deadline = Deadline.after_ms(500, clock=clock)

    assert not deadline.expired()
    assert deadline.remaining() == pytest.approx(0.5)

    clock.now = 100.6

    assert deadline.expired()
    assert deadline.remaining() == 0.0


def test_unbounded_deadline() -> None:
    deadline = Deadline(None)

    assert not deadline.expired()
    assert deadline.remaining() is None
