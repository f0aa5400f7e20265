from __future__ import annotations

from datetime import timedelta

from exam_app.core.services.countdown_timer import CountdownTimer, format_duration
from tests.conftest import FakeClock


def test_remaining_time_follows_the_deadline_not_the_ticks():
    clock = FakeClock()
    timer = CountdownTimer(clock() + timedelta(seconds=120), clock=clock)
    timer.start()

    clock.advance(10)
    assert timer.tick() == 110

    # A long stall between ticks (sleep, slow UI) must not leave time on the clock.
    clock.advance(95)
    assert timer.tick() == 15


def test_expiry_fires_once():
    clock = FakeClock()
    fired: list[int] = []
    timer = CountdownTimer(clock() + timedelta(seconds=30), lambda: fired.append(1), clock=clock)
    timer.start()

    clock.advance(29)
    timer.tick()
    assert fired == []

    clock.advance(5)
    assert timer.tick() == 0.0
    timer.tick()
    assert fired == [1]
    assert timer.has_expired()
    assert not timer.is_running()


def test_stopped_timer_does_not_fire_but_deadline_keeps_moving():
    clock = FakeClock()
    fired: list[int] = []
    timer = CountdownTimer(clock() + timedelta(seconds=60), lambda: fired.append(1), clock=clock)
    timer.start()
    timer.stop()

    clock.advance(20)
    assert timer.remaining_seconds() == 40

    clock.advance(60)
    timer.tick()
    assert fired == []
    assert timer.remaining_seconds() == 0.0


def test_already_past_deadline_fires_on_first_tick():
    clock = FakeClock()
    fired: list[int] = []
    timer = CountdownTimer(clock() - timedelta(seconds=5), lambda: fired.append(1), clock=clock)
    timer.start()
    timer.tick()
    assert fired == [1]


def test_fraction_remaining():
    clock = FakeClock()
    timer = CountdownTimer(clock() + timedelta(seconds=100), total_seconds=200, clock=clock)
    assert timer.fraction_remaining() == 0.5
    clock.advance(150)
    assert timer.fraction_remaining() == 0.0

    no_total = CountdownTimer(clock() + timedelta(seconds=100), clock=clock)
    assert no_total.fraction_remaining() == 0.0


def test_format_duration():
    assert format_duration(0) == "0:00"
    assert format_duration(-3) == "0:00"
    assert format_duration(65) == "1:05"
    assert format_duration(59.2) == "1:00"
    assert format_duration(3661) == "1:01:01"
