from __future__ import annotations

from typing import Callable

from syncview.idle import ControlsAutoHide


class FakeTimer:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True

    def fire(self) -> None:
        if not self.stopped:
            self.callback()


class FakeScheduler:
    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]


def test_not_armed_while_paused() -> None:
    scheduler = FakeScheduler()
    hide = ControlsAutoHide(scheduler, delay=2.0)
    hide.pointer_moved()
    assert scheduler.timers == []
    assert hide.visible
    assert not hide.armed


def test_hides_after_delay_while_playing() -> None:
    scheduler = FakeScheduler()
    changes: list[bool] = []
    hide = ControlsAutoHide(scheduler, delay=2.0, on_change=changes.append)
    hide.set_playing(True)
    assert hide.armed
    assert scheduler.last.delay == 2.0
    scheduler.last.fire()
    assert not hide.visible
    assert changes == [False]


def test_pointer_movement_restarts_timer_and_shows_controls() -> None:
    scheduler = FakeScheduler()
    changes: list[bool] = []
    hide = ControlsAutoHide(scheduler, on_change=changes.append)
    hide.set_playing(True)
    first = scheduler.last
    first.fire()
    hide.pointer_moved()
    assert first.stopped
    assert len(scheduler.timers) == 2
    assert hide.visible
    assert changes == [False, True]


def test_pausing_cancels_timer_and_shows_controls() -> None:
    scheduler = FakeScheduler()
    hide = ControlsAutoHide(scheduler)
    hide.set_playing(True)
    timer = scheduler.last
    hide.set_playing(False)
    assert timer.stopped
    assert not hide.armed
    assert hide.visible


def test_set_playing_unchanged_is_noop() -> None:
    scheduler = FakeScheduler()
    hide = ControlsAutoHide(scheduler)
    hide.set_playing(True)
    hide.set_playing(True)
    assert len(scheduler.timers) == 1


def test_close_cancels_and_ignores_later_signals() -> None:
    scheduler = FakeScheduler()
    hide = ControlsAutoHide(scheduler)
    hide.set_playing(True)
    timer = scheduler.last
    hide.close()
    assert timer.stopped
    assert not hide.armed
    hide.pointer_moved()
    assert len(scheduler.timers) == 1
