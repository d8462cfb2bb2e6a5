from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Future

import pytest

from syncview.errors import StreamOperationFailure
from syncview.simulated import SimulatedStream
from syncview.streams import ReadyState, StreamRegistry
from syncview.transport import TransportController


class RaisingStream:
    def __init__(self, src: str) -> None:
        self.src = src
        self.ready_state = ReadyState.HAVE_ENOUGH_DATA
        self.duration = 100.0
        self._position = 0.0

    @property
    def current_time(self) -> float:
        return self._position

    @current_time.setter
    def current_time(self, value: float) -> None:
        raise RuntimeError("seek boom")

    def play(self) -> None:
        raise RuntimeError("play boom")

    def pause(self) -> None:
        raise RuntimeError("pause boom")


class CoroutineStream(SimulatedStream):
    def play(self):  # type: ignore[override]
        async def rejected() -> None:
            raise RuntimeError("autoplay blocked")

        self.play_requests += 1
        return rejected()


class FakeFullscreen:
    def __init__(self, *, fail: bool = False, active: bool = False) -> None:
        self.fail = fail
        self.active = active
        self.requests = 0
        self.exits = 0

    def request_fullscreen(self) -> Future[None]:
        self.requests += 1
        result: Future[None] = Future()
        if self.fail:
            result.set_exception(RuntimeError("denied"))
        else:
            self.active = True
            result.set_result(None)
        return result

    def exit_fullscreen(self) -> None:
        self.exits += 1
        self.active = False

    def is_fullscreen_active(self) -> bool:
        return self.active


def _controller(*streams, duration: float = 100.0, **kwargs) -> TransportController:
    registry = StreamRegistry()
    for stream in streams:
        registry.register(stream)
    controller = TransportController(registry, **kwargs)
    controller.set_duration(duration)
    return controller


def test_play_skips_streams_below_threshold() -> None:
    ready = SimulatedStream("a.mp4", duration=100.0)
    loading = SimulatedStream("b.mp4", duration=100.0, ready_state=ReadyState.HAVE_METADATA)
    also_ready = SimulatedStream("c.mp4", duration=100.0, ready_state=ReadyState.HAVE_CURRENT_DATA)
    controller = _controller(ready, loading, also_ready)
    controller.play()
    assert ready.play_requests == 1
    assert loading.play_requests == 0
    assert also_ready.play_requests == 1
    assert controller.is_playing


def test_play_with_no_ready_streams_is_still_optimistic() -> None:
    loading = SimulatedStream("b.mp4", duration=100.0, ready_state=ReadyState.HAVE_NOTHING)
    controller = _controller(loading)
    controller.play()
    assert controller.is_playing


def test_play_failure_is_isolated_and_reported(caplog) -> None:
    broken = SimulatedStream("broken.mp4", duration=100.0, fail_play=True)
    raising = RaisingStream("raising.mp4")
    good = SimulatedStream("good.mp4", duration=100.0)
    controller = _controller(broken, raising, good)
    failures: list[StreamOperationFailure] = []
    controller.add_failure_listener(failures.append)
    with caplog.at_level(logging.ERROR, logger="syncview"):
        controller.play()
    assert good.play_requests == 1
    assert not good.paused
    assert controller.is_playing
    assert [failure.operation for failure in failures] == ["play", "play"]
    assert {failure.stream for failure in failures} == {broken, raising}
    assert "broken.mp4" in caplog.text


def test_play_observes_rejected_coroutine_on_running_loop() -> None:
    stream = CoroutineStream("async.mp4", duration=100.0)
    failures: list[StreamOperationFailure] = []

    async def scenario() -> None:
        controller = _controller(stream)
        controller.add_failure_listener(failures.append)
        controller.play()
        assert controller.is_playing
        await asyncio.sleep(0)
        await asyncio.sleep(0)

    asyncio.run(scenario())
    assert len(failures) == 1
    assert "autoplay blocked" in str(failures[0])


def test_play_without_loop_drops_coroutine_result() -> None:
    stream = CoroutineStream("async.mp4", duration=100.0)
    controller = _controller(stream)
    controller.play()
    assert stream.play_requests == 1
    assert controller.is_playing


def test_pause_continues_after_exception() -> None:
    raising = RaisingStream("raising.mp4")
    good = SimulatedStream("good.mp4", duration=100.0)
    controller = _controller(raising, good)
    controller.play()
    failures: list[StreamOperationFailure] = []
    controller.add_failure_listener(failures.append)
    controller.pause()
    assert good.paused
    assert not controller.is_playing
    assert [failure.operation for failure in failures] == ["pause"]


@pytest.mark.parametrize(
    ("target", "expected"),
    [
        (50.0, 50.0),
        (-5.0, 0.0),
        (150.0, 100.0),
        (0.0, 0.0),
        (100.0, 100.0),
        (float("nan"), 0.0),
    ],
)
def test_seek_clamps_to_duration(target: float, expected: float) -> None:
    stream = SimulatedStream("a.mp4", duration=100.0)
    controller = _controller(stream)
    assert controller.seek(target) == expected
    assert controller.current_time == expected
    assert stream.current_time == expected


def test_seek_is_idempotent() -> None:
    controller = _controller(SimulatedStream("a.mp4", duration=100.0))
    first = controller.seek(250.0)
    assert controller.seek(first) == first


def test_seek_with_zero_duration_pins_to_start() -> None:
    controller = _controller(SimulatedStream("a.mp4", duration=100.0), duration=0.0)
    assert controller.seek(42.0) == 0.0


def test_seek_failure_does_not_block_other_streams() -> None:
    failing = SimulatedStream("bad.mp4", duration=100.0, fail_seek=True)
    good = SimulatedStream("good.mp4", duration=100.0)
    controller = _controller(failing, good)
    failures: list[StreamOperationFailure] = []
    controller.add_failure_listener(failures.append)
    controller.seek(30.0)
    assert good.current_time == 30.0
    assert controller.current_time == 30.0
    assert [failure.operation for failure in failures] == ["seek"]


@pytest.mark.parametrize("delta", [10.0, -10.0, -500.0, 500.0, 0.0])
def test_skip_time_matches_seek(delta: float) -> None:
    controller = _controller(SimulatedStream("a.mp4", duration=100.0))
    controller.seek(40.0)
    expected = max(0.0, min(40.0 + delta, 100.0))
    assert controller.skip_time(delta) == expected


def test_skip_to_hour_and_go_to_time() -> None:
    controller = _controller(SimulatedStream("a.mp4", duration=3 * 3600.0), duration=3 * 3600.0)
    assert controller.skip_to_hour(2) == 7200.0
    assert controller.skip_to_hour(5) == 3 * 3600.0
    assert controller.go_to_time(1, 2, 3) == 3723.0


def test_stop_pauses_and_rewinds() -> None:
    stream = SimulatedStream("a.mp4", duration=100.0)
    controller = _controller(stream)
    controller.play()
    controller.seek(60.0)
    controller.stop()
    assert not controller.is_playing
    assert stream.paused
    assert controller.current_time == 0.0


def test_toggle_play_switches_state() -> None:
    stream = SimulatedStream("a.mp4", duration=100.0)
    controller = _controller(stream)
    controller.toggle_play()
    assert controller.is_playing
    controller.toggle_play()
    assert not controller.is_playing
    assert stream.paused


def test_toggle_fullscreen_flips_even_when_request_fails(caplog) -> None:
    host = FakeFullscreen(fail=True)
    controller = _controller(fullscreen=host)
    with caplog.at_level(logging.ERROR, logger="syncview"):
        controller.toggle_fullscreen()
    assert controller.is_fullscreen
    assert host.requests == 1
    assert "denied" in caplog.text


def test_toggle_fullscreen_exits_only_when_active() -> None:
    host = FakeFullscreen()
    controller = _controller(fullscreen=host)
    controller.toggle_fullscreen()
    assert host.active
    controller.toggle_fullscreen()
    assert not controller.is_fullscreen
    assert host.exits == 1

    controller.state.is_fullscreen = True
    controller.toggle_fullscreen()
    assert host.exits == 1
    assert not controller.is_fullscreen


def test_toggle_fullscreen_without_host() -> None:
    controller = _controller()
    controller.toggle_fullscreen()
    assert controller.is_fullscreen


def test_direct_setters_do_not_clamp() -> None:
    controller = _controller(duration=10.0)
    controller.set_current_time(25.0)
    assert controller.current_time == 25.0
    controller.set_duration(-1.0)
    assert controller.duration == -1.0


def test_volume_and_mute_fan_out() -> None:
    a = SimulatedStream("a.mp4", duration=100.0)
    b = SimulatedStream("b.mp4", duration=100.0)
    controller = _controller(a, b)
    controller.set_volume(1.5)
    assert a.volume == b.volume == 1.0
    controller.set_volume(0.0)
    assert controller.state.is_muted
    controller.set_volume(0.4)
    assert not controller.state.is_muted
    controller.toggle_mute()
    assert a.muted and b.muted
    assert controller.state.is_muted


def test_resync_only_touches_drifting_streams() -> None:
    close = SimulatedStream("close.mp4", duration=100.0)
    far = SimulatedStream("far.mp4", duration=100.0)
    controller = _controller(close, far)
    controller.seek(20.0)
    close.current_time = 20.3
    far.current_time = 25.0
    assert controller.resync(0.5) == 1
    assert close.current_time == 20.3
    assert far.current_time == 20.0


def test_fullscreen_rejection_is_logged_not_reported(caplog) -> None:
    host = FakeFullscreen(fail=True)
    controller = _controller(SimulatedStream("a.mp4", duration=100.0), fullscreen=host)
    failures: list[StreamOperationFailure] = []
    controller.add_failure_listener(failures.append)
    with caplog.at_level(logging.ERROR, logger="syncview"):
        controller.toggle_fullscreen()
    assert failures == []
    assert "Fullscreen request failed: denied" in caplog.text


def test_time_source_skips_unready_and_rejected_streams() -> None:
    loading = SimulatedStream("a.mp4", duration=100.0, ready_state=ReadyState.HAVE_NOTHING)
    broken = SimulatedStream("b.mp4", duration=100.0, fail_play=True)
    good = SimulatedStream("c.mp4", duration=100.0)
    controller = _controller(loading, broken, good)
    assert controller.time_source() is broken
    controller.play()
    assert controller.time_source() is good
    broken.fail_play = False
    controller.play()
    assert controller.time_source() is broken


def test_time_source_is_none_without_playable_streams() -> None:
    loading = SimulatedStream("a.mp4", duration=100.0, ready_state=ReadyState.HAVE_METADATA)
    assert _controller(loading).time_source() is None
