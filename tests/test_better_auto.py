import pytest

from controller.better_auto import BetterAutoController, threshold_step
from controller.thread_manager import CancellationToken
from model.sysfs import HardwareWriteError

TEMPS = [50, 60, 70, 75, 80, 85, 90]
USAGE = [20, 35, 50, 65, 75, 85, 95]


@pytest.fixture
def controller(recording_fans, sampler, curve, clock):
    return BetterAutoController(recording_fans, sampler, curve, TEMPS, USAGE,
                                tick_interval=0.01, reapply_interval=90.0, clock=clock)


@pytest.mark.parametrize("value, expected", [
    (None, 0), (10, 0), (50, 1), (59.9, 1), (60, 2), (90, 7), (120, 7),
])
def test_threshold_step(value, expected):
    assert threshold_step(value, TEMPS) == expected


def test_target_step_takes_max(controller):
    assert controller.target_step(55, 70) == 4
    assert controller.target_step(None, 0) == 0
    assert controller.target_step(92, 10) == 7


def test_step_to_level_is_clamped(controller):
    assert controller.step_to_level(0) == 1
    assert controller.step_to_level(7) == 8
    assert controller.step_to_level(20) == 8


def test_constant_step_writes_once(controller, recording_fans, clock):
    assert controller.tick() is True
    clock.advance(2)
    assert controller.tick() is False
    clock.advance(2)
    assert controller.tick() is False
    assert recording_fans.levels == [1]


def test_reapply_after_interval(controller, recording_fans, clock):
    controller.tick()
    clock.advance(90)
    assert controller.tick() is True
    assert recording_fans.levels == [1, 1]


def test_step_change_writes(controller, recording_fans, sampler, clock):
    controller.tick()
    sampler.temperature = 72
    clock.advance(2)
    assert controller.tick() is True
    sampler.usage = 99
    clock.advance(2)
    assert controller.tick() is True
    assert recording_fans.levels == [1, 4, 8]


def test_hardware_failure_retries_next_tick(controller, recording_fans, clock):
    recording_fans.error = HardwareWriteError("Failed to write fan1_target")
    assert controller.tick() is False
    assert controller.last_step is None

    recording_fans.error = None
    clock.advance(2)
    assert controller.tick() is True
    assert recording_fans.levels == [1]


def test_sampling_failure_skips_tick(controller, recording_fans, sampler):
    sampler.error = RuntimeError("no sensors")
    assert controller.tick() is False
    assert recording_fans.levels == []


def test_reset_forces_write(controller, recording_fans):
    controller.tick()
    controller.reset()
    assert controller.tick() is True
    assert recording_fans.levels == [1, 1]


def test_cancelled_apply_is_not_recorded(controller):
    token = CancellationToken()
    token.cancel()
    assert controller.tick(token) is False
    assert controller.last_step is None


def test_run_stops_on_cancel(controller, recording_fans):
    token = CancellationToken()
    calls = []

    def before_tick():
        calls.append(1)
        if len(calls) == 3:
            token.cancel()

    controller.run(token, before_tick=before_tick)
    assert len(calls) == 3
    assert recording_fans.levels == [1]


def test_real_fans_apply_through_curve(better_auto, sampler, hwmon_dir):
    sampler.temperature = 91
    assert better_auto.tick() is True
    assert (hwmon_dir / "fan1_target").read_text() == "5800"
    assert (hwmon_dir / "fan2_target").read_text() == "6100"
