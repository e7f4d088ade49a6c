"""
Fixtures compartidas: un árbol sysfs falso en tmp_path y dobles de prueba
para el sampler, el reloj y el gestor de ventiladores.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from controller.better_auto import BetterAutoController
from controller.dispatcher import is_error
from controller.fan_mode import FanModeController
from model.fan_manager import FanManager
from model.hwmon import HwmonAccessor, HwmonLocator
from model.keyboard import KeyboardManager
from model.rpm_curve import RpmCurve
from model.sensors import ControllerSample
from model.sysfs import HardwareError

MAX_RPMS = {1: 5800, 2: 6100}


def make_hwmon_dir(path: Path, mode: str = "2") -> Path:
    path.mkdir(parents=True)
    (path / "pwm1_enable").write_text(mode + "\n")
    (path / "fan1_input").write_text("2300\n")
    (path / "fan2_input").write_text("2450\n")
    (path / "fan1_target").write_text("0\n")
    (path / "fan2_target").write_text("0\n")
    return path


@pytest.fixture
def hwmon_base(tmp_path) -> Path:
    """Base con hwmon1 y hwmon3; el activo es hwmon3."""
    base = tmp_path / "hwmon"
    make_hwmon_dir(base / "hwmon1", mode="0")
    make_hwmon_dir(base / "hwmon3")
    (base / "hwmonX").mkdir()
    return base


@pytest.fixture
def hwmon_dir(hwmon_base) -> Path:
    return hwmon_base / "hwmon3"


@pytest.fixture
def hwmon(hwmon_base) -> HwmonAccessor:
    return HwmonAccessor(str(hwmon_base), locator=HwmonLocator())


@pytest.fixture
def curve() -> RpmCurve:
    return RpmCurve(2000, MAX_RPMS, 8)


@pytest.fixture
def fans(hwmon) -> FanManager:
    return FanManager(hwmon, min_rpm=2000, max_rpms=MAX_RPMS, max_allowed_rpm=10000, apply_gap=0)


@pytest.fixture
def keyboard_files(tmp_path) -> Dict[str, Path]:
    led = tmp_path / "leds" / "hp::kbd_backlight"
    led.mkdir(parents=True)
    color = led / "multi_intensity"
    brightness = led / "brightness"
    color.write_text("255 255 255\n")
    brightness.write_text("128\n")
    return {"color": color, "brightness": brightness}


@pytest.fixture
def keyboard(keyboard_files) -> KeyboardManager:
    return KeyboardManager(str(keyboard_files["color"]), str(keyboard_files["brightness"]))


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSampler:
    """Devuelve siempre la temperatura y el uso configurados."""

    def __init__(self, temperature: Optional[float] = 40.0, usage: float = 5.0):
        self.temperature = temperature
        self.usage = usage
        self.calls = 0
        self.error: Optional[Exception] = None

    def sample(self) -> ControllerSample:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return ControllerSample(temperature=self.temperature, usage=self.usage)


class RecordingFans:
    """Sustituye a FanManager: registra los niveles aplicados."""

    def __init__(self):
        self.levels: List[int] = []
        self.error: Optional[Exception] = None

    def apply_level(self, level, curve, token=None):
        if self.error is not None:
            raise self.error
        self.levels.append(level)
        return curve.levels_to_rpms(level)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sampler() -> FakeSampler:
    return FakeSampler()


@pytest.fixture
def recording_fans() -> RecordingFans:
    return RecordingFans()


@pytest.fixture
def better_auto(fans, sampler, curve) -> BetterAutoController:
    return BetterAutoController(
        fans, sampler, curve,
        temp_thresholds=[50, 60, 70, 75, 80, 85, 90],
        usage_thresholds=[20, 35, 50, 65, 75, 85, 95],
        tick_interval=0.05,
        reapply_interval=90.0,
    )


@pytest.fixture
def fan_modes(hwmon, better_auto):
    controller = FanModeController(hwmon, better_auto, reapply_interval=30.0,
                                   stop_timeout=5.0, logger=logging.getLogger("test.fan_mode"))
    yield controller
    controller.shutdown()


def settled(read, timeout: float = 5.0):
    """
    Reintenta una lectura mientras un watchdog reescribe el mismo archivo.

    El sysfs falso en tmp_path no es atómico: entre truncar y escribir la
    lectura puede ver un archivo vacío.
    """
    deadline = time.monotonic() + timeout
    while True:
        try:
            value = read()
        except HardwareError:
            if time.monotonic() >= deadline:
                raise
        else:
            if not (isinstance(value, str) and is_error(value)) or time.monotonic() >= deadline:
                return value
        time.sleep(0.01)


def wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False
