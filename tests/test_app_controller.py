import copy
import os
import tempfile

import pytest

from config import DEFAULT_CONFIG
from conftest import FakeSampler
from controller.app_controller import AppController
from controller.thread_manager import CancellationToken
from main import main, setup_logging
from model.validation import FanMode


@pytest.fixture
def config(hwmon_base, keyboard_files):
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    cfg["hwmon"]["base_path"] = str(hwmon_base)
    cfg["keyboard"]["color_path"] = str(keyboard_files["color"])
    cfg["keyboard"]["brightness_path"] = str(keyboard_files["brightness"])
    cfg["fans"]["reapply_interval"] = 0.05
    cfg["fans"]["apply_gap"] = 0
    cfg["better_auto"]["tick"] = 0.05
    return cfg


def test_wiring_and_cleanup(config, hwmon_dir):
    token = CancellationToken()
    controller = AppController(config, shutdown_token=token, sampler=FakeSampler())

    assert controller.handle_command("SET_FAN_MODE MAX") == "OK"
    assert controller.fan_modes.watchdog_mode is FanMode.MAX
    assert controller.handle_command("GET_FAN_SPEED 1") == "2300"
    assert controller.manual_curve.levels_to_rpms(8) == {1: 5800, 2: 6100}

    controller.cleanup()
    assert token.cancelled
    assert not controller.fan_modes.has_watchdog()


def test_setup_logging_survives_unwritable_file(tmp_path):
    setup_logging("DEBUG", str(tmp_path / "missing" / "victus.log"))


def test_main_exits_1_when_socket_cannot_bind(config, monkeypatch):
    with tempfile.TemporaryDirectory(prefix="vc") as short:
        blocker = os.path.join(short, "file")
        with open(blocker, "w"):
            pass
        config["socket"]["path"] = os.path.join(blocker, "backend.sock")
        config["logging"]["file"] = None

        monkeypatch.setattr("main.load_config", lambda path=None: config)
        monkeypatch.setattr("main.signal.signal", lambda *a: None)
        monkeypatch.setattr("controller.app_controller.PsutilSampler",
                            lambda *a, **kw: FakeSampler())
        assert main([]) == 1
