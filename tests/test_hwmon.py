import pytest

from conftest import make_hwmon_dir
from model.hwmon import HwmonAccessor, HwmonLocator
from model.sysfs import HardwareUnavailable


def test_highest_number_wins(hwmon_base):
    locator = HwmonLocator()
    assert locator.resolve(str(hwmon_base)) == hwmon_base / "hwmon3"


def test_resolution_is_cached(hwmon_base):
    locator = HwmonLocator()
    first = locator.resolve(str(hwmon_base))
    make_hwmon_dir(hwmon_base / "hwmon7")
    assert locator.resolve(str(hwmon_base)) == first


def test_missing_directory_is_not_cached(tmp_path):
    base = tmp_path / "missing"
    locator = HwmonLocator()
    with pytest.raises(HardwareUnavailable, match="Hwmon directory not found"):
        locator.resolve(str(base))

    make_hwmon_dir(base / "hwmon0")
    assert locator.resolve(str(base)) == base / "hwmon0"


def test_no_matching_entries(tmp_path):
    (tmp_path / "other").mkdir()
    with pytest.raises(HardwareUnavailable):
        HwmonLocator().resolve(str(tmp_path))


def test_accessor_reads_and_writes(hwmon, hwmon_dir):
    assert hwmon.read_mode() == "2"
    assert hwmon.read_fan_speed(2) == "2450"

    hwmon.write_mode("1")
    hwmon.write_fan_target(1, 3000)
    assert (hwmon_dir / "pwm1_enable").read_text() == "1"
    assert (hwmon_dir / "fan1_target").read_text() == "3000"


def test_accessor_missing_file(hwmon, hwmon_dir):
    (hwmon_dir / "fan2_input").unlink()
    with pytest.raises(HardwareUnavailable):
        hwmon.read_fan_speed(2)


def test_accessor_without_hwmon(tmp_path):
    accessor = HwmonAccessor(str(tmp_path / "nothing"))
    with pytest.raises(HardwareUnavailable):
        accessor.read_mode()


def test_non_ascii_digits_are_ignored(hwmon_base):
    (hwmon_base / "hwmon²").mkdir()
    assert HwmonLocator().resolve(str(hwmon_base)) == hwmon_base / "hwmon3"
