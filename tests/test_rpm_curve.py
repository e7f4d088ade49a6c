import pytest

from model.rpm_curve import RpmCurve
from model.validation import InvalidFanId, InvalidLevel


def test_endpoints(curve):
    assert curve.level_to_rpm(1, 1) == 2000
    assert curve.level_to_rpm(8, 1) == 5800
    assert curve.level_to_rpm(1, 2) == 2000
    assert curve.level_to_rpm(8, 2) == 6100


def test_intermediate_levels_round(curve):
    # (5800 - 2000) / 7 = 542.857...
    assert curve.level_to_rpm(2, 1) == 2543
    assert curve.level_to_rpm(4, 2) == round(2000 + 3 * (4100 / 7))


@pytest.mark.parametrize("fan_id", [1, 2])
def test_monotonic(curve, fan_id):
    rpms = [curve.level_to_rpm(level, fan_id) for level in range(1, 9)]
    assert rpms == sorted(rpms)
    assert len(set(rpms)) == len(rpms)


@pytest.mark.parametrize("level", [0, 9, -1])
def test_out_of_range_level(curve, level):
    with pytest.raises(InvalidLevel):
        curve.level_to_rpm(level, 1)


def test_unknown_fan(curve):
    with pytest.raises(InvalidFanId):
        curve.level_to_rpm(3, 3)


def test_single_step_maps_to_max():
    single = RpmCurve(2000, {1: 5800, 2: 6100}, 1)
    assert single.levels_to_rpms(1) == {1: 5800, 2: 6100}


def test_levels_to_rpms(curve):
    assert curve.levels_to_rpms(8) == {1: 5800, 2: 6100}
