"""
rpm_curve.py - Curva lineal nivel -> RPM por ventilador.

Cada ventilador tiene su propio techo, así que el mismo nivel produce RPM
distintas en el ventilador 1 y en el 2.
"""

from __future__ import annotations

from typing import Dict, Mapping

from model.validation import InvalidFanId, InvalidLevel


class RpmCurve:
    """
    Mapea un nivel discreto en [1, steps] a RPM entre min_rpm y el máximo del ventilador.
    """

    def __init__(self, min_rpm: int, max_rpms: Mapping[int, int], steps: int):
        if steps < 1:
            raise ValueError("steps must be >= 1")
        self.min_rpm = int(min_rpm)
        self.max_rpms: Dict[int, int] = {int(k): int(v) for k, v in max_rpms.items()}
        self.steps = int(steps)

    def max_rpm(self, fan_id: int) -> int:
        try:
            return self.max_rpms[fan_id]
        except KeyError:
            raise InvalidFanId("Invalid fan number") from None

    def level_to_rpm(self, level: int, fan_id: int) -> int:
        if level < 1 or level > self.steps:
            raise InvalidLevel(f"Invalid level: {level} (expected 1-{self.steps})")

        max_rpm = self.max_rpm(fan_id)
        if self.steps == 1:
            return max_rpm

        step = (max_rpm - self.min_rpm) / (self.steps - 1)
        rpm = int(round(self.min_rpm + (level - 1) * step))
        return max(self.min_rpm, min(rpm, max_rpm))

    def levels_to_rpms(self, level: int) -> Dict[int, int]:
        """RPM de cada ventilador para un mismo nivel."""
        return {fan_id: self.level_to_rpm(level, fan_id) for fan_id in sorted(self.max_rpms)}
