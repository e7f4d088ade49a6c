"""
better_auto.py - Controlador adaptativo "better auto".

En cada tick toma una muestra (temperatura, uso de CPU), cuenta cuántos
umbrales supera cada señal y se queda con el paso más exigente. Solo escribe
en los ventiladores si el paso cambió o si pasó el intervalo de re-aplicación,
así las oscilaciones alrededor de un umbral no provocan escrituras repetidas.
"""

from __future__ import annotations

import bisect
import logging
import time
from typing import Callable, Optional, Sequence

from controller.thread_manager import CancellationToken
from model.fan_manager import FanManager
from model.rpm_curve import RpmCurve
from model.sysfs import HardwareError


def threshold_step(value: Optional[float], thresholds: Sequence[float]) -> int:
    """Cantidad de umbrales (ordenados) que value iguala o supera."""
    if value is None:
        return 0
    return bisect.bisect_right(list(thresholds), value)


class BetterAutoController:
    """
    Bucle adaptativo que deriva un nivel de ventilador desde umbrales.
    """

    def __init__(self,
                 fans: FanManager,
                 sampler,
                 curve: RpmCurve,
                 temp_thresholds: Sequence[float],
                 usage_thresholds: Sequence[float],
                 tick_interval: float = 2.0,
                 reapply_interval: float = 90.0,
                 clock: Callable[[], float] = time.monotonic,
                 logger: Optional[logging.Logger] = None):
        self.fans = fans
        self.sampler = sampler
        self.curve = curve
        self.temp_thresholds = sorted(temp_thresholds)
        self.usage_thresholds = sorted(usage_thresholds)
        self.tick_interval = tick_interval
        self.reapply_interval = reapply_interval
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

        self.last_step: Optional[int] = None
        self.last_write: Optional[float] = None

    def reset(self) -> None:
        """Olvida el último paso aplicado (al volver a entrar en el modo)."""
        self.last_step = None
        self.last_write = None

    def step_to_level(self, step: int) -> int:
        return max(1, min(step + 1, self.curve.steps))

    def target_step(self, temperature: Optional[float], usage: Optional[float]) -> int:
        temp_step = threshold_step(temperature, self.temp_thresholds)
        usage_step = threshold_step(usage, self.usage_thresholds)
        return max(temp_step, usage_step)

    def tick(self, token: Optional[CancellationToken] = None) -> bool:
        """
        Ejecuta una iteración del control.

        Returns:
            True si se escribieron velocidades en el hardware.
        """
        try:
            sample = self.sampler.sample()
        except Exception as e:
            self._logger.warning("Sampling failed, skipping tick: %s", e)
            return False

        step = self.target_step(sample.temperature, sample.usage)
        now = self._clock()
        due = (self.last_write is None
               or now - self.last_write >= self.reapply_interval)
        if step == self.last_step and not due:
            return False

        level = self.step_to_level(step)
        try:
            rpms = self.fans.apply_level(level, self.curve, token)
        except HardwareError as e:
            self._logger.warning("Better auto apply failed (level %d): %s", level, e)
            return False

        if token is not None and token.cancelled:
            return False

        self._logger.info(
            "Better auto: temp=%s usage=%.1f%% step=%d level=%d rpms=%s",
            sample.temperature, sample.usage, step, level, rpms,
        )
        self.last_step = step
        self.last_write = self._clock()
        return True

    def run(self, token: CancellationToken,
            before_tick: Optional[Callable[[], None]] = None) -> None:
        """
        Ejecuta tick() cada tick_interval hasta que el token se cancela.

        before_tick se llama al inicio de cada iteración (el watchdog lo usa
        para re-escribir el modo MANUAL en el hardware).
        """
        while not token.cancelled:
            if before_tick is not None:
                before_tick()
            self.tick(token)
            if token.wait(self.tick_interval):
                break
