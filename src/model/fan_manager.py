"""
fan_manager.py - Control de los dos ventiladores vía hwmon (hp-wmi).

Añade sobre HwmonAccessor el techo de seguridad de RPM y la aplicación
escalonada de un nivel de la curva: primero el ventilador 1, una pausa y
luego el ventilador 2.
"""

from __future__ import annotations

import logging
import time
from typing import Dict, Mapping, Optional

from model.hwmon import HwmonAccessor
from model.rpm_curve import RpmCurve
from model.validation import FAN_IDS, InvalidFanId


class FanManager:
    """
    Gestiona lectura y escritura de velocidades de ventilador.
    """

    def __init__(self,
                 hwmon: HwmonAccessor,
                 min_rpm: int,
                 max_rpms: Mapping[int, int],
                 max_allowed_rpm: int,
                 apply_gap: float = 10.0,
                 logger: Optional[logging.Logger] = None):
        self.hwmon = hwmon
        self.min_rpm = int(min_rpm)
        self.max_rpms: Dict[int, int] = {int(k): int(v) for k, v in max_rpms.items()}
        self.max_allowed_rpm = int(max_allowed_rpm)
        self.apply_gap = apply_gap
        self._logger = logger or logging.getLogger(__name__)

    def safe_window(self, fan_id: int):
        """Rango [min, max] que puede escribirse en el ventilador."""
        if fan_id not in FAN_IDS or fan_id not in self.max_rpms:
            raise InvalidFanId("Invalid fan number")
        return self.min_rpm, min(self.max_rpms[fan_id], self.max_allowed_rpm)

    def get_speed(self, fan_id: int) -> str:
        return self.hwmon.read_fan_speed(fan_id)

    def set_speed(self, fan_id: int, rpm: int) -> int:
        """
        Escribe la RPM objetivo recortada a la ventana segura del ventilador.

        Returns:
            La RPM realmente escrita.
        """
        low, high = self.safe_window(fan_id)
        safe_rpm = max(low, min(int(rpm), high))
        if safe_rpm != rpm:
            self._logger.warning("Fan %d: requested %d RPM clamped to %d", fan_id, rpm, safe_rpm)

        self._logger.info("Setting fan %d speed to %d", fan_id, safe_rpm)
        self.hwmon.write_fan_target(fan_id, safe_rpm)
        return safe_rpm

    def apply_level(self, level: int, curve: RpmCurve, token=None) -> Dict[int, int]:
        """
        Aplica un nivel de la curva a ambos ventiladores, escalonado.

        Entre el ventilador 1 y el 2 se espera apply_gap segundos para no
        mandar dos objetivos PWM casi simultáneos al controlador. Si el token
        se cancela durante la espera, el ventilador 2 no se escribe.

        Returns:
            RPM escrita por ventilador.
        """
        rpms = curve.levels_to_rpms(level)
        applied: Dict[int, int] = {}
        for index, fan_id in enumerate(sorted(rpms)):
            if index > 0 and self.apply_gap > 0:
                if token is not None:
                    if token.wait(self.apply_gap):
                        self._logger.info("Level %d apply cancelled before fan %d", level, fan_id)
                        break
                else:
                    time.sleep(self.apply_gap)
            applied[fan_id] = self.set_speed(fan_id, rpms[fan_id])
        return applied
