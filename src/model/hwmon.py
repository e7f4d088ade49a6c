"""
hwmon.py - Acceso al directorio hwmon de hp-wmi.

Localiza el directorio de control activo (el hwmonN con el número más alto bajo
/sys/devices/platform/hp-wmi/hwmon) y lee/escribe el modo PWM y las velocidades
de los ventiladores.

La resolución se cachea durante toda la vida del proceso y nunca se vuelve a
escanear: se asume que la topología hwmon no cambia mientras el daemon corre.
Si el driver se recarga, la solución es reiniciar el servicio (systemd).
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional

from model.sysfs import HardwareUnavailable, read_value, write_value

MODE_FILE = "pwm1_enable"


class HwmonLocator:
    """
    Resuelve y memoriza el directorio hwmon por ruta base.
    """

    def __init__(self, prefix: str = "hwmon", logger: Optional[logging.Logger] = None):
        self.prefix = prefix
        self._cache: Dict[str, Path] = {}
        self._lock = threading.Lock()
        self._logger = logger or logging.getLogger(__name__)

    def resolve(self, base_path: str) -> Path:
        """
        Devuelve el directorio hwmonN con N máximo bajo base_path.

        Raises:
            HardwareUnavailable: si no hay ningún directorio hwmon. Un fallo no
            se cachea, así que la siguiente llamada vuelve a intentarlo.
        """
        with self._lock:
            cached = self._cache.get(base_path)
            if cached is not None:
                return cached

            resolved = self._scan(base_path)
            if resolved is None:
                self._logger.error("Hwmon directory not found under %s", base_path)
                raise HardwareUnavailable("Hwmon directory not found")

            self._cache[base_path] = resolved
            self._logger.info("Using hwmon directory %s", resolved)
            return resolved

    def _scan(self, base_path: str) -> Optional[Path]:
        try:
            entries = os.listdir(base_path)
        except OSError:
            return None

        best_num = -1
        best: Optional[Path] = None
        for name in entries:
            suffix = name[len(self.prefix):]
            if not name.startswith(self.prefix) or not suffix.isdecimal():
                continue
            num = int(suffix)
            if num > best_num:
                best_num = num
                best = Path(base_path) / name
        return best


class HwmonAccessor:
    """
    Lecturas y escrituras síncronas sobre los archivos del directorio hwmon.
    """

    def __init__(self, base_path: str, locator: Optional[HwmonLocator] = None,
                 logger: Optional[logging.Logger] = None):
        self.base_path = base_path
        self.locator = locator or HwmonLocator()
        self._logger = logger or logging.getLogger(__name__)

    def _path(self, filename: str) -> Path:
        return self.locator.resolve(self.base_path) / filename

    def read_mode(self) -> str:
        """Devuelve el código crudo de pwm1_enable ("0", "1" o "2")."""
        return self._read(MODE_FILE)

    def write_mode(self, code: str) -> None:
        self._write(MODE_FILE, code)

    def read_fan_speed(self, fan_id: int) -> str:
        return self._read(f"fan{fan_id}_input")

    def write_fan_target(self, fan_id: int, rpm: int) -> None:
        self._write(f"fan{fan_id}_target", str(int(rpm)))

    # Los errores se propagan; quien llama decide el nivel de log.
    def _read(self, filename: str) -> str:
        return read_value(self._path(filename))

    def _write(self, filename: str, value: str) -> None:
        self._logger.debug("Writing %r to %s", value, filename)
        write_value(self._path(filename), value)
