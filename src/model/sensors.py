"""
sensors.py - Lectura de temperatura y uso de CPU para el modo "better auto".

El controlador adaptativo solo necesita un objeto con un método sample();
PsutilSampler es la fuente por defecto y en los tests se sustituye por otra.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Sequence

import psutil


@dataclass
class ControllerSample:
    """Lectura efímera de un tick del controlador adaptativo."""

    temperature: Optional[float]
    usage: float
    timestamp: float = field(default_factory=time.monotonic)


class PsutilSampler:
    """
    Lee temperaturas y uso de CPU desde psutil.
    """

    def __init__(self, chips: Sequence[str] = ("coretemp", "k10temp", "acpitz"),
                 logger: Optional[logging.Logger] = None):
        self.chips = list(chips)
        self._logger = logger or logging.getLogger(__name__)
        # La primera llamada a cpu_percent(None) devuelve 0.0; se descarta aquí.
        psutil.cpu_percent(interval=None)

    def sample(self) -> ControllerSample:
        return ControllerSample(
            temperature=self.read_temperature(),
            usage=float(psutil.cpu_percent(interval=None)),
        )

    def read_temperature(self) -> Optional[float]:
        """
        Temperatura más alta entre los chips configurados.

        Si ninguno de ellos existe se usa el máximo de todos los chips
        reportados por psutil. None si no hay sensores.
        """
        try:
            raw = psutil.sensors_temperatures(fahrenheit=False)
        except (AttributeError, OSError) as exc:
            # sensors_temperatures no existe en todas las plataformas
            self._logger.debug("Temperature sensors unavailable: %s", exc)
            return None

        selected = [raw[name] for name in self.chips if name in raw] or list(raw.values())
        readings = [entry.current for entries in selected for entry in entries
                    if entry.current is not None]
        if not readings:
            return None
        return float(max(readings))
