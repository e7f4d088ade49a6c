"""
config.py - Carga de configuración del daemon.

Define rutas de hardware, límites de ventiladores, parámetros del modo
"better auto", límites del teclado y opciones de logging.
Si existe un archivo config.json (raíz del proyecto o /etc/victus-control),
se carga y sobrescribe los valores por defecto.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "socket": {
        "path": "/run/victus-control/victus_backend.sock",
        "mode": 0o660,
        "max_command_size": 1024,
        "max_response_size": 4096,
        "accept_timeout": 1.0,
    },
    "hwmon": {
        "base_path": "/sys/devices/platform/hp-wmi/hwmon",
        "prefix": "hwmon",
    },
    "fans": {
        "min_rpm": 2000,
        "max_rpm": {"1": 5800, "2": 6100},
        "steps": 8,
        "max_allowed_rpm": 10000,  # techo de seguridad
        "reapply_interval": 100.0,
        "apply_gap": 10.0,
    },
    "better_auto": {
        "min_rpm": 2000,
        "max_rpm": {"1": 5800, "2": 6100},
        "steps": 8,
        "tick": 2.0,
        "reapply": 90.0,
        "temp_thresholds": [50.0, 60.0, 70.0, 75.0, 80.0, 85.0, 90.0],
        "usage_thresholds": [20.0, 35.0, 50.0, 65.0, 75.0, 85.0, 95.0],
        "sensor_chips": ["coretemp", "k10temp", "acpitz"],
    },
    "keyboard": {
        "color_path": "/sys/class/leds/hp::kbd_backlight/multi_intensity",
        "brightness_path": "/sys/class/leds/hp::kbd_backlight/brightness",
        "min_brightness": 0,
        "max_brightness": 255,
    },
    "logging": {
        "level": "INFO",
        "file": "/var/log/victus-control.log",
    },
}

SYSTEM_CONFIG_PATH = Path("/etc/victus-control/config.json")


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Carga la configuración fusionando un config.json con los defaults.

    Orden de búsqueda cuando no se pasa una ruta explícita: config.json en la
    raíz del proyecto y luego /etc/victus-control/config.json.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path is None:
        base_dir = Path(__file__).resolve().parent.parent
        for candidate in (base_dir / "config.json", SYSTEM_CONFIG_PATH):
            if candidate.exists():
                config_path = candidate
                break

    if config_path is not None and config_path.exists():
        try:
            with config_path.open("r", encoding="utf-8") as f:
                user_cfg = json.load(f)
            _deep_update(config, user_cfg)
        except (OSError, ValueError) as exc:
            # Si falla, usamos los defaults y seguimos.
            logger.warning("Ignoring config file %s: %s", config_path, exc)

    return config


def fan_max_rpms(section: Dict[str, Any]) -> Dict[int, int]:
    """Convierte el mapa {"1": rpm, "2": rpm} de JSON a claves enteras."""
    return {int(fan_id): int(rpm) for fan_id, rpm in section["max_rpm"].items()}


def _deep_update(target: Dict[str, Any], source: Dict[str, Any]) -> None:
    """Actualiza recursivamente un diccionario destino con valores de otro."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_update(target[key], value)
        else:
            target[key] = value
