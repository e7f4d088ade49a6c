"""
validation.py - Validación de argumentos recibidos por el socket.

Funciones puras: convierten el texto del cliente en valores tipados o lanzan
ValidationError. Nunca recortan un valor fuera de rango.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Sequence, Tuple


class ValidationError(Exception):
    """Argumento del cliente fuera de los límites declarados."""

    pass


class InvalidFanId(ValidationError):
    pass


class InvalidMode(ValidationError):
    pass


class InvalidLevel(ValidationError):
    pass


class FanMode(Enum):
    """Modos de ventilador soportados por el daemon."""

    AUTO = "AUTO"
    MANUAL = "MANUAL"
    MAX = "MAX"
    BETTER_AUTO = "BETTER_AUTO"


FAN_IDS = (1, 2)
MIN_RGB_VALUE = 0
MAX_RGB_VALUE = 255

_INT_RE = re.compile(r"[+-]?\d+")


def parse_int(value: str) -> int:
    """
    Convierte un entero decimal; rechaza floats, hex y basura al final.
    """
    text = (value or "").strip()
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"not an integer: {value!r}")
    return int(text)


def parse_fan_id(value: str) -> int:
    try:
        fan_id = parse_int(value)
    except ValueError:
        raise InvalidFanId("Invalid fan number") from None
    if fan_id not in FAN_IDS:
        raise InvalidFanId("Invalid fan number")
    return fan_id


def parse_fan_speed(value: str, max_rpm: int) -> int:
    """
    Valida una velocidad en RPM dentro de [0, max_rpm].
    """
    try:
        rpm = parse_int(value)
    except ValueError:
        raise ValidationError(f"Invalid fan speed: {value}") from None
    if rpm < 0 or rpm > max_rpm:
        raise ValidationError(f"Invalid fan speed: {value}")
    return rpm


def normalize_mode(value: str) -> str:
    """Normaliza 'better-auto' / 'better auto' a 'BETTER_AUTO'."""
    text = (value or "").strip()
    return "".join("_" if ch in "- " else ch.upper() for ch in text)


def parse_fan_mode(value: str) -> FanMode:
    mode = normalize_mode(value)
    try:
        return FanMode(mode)
    except ValueError:
        raise InvalidMode(f"Invalid fan mode: {value}") from None


def parse_rgb(tokens: Sequence[str]) -> Tuple[int, int, int]:
    """
    Valida exactamente tres componentes R G B en [0, 255].
    """
    if len(tokens) != 3:
        raise ValidationError("Invalid RGB color format")
    try:
        r, g, b = (parse_int(t) for t in tokens)
    except ValueError:
        raise ValidationError(f"Invalid RGB color: {' '.join(tokens)}") from None
    for component in (r, g, b):
        if component < MIN_RGB_VALUE or component > MAX_RGB_VALUE:
            raise ValidationError(f"Invalid RGB color: {' '.join(tokens)}")
    return r, g, b


def parse_brightness(value: str, min_value: int, max_value: int) -> int:
    try:
        level = parse_int(value)
    except ValueError:
        raise ValidationError(f"Invalid brightness value: {value}") from None
    if level < min_value or level > max_value:
        raise ValidationError(f"Invalid brightness value: {value}")
    return level
