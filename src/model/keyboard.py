"""
keyboard.py - Color RGB y brillo de la retroiluminación del teclado.

Paso directo a los nodos de hp::kbd_backlight: sin estado y sin hilos.
"""

from __future__ import annotations

import logging
from typing import Optional

from model.sysfs import read_value, write_value

DEFAULT_COLOR_PATH = "/sys/class/leds/hp::kbd_backlight/multi_intensity"
DEFAULT_BRIGHTNESS_PATH = "/sys/class/leds/hp::kbd_backlight/brightness"


class KeyboardManager:
    """
    Lee y escribe color ("R G B") y brillo del teclado.
    """

    def __init__(self,
                 color_path: str = DEFAULT_COLOR_PATH,
                 brightness_path: str = DEFAULT_BRIGHTNESS_PATH,
                 min_brightness: int = 0,
                 max_brightness: int = 255,
                 logger: Optional[logging.Logger] = None):
        self.color_path = color_path
        self.brightness_path = brightness_path
        self.min_brightness = min_brightness
        self.max_brightness = max_brightness
        self._logger = logger or logging.getLogger(__name__)

    def get_color(self) -> str:
        return read_value(self.color_path)

    def set_color(self, r: int, g: int, b: int) -> None:
        value = f"{r} {g} {b}"
        self._logger.info("Setting keyboard color to %s", value)
        write_value(self.color_path, value)

    def get_brightness(self) -> str:
        return read_value(self.brightness_path)

    def set_brightness(self, level: int) -> None:
        self._logger.info("Setting keyboard brightness to %d", level)
        write_value(self.brightness_path, str(int(level)))
