"""
dispatcher.py - Traducción de comandos del protocolo a operaciones de hardware.

Cada línea recibida se divide en tokens; el primero es el nombre del comando
(sensible a mayúsculas). La respuesta es siempre una cadena: "OK", el valor
pedido o "ERROR: <motivo>". El dispatcher nunca lanza excepciones hacia el
transporte ni cierra la conexión.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from controller.fan_mode import FanModeController
from model.fan_manager import FanManager
from model.keyboard import KeyboardManager
from model.sysfs import HardwareError
from model.validation import (
    ValidationError,
    parse_brightness,
    parse_fan_id,
    parse_fan_speed,
    parse_rgb,
)

OK = "OK"
ERROR_PREFIX = "ERROR: "


def is_error(response: str) -> bool:
    return response.startswith("ERROR:")


class CommandDispatcher:
    """
    Punto de entrada de los comandos de texto del socket.
    """

    def __init__(self,
                 fan_modes: FanModeController,
                 fans: FanManager,
                 keyboard: KeyboardManager,
                 logger: Optional[logging.Logger] = None):
        self.fan_modes = fan_modes
        self.fans = fans
        self.keyboard = keyboard
        self._logger = logger or logging.getLogger(__name__)

        self._handlers: Dict[str, Callable[[List[str], str], str]] = {
            "GET_FAN_SPEED": self._get_fan_speed,
            "SET_FAN_SPEED": self._set_fan_speed,
            "SET_FAN_MODE": self._set_fan_mode,
            "GET_FAN_MODE": self._get_fan_mode,
            "GET_KEYBOARD_COLOR": self._get_keyboard_color,
            "SET_KEYBOARD_COLOR": self._set_keyboard_color,
            "GET_KBD_BRIGHTNESS": self._get_kbd_brightness,
            "SET_KBD_BRIGHTNESS": self._set_kbd_brightness,
        }

    def handle(self, command: str) -> str:
        """
        Ejecuta un comando y devuelve la respuesta del protocolo.
        """
        tokens = command.split()
        if not tokens:
            return ERROR_PREFIX + "Unknown command"

        name, args = tokens[0], tokens[1:]
        handler = self._handlers.get(name)
        if handler is None:
            self._logger.warning("Unknown command: %s", name)
            return ERROR_PREFIX + "Unknown command"

        # Resto de la línea tras el nombre, para SET_FAN_MODE "better auto"
        remainder = command.strip()[len(name):].strip()
        try:
            return handler(args, remainder)
        except ValidationError as e:
            self._logger.warning("%s rejected: %s", name, e)
            return ERROR_PREFIX + str(e)
        except HardwareError as e:
            self._logger.error("%s failed: %s", name, e)
            return ERROR_PREFIX + str(e)
        except Exception:
            self._logger.exception("Unexpected error handling %s", name)
            return ERROR_PREFIX + "Internal error"

    # ----- Ventiladores -----
    def _get_fan_speed(self, args: List[str], remainder: str) -> str:
        if not args:
            return ERROR_PREFIX + "Invalid GET_FAN_SPEED command format"
        fan_id = parse_fan_id(args[0])
        return self.fans.get_speed(fan_id)

    def _set_fan_speed(self, args: List[str], remainder: str) -> str:
        if len(args) < 2:
            return ERROR_PREFIX + "Invalid SET_FAN_SPEED command format"
        fan_id = parse_fan_id(args[0])
        rpm = parse_fan_speed(args[1], self.fans.max_allowed_rpm)
        self.fans.set_speed(fan_id, rpm)
        return OK

    def _set_fan_mode(self, args: List[str], remainder: str) -> str:
        if not remainder:
            return ERROR_PREFIX + "Invalid SET_FAN_MODE command format"
        self.fan_modes.set_mode(remainder)
        return OK

    def _get_fan_mode(self, args: List[str], remainder: str) -> str:
        return self.fan_modes.get_mode().value

    # ----- Teclado -----
    def _get_keyboard_color(self, args: List[str], remainder: str) -> str:
        return self.keyboard.get_color()

    def _set_keyboard_color(self, args: List[str], remainder: str) -> str:
        if len(args) < 3:
            return ERROR_PREFIX + "Invalid SET_KEYBOARD_COLOR command format"
        r, g, b = parse_rgb(args)
        self.keyboard.set_color(r, g, b)
        return OK

    def _get_kbd_brightness(self, args: List[str], remainder: str) -> str:
        return self.keyboard.get_brightness()

    def _set_kbd_brightness(self, args: List[str], remainder: str) -> str:
        if not args:
            return ERROR_PREFIX + "Invalid SET_KBD_BRIGHTNESS command format"
        level = parse_brightness(args[0], self.keyboard.min_brightness, self.keyboard.max_brightness)
        self.keyboard.set_brightness(level)
        return OK
