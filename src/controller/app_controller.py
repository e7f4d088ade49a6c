"""
app_controller.py - Controlador Principal del daemon

Este módulo contiene la clase AppController, que arma los componentes del
modelo (hwmon, ventiladores, teclado, sensores) y los controladores (modo de
ventilador, better auto, dispatcher) a partir de la configuración, y se
encarga de liberarlos al cerrar.

Autor: Victus Control Team
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from config import fan_max_rpms
from controller.better_auto import BetterAutoController
from controller.dispatcher import CommandDispatcher
from controller.fan_mode import FanModeController
from controller.thread_manager import CancellationToken
from model.fan_manager import FanManager
from model.hwmon import HwmonAccessor, HwmonLocator
from model.keyboard import KeyboardManager
from model.rpm_curve import RpmCurve
from model.sensors import PsutilSampler


class AppController:
    """
    Raíz de composición del daemon.

    Coordina:
    - Model: HwmonAccessor, FanManager, KeyboardManager y el sampler
    - Controller: FanModeController, BetterAutoController y CommandDispatcher
    """

    def __init__(self,
                 config: Dict[str, Any],
                 shutdown_token: Optional[CancellationToken] = None,
                 sampler=None,
                 logger: Optional[logging.Logger] = None):
        """
        Inicializa todos los componentes.

        Args:
            config: Configuración ya cargada (ver config.load_config).
            shutdown_token: Token de cierre del proceso; padre de los watchdogs.
            sampler: Fuente de muestras para better auto (por defecto psutil).
            logger: Logger base; cada componente usa un hijo con su nombre.
        """
        self.config = config
        self.shutdown_token = shutdown_token or CancellationToken()
        self._logger = logger or logging.getLogger("victus")

        hwmon_cfg = config["hwmon"]
        fans_cfg = config["fans"]
        auto_cfg = config["better_auto"]
        kbd_cfg = config["keyboard"]

        self.hwmon = HwmonAccessor(
            hwmon_cfg["base_path"],
            locator=HwmonLocator(hwmon_cfg["prefix"], logger=self._child("hwmon")),
            logger=self._child("hwmon"),
        )

        self.manual_curve = RpmCurve(fans_cfg["min_rpm"], fan_max_rpms(fans_cfg), fans_cfg["steps"])
        self.better_auto_curve = RpmCurve(auto_cfg["min_rpm"], fan_max_rpms(auto_cfg), auto_cfg["steps"])

        self.fans = FanManager(
            self.hwmon,
            min_rpm=min(fans_cfg["min_rpm"], auto_cfg["min_rpm"]),
            max_rpms=fan_max_rpms(fans_cfg),
            max_allowed_rpm=fans_cfg["max_allowed_rpm"],
            apply_gap=fans_cfg["apply_gap"],
            logger=self._child("fans"),
        )

        self.keyboard = KeyboardManager(
            kbd_cfg["color_path"],
            kbd_cfg["brightness_path"],
            min_brightness=kbd_cfg["min_brightness"],
            max_brightness=kbd_cfg["max_brightness"],
            logger=self._child("keyboard"),
        )

        if sampler is None:
            sampler = PsutilSampler(auto_cfg["sensor_chips"], logger=self._child("sensors"))

        self.better_auto = BetterAutoController(
            self.fans,
            sampler,
            self.better_auto_curve,
            temp_thresholds=auto_cfg["temp_thresholds"],
            usage_thresholds=auto_cfg["usage_thresholds"],
            tick_interval=auto_cfg["tick"],
            reapply_interval=auto_cfg["reapply"],
            logger=self._child("better_auto"),
        )

        self.fan_modes = FanModeController(
            self.hwmon,
            self.better_auto,
            reapply_interval=fans_cfg["reapply_interval"],
            shutdown_token=self.shutdown_token,
            logger=self._child("fan_mode"),
        )

        self.dispatcher = CommandDispatcher(
            self.fan_modes, self.fans, self.keyboard, logger=self._child("dispatcher"),
        )

        self._logger.info("Controller initialized.")

    def _child(self, name: str) -> logging.Logger:
        return self._logger.getChild(name)

    def handle_command(self, command: str) -> str:
        return self.dispatcher.handle(command)

    def cleanup(self) -> None:
        """
        Detiene el watchdog activo y espera a que termine.

        Debe llamarse antes de cerrar el proceso.
        """
        self._logger.info("Cleaning up fan threads...")
        self.shutdown_token.cancel()
        self.fan_modes.shutdown()
        self._logger.info("Cleanup complete.")
