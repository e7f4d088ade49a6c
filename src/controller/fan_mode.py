"""
fan_mode.py - Máquina de estados del modo de ventilador y watchdog.

El firmware HP revierte pwm1_enable por su cuenta después de un tiempo, así
que todo modo distinto de AUTO queda acompañado de un hilo watchdog que
vuelve a escribirlo periódicamente. BETTER_AUTO usa el código MANUAL en el
hardware y su watchdog además ejecuta el controlador adaptativo.

Solo puede existir un watchdog vivo: set_mode() detiene el anterior y arranca
el nuevo bajo un único lock.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from controller.better_auto import BetterAutoController
from controller.thread_manager import CancellationToken, ManagedThread, run_periodic
from model.hwmon import HwmonAccessor
from model.sysfs import HardwareError
from model.validation import FanMode, parse_fan_mode

MODE_TO_CODE = {
    FanMode.AUTO: "2",
    FanMode.MANUAL: "1",
    FanMode.MAX: "0",
    FanMode.BETTER_AUTO: "1",
}

CODE_TO_MODE = {
    "2": FanMode.AUTO,
    "1": FanMode.MANUAL,
    "0": FanMode.MAX,
}


class FanModeController:
    """
    Cambia el modo de los ventiladores y mantiene el watchdog correspondiente.
    """

    def __init__(self,
                 hwmon: HwmonAccessor,
                 better_auto: BetterAutoController,
                 reapply_interval: float = 100.0,
                 shutdown_token: Optional[CancellationToken] = None,
                 stop_timeout: Optional[float] = None,
                 logger: Optional[logging.Logger] = None):
        self.hwmon = hwmon
        self.better_auto = better_auto
        self.reapply_interval = reapply_interval
        self.shutdown_token = shutdown_token or CancellationToken()
        self.stop_timeout = stop_timeout
        self._logger = logger or logging.getLogger(__name__)

        self._lock = threading.Lock()
        self._active_mode: Optional[FanMode] = None
        self._watchdog: Optional[ManagedThread] = None
        self._watchdog_mode: Optional[FanMode] = None

    @property
    def active_mode(self) -> Optional[FanMode]:
        return self._active_mode

    @property
    def watchdog_mode(self) -> Optional[FanMode]:
        with self._lock:
            if self._watchdog is None or not self._watchdog.is_alive():
                return None
            return self._watchdog_mode

    def has_watchdog(self) -> bool:
        with self._lock:
            return self._watchdog is not None and self._watchdog.is_alive()

    def get_mode(self) -> FanMode:
        """
        Lee el modo desde el hardware.

        El hardware no distingue BETTER_AUTO de MANUAL; si el modo activo es
        BETTER_AUTO y el firmware reporta "1", se devuelve BETTER_AUTO.
        """
        code = self.hwmon.read_mode()
        mode = CODE_TO_MODE.get(code)
        if mode is None:
            raise HardwareError(f"Unknown fan mode {code}")
        if mode is FanMode.MANUAL and self._active_mode is FanMode.BETTER_AUTO:
            return FanMode.BETTER_AUTO
        return mode

    def set_mode(self, raw_mode) -> FanMode:
        """
        Valida, escribe el modo en el hardware y reemplaza el watchdog.

        Raises:
            InvalidMode: modo desconocido; no se toca nada.
            HardwareError: la escritura falló; el watchdog anterior sigue vivo.
        """
        mode = raw_mode if isinstance(raw_mode, FanMode) else parse_fan_mode(raw_mode)

        with self._lock:
            self.hwmon.write_mode(MODE_TO_CODE[mode])
            if self._stop_watchdog_locked():
                # el watchdog anterior pudo reescribir su modo antes del join
                self._rewrite_mode(mode)
            self._active_mode = mode
            if mode is not FanMode.AUTO:
                self._start_watchdog_locked(mode)

        self._logger.info("Fan mode set to %s", mode.value)
        return mode

    def shutdown(self) -> None:
        """Detiene y une el watchdog activo (cierre del proceso)."""
        with self._lock:
            self._stop_watchdog_locked()

    def _stop_watchdog_locked(self) -> bool:
        if self._watchdog is None:
            return False
        self._watchdog.stop(timeout=self.stop_timeout)
        self._watchdog = None
        self._watchdog_mode = None
        return True

    def _rewrite_mode(self, mode: FanMode) -> None:
        try:
            self.hwmon.write_mode(MODE_TO_CODE[mode])
        except HardwareError as e:
            self._logger.error("Rewrite of %s after watchdog stop failed: %s", mode.value, e)

    def _start_watchdog_locked(self, mode: FanMode) -> None:
        if mode is FanMode.BETTER_AUTO:
            self.better_auto.reset()
            target = self._better_auto_worker
        else:
            def target(token: CancellationToken) -> None:
                self._mode_worker(mode, token)

        self._watchdog = ManagedThread(
            target=target,
            name=f"fan_watchdog_{mode.value.lower()}",
            parent_token=self.shutdown_token,
            logger=self._logger,
        ).start()
        self._watchdog_mode = mode

    def _reapply(self, mode: FanMode) -> None:
        try:
            self.hwmon.write_mode(MODE_TO_CODE[mode])
        except HardwareError as e:
            self._logger.warning("Watchdog reapply of %s failed, retrying in %ss: %s",
                                 mode.value, self.reapply_interval, e)

    def _mode_worker(self, mode: FanMode, token: CancellationToken) -> None:
        self._logger.info("Starting fan mode trigger for mode: %s", mode.value)
        run_periodic(lambda: self._reapply(mode), self.reapply_interval, token, self._logger)

    def _better_auto_worker(self, token: CancellationToken) -> None:
        self._logger.info("Starting better auto loop")
        last_reapply: Optional[float] = None

        def reassert() -> None:
            nonlocal last_reapply
            now = time.monotonic()
            if last_reapply is None or now - last_reapply >= self.reapply_interval:
                self._reapply(FanMode.BETTER_AUTO)
                last_reapply = now

        self.better_auto.run(token, before_tick=reassert)
