"""
thread_manager.py - Módulo de Gestión de Hilos

Contiene las piezas para ejecutar tareas en segundo plano de forma cancelable:

- CancellationToken: señal de parada jerárquica. Cancelar un token padre
  cancela a todos sus hijos.
- ManagedThread: hilo con nombre que recibe su propio token hijo y se detiene
  y se une (join) en stop(). También funciona como context manager.
- run_periodic: bucle que ejecuta un callback cada cierto intervalo hasta que
  el token se cancela.

Autor: Victus Control Team
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

# Granularidad máxima de espera: la latencia de cancelación queda acotada a 1s
WAIT_SLICE = 1.0


class CancellationToken:
    """
    Señal de cancelación compartida entre hilos.
    """

    def __init__(self, parent: Optional["CancellationToken"] = None):
        self._event = threading.Event()
        self._parent = parent

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    def child(self) -> "CancellationToken":
        """Crea un token que queda cancelado cuando este lo está."""
        return CancellationToken(parent=self)

    def wait(self, timeout: float) -> bool:
        """
        Espera hasta `timeout` segundos o hasta la cancelación.

        Duerme en tramos de como mucho WAIT_SLICE segundos para notar también
        la cancelación de los tokens padre.

        Returns:
            True si el token fue cancelado.
        """
        deadline = time.monotonic() + max(0.0, timeout)
        while not self.cancelled:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            self._event.wait(timeout=min(WAIT_SLICE, remaining))
        return True


class ManagedThread:
    """
    Hilo de trabajo con parada cooperativa.

    El target recibe el token del hilo y debe retornar cuando se cancela.
    """

    def __init__(self,
                 target: Callable[[CancellationToken], None],
                 name: str,
                 parent_token: Optional[CancellationToken] = None,
                 logger: Optional[logging.Logger] = None):
        self.name = name
        self.token = parent_token.child() if parent_token else CancellationToken()
        self._target = target
        self._logger = logger or logging.getLogger(__name__)
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def _run(self) -> None:
        try:
            self._target(self.token)
        except Exception:
            self._logger.exception("Thread '%s' crashed", self.name)

    def start(self) -> "ManagedThread":
        self._thread.start()
        self._logger.info("Thread '%s' started.", self.name)
        return self

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Cancela el token y espera a que el hilo termine.

        Returns:
            True si el hilo terminó dentro del timeout.
        """
        self.token.cancel()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            self._logger.warning("Thread '%s' did not stop within timeout.", self.name)
            return False
        self._logger.info("Thread '%s' stopped.", self.name)
        return True

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def __enter__(self) -> "ManagedThread":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def run_periodic(callback: Callable[[], None],
                 interval: float,
                 token: CancellationToken,
                 logger: Optional[logging.Logger] = None) -> None:
    """
    Ejecuta callback() inmediatamente y luego cada `interval` segundos.

    Las excepciones del callback se registran y no detienen el bucle: el
    siguiente intervalo actúa como reintento.
    """
    log = logger or logging.getLogger(__name__)
    while not token.cancelled:
        try:
            callback()
        except Exception as e:
            log.warning("Error in periodic callback: %s", e)

        # Esperar el intervalo o hasta que se señale la parada
        if token.wait(interval):
            break
