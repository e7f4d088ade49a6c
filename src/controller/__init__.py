"""
controller - Módulo de Control del daemon

Este paquete contiene las clases del Controlador en el patrón MVC:
- AppController: Raíz de composición y limpieza
- FanModeController: Modo de ventilador y watchdog
- BetterAutoController: Control adaptativo por umbrales
- CommandDispatcher: Comandos del protocolo
"""

from .app_controller import AppController
from .better_auto import BetterAutoController
from .dispatcher import CommandDispatcher
from .fan_mode import FanModeController

__all__ = ['AppController', 'BetterAutoController', 'CommandDispatcher', 'FanModeController']
