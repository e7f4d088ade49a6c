"""
model - Acceso al hardware

Este paquete contiene las clases del Modelo en el patrón MVC:
- HwmonAccessor: Directorio hwmon de hp-wmi (modo PWM y velocidades)
- FanManager: Velocidades de los ventiladores con techo de seguridad
- RpmCurve: Curva nivel -> RPM
- KeyboardManager: Color y brillo del teclado
"""

from .hwmon import HwmonAccessor, HwmonLocator
from .fan_manager import FanManager
from .rpm_curve import RpmCurve
from .keyboard import KeyboardManager

__all__ = ['HwmonAccessor', 'HwmonLocator', 'FanManager', 'RpmCurve', 'KeyboardManager']
