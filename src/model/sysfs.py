"""
sysfs.py - Lectura y escritura de nodos de control expuestos por el kernel.

A diferencia de los helpers "best-effort" que devuelven cadenas vacías, estas
funciones fallan de forma explícita: el llamador decide cómo reportar el error.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

PathLike = Union[str, Path]


class HardwareError(Exception):
    """Error de acceso al hardware."""

    pass


class HardwareUnavailable(HardwareError):
    """El directorio o el archivo de control no existe o no se puede abrir."""

    pass


class HardwareWriteError(HardwareError):
    """El archivo se abrió, pero la escritura no llegó a confirmarse."""

    pass


def read_value(path: PathLike) -> str:
    """
    Lee un nodo sysfs y devuelve su contenido sin espacios finales.

    Raises:
        HardwareUnavailable: si el archivo no se puede abrir o leer.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read().strip()
    except OSError as exc:
        raise HardwareUnavailable(f"Unable to read {Path(path).name}: {exc.strerror or exc}") from exc


def write_value(path: PathLike, value: str) -> None:
    """
    Escribe un valor en un nodo sysfs.

    La escritura solo se considera correcta si el flush termina sin error;
    los drivers suelen rechazar valores inválidos recién al hacer flush.

    Raises:
        HardwareUnavailable: si el archivo no se puede abrir.
        HardwareWriteError: si la escritura o el flush fallan.
    """
    try:
        f = open(path, "w", encoding="utf-8")
    except OSError as exc:
        raise HardwareUnavailable(f"Unable to open {Path(path).name}: {exc.strerror or exc}") from exc

    try:
        with f:
            f.write(str(value))
            f.flush()
    except OSError as exc:
        raise HardwareWriteError(f"Failed to write {Path(path).name}: {exc.strerror or exc}") from exc
