#!/usr/bin/env python3
"""
victus_client.py - Cliente de línea de comandos para el daemon victus-control.

Ejemplos:
  python3 scripts/victus_client.py status
  python3 scripts/victus_client.py raw SET_FAN_MODE MANUAL
  python3 scripts/victus_client.py level 5
"""

from __future__ import annotations

import argparse
import os
import socket
import sys
import time
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from config import fan_max_rpms, load_config  # noqa: E402
from controller.dispatcher import is_error  # noqa: E402
from model.rpm_curve import RpmCurve  # noqa: E402
from view.protocol import send_command  # noqa: E402

STATUS_COMMANDS = [
    "GET_FAN_MODE",
    "GET_FAN_SPEED 1",
    "GET_FAN_SPEED 2",
    "GET_KEYBOARD_COLOR",
    "GET_KBD_BRIGHTNESS",
]


def connect(path: str, timeout: float) -> socket.socket:
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    sock.settimeout(timeout)
    sock.connect(path)
    return sock


def apply_level(sock: socket.socket, level: int, curve: RpmCurve, gap: float, max_response: int) -> bool:
    """
    Escribe el nivel en el ventilador 1, espera `gap` y luego el ventilador 2.
    """
    rpms = curve.levels_to_rpms(level)
    ok = True
    for index, fan_id in enumerate(sorted(rpms)):
        if index > 0:
            time.sleep(gap)
        response = send_command(sock, f"SET_FAN_SPEED {fan_id} {rpms[fan_id]}", max_response)
        print(f"fan {fan_id} -> {rpms[fan_id]} RPM: {response}")
        ok = ok and not is_error(response)
    return ok


def main():
    parser = argparse.ArgumentParser(description="Cliente del daemon victus-control.")
    parser.add_argument("--config", type=str, help="Ruta a config.json")
    parser.add_argument("--socket", type=str, help="Ruta del Unix socket")
    parser.add_argument("--timeout", type=float, default=30.0, help="Timeout de socket en segundos")
    sub = parser.add_subparsers(dest="action", required=True)

    raw = sub.add_parser("raw", help="Envía un comando tal cual")
    raw.add_argument("command", nargs="+")

    level = sub.add_parser("level", help="Aplica un nivel manual (requiere modo MANUAL)")
    level.add_argument("value", type=int)

    sub.add_parser("status", help="Muestra modo, velocidades y teclado")
    args = parser.parse_args()

    config = load_config(Path(args.config) if args.config else None)
    sock_cfg = config["socket"]
    fans_cfg = config["fans"]
    path = args.socket or sock_cfg["path"]
    max_response = sock_cfg["max_response_size"]

    try:
        sock = connect(path, args.timeout)
    except OSError as exc:
        print(f"No se pudo conectar a {path}: {exc}", file=sys.stderr)
        return 1

    with sock:
        if args.action == "raw":
            response = send_command(sock, " ".join(args.command), max_response)
            print(response)
            return 1 if is_error(response) else 0

        if args.action == "level":
            curve = RpmCurve(fans_cfg["min_rpm"], fan_max_rpms(fans_cfg), fans_cfg["steps"])
            if args.value < 1 or args.value > curve.steps:
                print(f"Nivel fuera de rango (1-{curve.steps})", file=sys.stderr)
                return 1
            return 0 if apply_level(sock, args.value, curve, fans_cfg["apply_gap"], max_response) else 1

        for command in STATUS_COMMANDS:
            print(f"{command}: {send_command(sock, command, max_response)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
