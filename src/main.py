"""
main.py - Punto de Entrada del daemon

Carga la configuración, configura el logging, arma el AppController y
atiende el socket hasta recibir SIGINT/SIGTERM.

Códigos de salida: 0 en cierre normal, 1 si el socket no se pudo abrir.

Autor: Victus Control Team
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from config import load_config
from controller.app_controller import AppController
from controller.thread_manager import CancellationToken
from view.socket_server import FatalStartupError, SocketServer

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Logging a stderr y, si se puede abrir, también a log_file.
    """
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    file_error = None
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file))
        except OSError as exc:
            file_error = exc

    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO),
                        format=LOG_FORMAT, handlers=handlers)
    if file_error is not None:
        logging.getLogger("victus").warning("Logging to stderr only, cannot open %s: %s",
                                            log_file, file_error)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Daemon de control de ventiladores y teclado (HP Victus).")
    parser.add_argument("--config", type=Path, help="Ruta a config.json")
    parser.add_argument("--socket", type=str, help="Ruta del Unix socket (sobrescribe la configuración)")
    parser.add_argument("--log-level", type=str, help="DEBUG, INFO, WARNING, ERROR")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Función principal: devuelve el código de salida del proceso.
    """
    args = parse_args(argv)
    config = load_config(args.config)
    if args.socket:
        config["socket"]["path"] = args.socket

    log_cfg = config["logging"]
    setup_logging(args.log_level or log_cfg["level"], log_cfg.get("file"))
    logger = logging.getLogger("victus")

    shutdown_token = CancellationToken()

    def signal_handler(signum, frame):
        logger.info("Signal %d received. Shutting down...", signum)
        shutdown_token.cancel()

    # Registrar manejadores de señales para cierre limpio
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    controller = AppController(config, shutdown_token=shutdown_token, logger=logger)
    sock_cfg = config["socket"]
    server = SocketServer(
        sock_cfg["path"],
        controller.dispatcher,
        token=shutdown_token,
        socket_mode=sock_cfg["mode"],
        max_command_size=sock_cfg["max_command_size"],
        accept_timeout=sock_cfg["accept_timeout"],
        logger=logger.getChild("server"),
    )

    try:
        server.start()
        server.serve_forever()
    except FatalStartupError as e:
        logger.critical("Startup failed: %s", e)
        return 1
    finally:
        server.close()
        controller.cleanup()
        logger.info("Daemon terminated.")
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
