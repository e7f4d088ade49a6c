"""
socket_server.py - Servidor Unix socket del daemon.

Acepta conexiones locales, lee comandos con framing de longitud y responde con
lo que devuelva el dispatcher. Cada conexión se atiende en su propio hilo y
sus comandos se procesan en orden, sin pipelining.

El bucle de accept y los hilos de cliente revisan el token de cancelación en
cada timeout, así que el cierre del proceso no queda bloqueado en accept/recv.
"""

from __future__ import annotations

import logging
import os
import socket
from typing import List, Optional

from controller.thread_manager import CancellationToken, ManagedThread
from view.protocol import ConnectionClosed, ProtocolViolation, read_message, write_message


class FatalStartupError(Exception):
    """No se pudo crear, enlazar o poner a escuchar el socket."""

    pass


class SocketServer:
    """
    Servidor de comandos sobre AF_UNIX/SOCK_STREAM.
    """

    def __init__(self,
                 socket_path: str,
                 dispatcher,
                 token: Optional[CancellationToken] = None,
                 socket_mode: int = 0o660,
                 max_command_size: int = 1024,
                 accept_timeout: float = 1.0,
                 logger: Optional[logging.Logger] = None):
        self.socket_path = socket_path
        self.dispatcher = dispatcher
        self.token = (token or CancellationToken()).child()
        self.socket_mode = socket_mode
        self.max_command_size = max_command_size
        self.accept_timeout = accept_timeout
        self._logger = logger or logging.getLogger(__name__)

        self._server: Optional[socket.socket] = None
        self._clients: List[ManagedThread] = []

    def start(self) -> None:
        """
        Crea el socket, aplica permisos y empieza a escuchar.

        Raises:
            FatalStartupError: si cualquier paso falla.
        """
        try:
            socket_dir = os.path.dirname(self.socket_path)
            if socket_dir:
                os.makedirs(socket_dir, exist_ok=True)
            if os.path.exists(self.socket_path):
                os.unlink(self.socket_path)

            server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            try:
                server.bind(self.socket_path)
                os.chmod(self.socket_path, self.socket_mode)
                server.listen(5)
            except OSError:
                server.close()
                raise
        except OSError as exc:
            self._logger.critical("Cannot listen on %s: %s", self.socket_path, exc)
            raise FatalStartupError(f"cannot listen on {self.socket_path}: {exc}") from exc

        server.settimeout(self.accept_timeout)
        self._server = server
        self._logger.info("Server is listening on %s", self.socket_path)

    def serve_forever(self) -> None:
        """Bucle de accept hasta que el token se cancela."""
        if self._server is None:
            self.start()

        while not self.token.cancelled:
            try:
                conn, _ = self._server.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self.token.cancelled:
                    break
                self._logger.error("accept failed: %s", e)
                continue

            self._logger.info("Client connected")
            self._clients = [t for t in self._clients if t.is_alive()]
            client = ManagedThread(
                target=lambda token, conn=conn: self.handle_client(conn, token),
                name="socket_client",
                parent_token=self.token,
                logger=self._logger,
            )
            self._clients.append(client.start())

    def handle_client(self, conn: socket.socket, token: CancellationToken) -> None:
        """Atiende una conexión: comando -> respuesta, en orden."""
        conn.settimeout(self.accept_timeout)
        try:
            while not token.cancelled:
                try:
                    command = read_message(conn, self.max_command_size, token)
                except ConnectionClosed:
                    break
                except ProtocolViolation as e:
                    self._logger.warning("Protocol violation, closing connection: %s", e)
                    break

                response = self.dispatcher.handle(command)
                write_message(conn, response)
        except OSError as e:
            if not token.cancelled:
                self._logger.warning("Client connection error: %s", e)
        finally:
            conn.close()
            self._logger.info("Client disconnected")

    def close(self) -> None:
        """Detiene los hilos de cliente, cierra el socket y borra el archivo."""
        self.token.cancel()
        for client in self._clients:
            client.stop(timeout=self.accept_timeout * 2)
        self._clients = []

        if self._server is not None:
            self._server.close()
            self._server = None
        if os.path.exists(self.socket_path):
            try:
                os.unlink(self.socket_path)
            except OSError as e:
                self._logger.warning("Could not remove %s: %s", self.socket_path, e)
