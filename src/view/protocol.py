"""
protocol.py - Framing de mensajes del socket.

Cada mensaje (petición o respuesta) es un prefijo de longitud de 4 bytes
(entero sin signo, little-endian) seguido de esa cantidad de bytes UTF-8.
"""

from __future__ import annotations

import socket
import struct
from typing import Optional

HEADER = struct.Struct("<I")


class ProtocolViolation(Exception):
    """Mensaje demasiado grande o mal formado; la conexión debe cerrarse."""

    pass


class ConnectionClosed(Exception):
    """El otro extremo cerró la conexión."""

    pass


def recv_exact(sock: socket.socket, length: int, token=None) -> bytes:
    """
    Lee exactamente `length` bytes.

    Si el socket tiene timeout, cada expiración se usa para revisar el token
    de cancelación; sin token, el timeout se propaga.
    """
    chunks = []
    remaining = length
    while remaining > 0:
        try:
            chunk = sock.recv(remaining)
        except socket.timeout:
            if token is not None and not token.cancelled:
                continue
            raise
        if not chunk:
            raise ConnectionClosed("peer closed the connection")
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def read_message(sock: socket.socket, max_size: int, token=None) -> str:
    """
    Lee un mensaje completo y lo decodifica.

    Raises:
        ProtocolViolation: longitud mayor que max_size o payload no UTF-8.
        ConnectionClosed: el cliente se desconectó.
    """
    (length,) = HEADER.unpack(recv_exact(sock, HEADER.size, token))
    if length > max_size:
        raise ProtocolViolation(f"message too long ({length} > {max_size} bytes)")
    payload = recv_exact(sock, length, token)
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ProtocolViolation(f"payload is not valid UTF-8: {exc}") from exc


def write_message(sock: socket.socket, text: str) -> None:
    payload = text.encode("utf-8")
    sock.sendall(HEADER.pack(len(payload)) + payload)


def send_command(sock: socket.socket, command: str, max_response_size: int = 4096,
                 token: Optional[object] = None) -> str:
    """Envía un comando y espera su respuesta (lado cliente)."""
    write_message(sock, command)
    return read_message(sock, max_response_size, token)
