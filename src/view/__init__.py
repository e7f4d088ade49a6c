"""
view - Superficie externa del daemon: framing del protocolo y servidor Unix socket.
"""
