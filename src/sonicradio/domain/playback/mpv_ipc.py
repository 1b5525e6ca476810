"""
mpv JSON IPC client.

Wire format: one JSON object per line in each direction. Requests carry a
`request_id`; mpv echoes it in the reply alongside `error` ("success" or a
message) and `data`. Event notifications share the same stream and carry no
request_id, so they are skipped while waiting for a reply.
"""

import itertools
import json
import os
import socket
import threading
import time
from typing import Any, Optional

from loguru import logger

from .errors import Cancelled, IpcCommandError, IpcError, MissingResponse, SocketTimeout

IPC_SUCCESS = "success"

# Socket bootstrap defaults
SOCKET_TIMEOUT = 2.0
SOCKET_RETRY_INTERVAL = 0.01

# Per-request round-trip bound
REQUEST_TIMEOUT = 2.0


def wait_for_socket(
    path: str,
    timeout: float = SOCKET_TIMEOUT,
    retry_interval: float = SOCKET_RETRY_INTERVAL,
    cancel: Optional[threading.Event] = None,
) -> float:
    """Block until mpv creates its socket file.

    Returns:
        Seconds waited

    Raises:
        Cancelled: `cancel` was set during the wait
        SocketTimeout: the file did not appear within `timeout`
    """
    start = time.monotonic()
    deadline = start + timeout
    while True:
        if cancel is not None and cancel.is_set():
            raise Cancelled("cancelled while waiting for mpv socket")
        if os.path.exists(path):
            waited = time.monotonic() - start
            logger.info(f"mpv socket file created after {waited:.3f}s")
            return waited
        if time.monotonic() >= deadline:
            logger.error(f"mpv socket creation timeout after {timeout}s: {path}")
            raise SocketTimeout(f"mpv socket file timeout after {timeout}s: {path}")
        if cancel is not None:
            cancel.wait(retry_interval)
        else:
            time.sleep(retry_interval)


class MpvIpcClient:
    """Serialized request/response channel over one mpv control connection.

    A single lock covers the full write-then-read exchange so a control call
    and a metadata poll never read from the connection at the same time.
    """

    def __init__(self, sock: socket.socket, timeout: float = REQUEST_TIMEOUT):
        self._sock = sock
        self._timeout = timeout
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._buffer = bytearray()
        self._closed = False

    @classmethod
    def connect(cls, path: str, timeout: float = REQUEST_TIMEOUT) -> "MpvIpcClient":
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(timeout)
        try:
            sock.connect(path)
        except OSError as e:
            sock.close()
            raise IpcError(f"cannot connect to mpv socket {path}: {e}") from e
        logger.debug(f"Connected to mpv socket: {path}")
        return cls(sock, timeout=timeout)

    @property
    def closed(self) -> bool:
        return self._closed

    def request(self, command: list) -> Any:
        """Send `command` and return the `data` of its correlated reply.

        Raises:
            IpcCommandError: mpv replied with a non-success status
            MissingResponse: the stream ended without a matching reply
            IpcError: write failure, read failure or round-trip timeout
        """
        with self._lock:
            if self._closed:
                raise IpcError("mpv connection is closed")

            request_id = next(self._ids)
            line = json.dumps({"command": command, "request_id": request_id}) + "\n"
            logger.debug(f"ipc -> {line.strip()}")
            try:
                self._sock.sendall(line.encode("utf-8"))
            except OSError as e:
                raise IpcError(f"ipc write error: {e}") from e

            deadline = time.monotonic() + self._timeout
            while True:
                raw = self._readline(deadline)
                if raw is None:
                    raise MissingResponse(f"missing ipc response for command={command!r}")
                logger.debug(f"ipc <- {raw!r}")

                response = _decode(raw)
                if response is None or response.get("request_id") != request_id:
                    continue
                status = response.get("error")
                if status != IPC_SUCCESS:
                    raise IpcCommandError(str(status), command)
                return response.get("data")

    def _readline(self, deadline: float) -> Optional[bytes]:
        """Next complete line, or None at end of stream. Caller holds the lock."""
        while True:
            newline = self._buffer.find(b"\n")
            if newline >= 0:
                raw = bytes(self._buffer[:newline])
                del self._buffer[: newline + 1]
                return raw

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise IpcError("ipc response timed out")
            try:
                self._sock.settimeout(remaining)
                chunk = self._sock.recv(4096)
            except socket.timeout as e:
                raise IpcError("ipc response timed out") from e
            except OSError as e:
                raise IpcError(f"ipc read error: {e}") from e

            if not chunk:
                # Trailing data without a newline still counts as a line
                if self._buffer:
                    raw = bytes(self._buffer)
                    self._buffer.clear()
                    return raw
                return None
            self._buffer += chunk

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                self._sock.close()
            except OSError as e:
                raise IpcError(f"mpv connection close error: {e}") from e


def _decode(raw: bytes) -> Optional[dict]:
    try:
        response = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    return response if isinstance(response, dict) else None
