"""
mpv backend: one long-lived idle mpv process driven over JSON IPC.

Stations are swapped with `loadfile ... replace`; stop() ends the stream but
keeps the engine idle. If the engine dies it is relaunched on the next play().
"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .errors import ExecutionFailed, IpcCommandError, IpcError, NoMetadata, PlayerClosed, PlayerError
from .models import EngineType, Metadata, clamp_volume
from .mpv_ipc import (
    REQUEST_TIMEOUT,
    SOCKET_RETRY_INTERVAL,
    SOCKET_TIMEOUT,
    MpvIpcClient,
    wait_for_socket,
)
from .process import EngineProcess, launch

BASE_ARGS = ["--idle", "--terminal=no", "--no-video"]


def default_socket_path() -> str:
    return str(Path(tempfile.gettempdir()) / f"sonicradio-mpv-{os.getpid()}.sock")


def build_args(socket_path: str, volume: int) -> list[str]:
    """mpv argument vector for an idle engine listening on `socket_path`."""
    return [
        *BASE_ARGS,
        f"--input-ipc-server={socket_path}",
        f"--volume={clamp_volume(volume)}",
    ]


class MpvPlayer:
    """Player backed by mpv's JSON IPC socket."""

    engine = EngineType.MPV

    def __init__(
        self,
        volume: int = 50,
        socket_path: Optional[str] = None,
        executable: str = "mpv",
        socket_timeout: float = SOCKET_TIMEOUT,
        socket_retry_interval: float = SOCKET_RETRY_INTERVAL,
        ipc_timeout: float = REQUEST_TIMEOUT,
        stop_timeout: float = 2.0,
        cancel: Optional[threading.Event] = None,
    ):
        self.socket_path = socket_path or default_socket_path()
        self.executable = executable
        self.socket_timeout = socket_timeout
        self.socket_retry_interval = socket_retry_interval
        self.ipc_timeout = ipc_timeout
        self.stop_timeout = stop_timeout
        self._cancel = cancel

        self._lock = threading.RLock()
        self._volume = clamp_volume(volume)
        self._process: Optional[EngineProcess] = None
        self._client: Optional[MpvIpcClient] = None
        self._url: Optional[str] = None
        self._paused = False
        self._closed = False

    @classmethod
    def start(cls, **kwargs: Any) -> "MpvPlayer":
        """Create a player and bring up its engine and control channel.

        Raises:
            StartFailure: mpv missing or failed to launch
            SocketTimeout / Cancelled: the control socket never appeared
            IpcError: the socket appeared but could not be connected
        """
        player = cls(**kwargs)
        player._ensure_engine()
        return player

    @property
    def volume(self) -> int:
        return self._volume

    @property
    def url(self) -> Optional[str]:
        return self._url

    def _ensure_engine(self) -> MpvIpcClient:
        """Return a live control channel, (re)launching mpv if needed. Caller holds the lock."""
        if self._client is not None and self._process is not None and self._process.is_running():
            return self._client

        if self._process is not None or self._client is not None:
            logger.warning("mpv engine is gone, relaunching")
            self._teardown()

        if os.path.exists(self.socket_path):
            logger.debug(f"Removing existing socket: {self.socket_path}")
            try:
                os.unlink(self.socket_path)
            except OSError as e:
                raise ExecutionFailed(
                    f"cannot remove stale mpv socket {self.socket_path}: {e}"
                ) from e

        process = launch(self.executable, build_args(self.socket_path, self._volume))
        try:
            wait_for_socket(
                self.socket_path,
                timeout=self.socket_timeout,
                retry_interval=self.socket_retry_interval,
                cancel=self._cancel,
            )
            client = MpvIpcClient.connect(self.socket_path, timeout=self.ipc_timeout)
        except PlayerError:
            process.stop(timeout=self.stop_timeout)
            self._remove_socket()
            raise

        self._process = process
        self._client = client
        return client

    def _teardown(self) -> None:
        if self._client is not None:
            try:
                self._client.close()
            except IpcError as e:
                logger.warning(f"mpv connection close failed: {e}")
            self._client = None
        if self._process is not None:
            self._process.stop(timeout=self.stop_timeout)
            self._process = None
        self._remove_socket()

    def _remove_socket(self) -> None:
        try:
            os.unlink(self.socket_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove mpv socket {self.socket_path}: {e}")

    def _check_open(self) -> None:
        if self._closed:
            raise PlayerClosed("mpv player is closed")

    def play(self, url: str) -> None:
        logger.info(f"mpv playing url={url}")
        with self._lock:
            self._check_open()
            self._url = None
            client = self._ensure_engine()
            try:
                # mpv may start paused; unpause first or the new stream loads paused
                client.request(["set_property", "pause", False])
                client.request(["loadfile", url, "replace"])
            except IpcCommandError:
                raise
            except IpcError:
                # Broken channel: drop it so the next play() relaunches mpv
                self._teardown()
                raise
            self._url = url
            self._paused = False

    def pause(self, enable: bool) -> None:
        logger.info(f"mpv pause value={enable}")
        with self._lock:
            self._check_open()
            # Nothing loaded: no stream to pause or resume
            if self._url is None or self._client is None:
                return
            self._client.request(["set_property", "pause", enable])
            self._paused = enable

    def set_volume(self, value: int) -> int:
        """Apply the volume, or store it for the next play() when stopped."""
        value = clamp_volume(value)
        logger.info(f"mpv volume value={value}")
        with self._lock:
            self._check_open()
            self._volume = value
            if self._client is None:
                return value
            if self._url is not None:
                self._client.request(["set_property", "volume", value])
                return value
            if self._process is not None and not self._process.is_running():
                self._teardown()
                return value
            try:
                self._client.request(["set_property", "volume", value])
            except IpcCommandError:
                raise
            except IpcError as e:
                # A relaunched engine picks the stored volume up from its args
                logger.warning(f"mpv idle volume not applied, dropping engine: {e}")
                self._teardown()
        return value

    def stop(self) -> None:
        logger.info("mpv stopping")
        with self._lock:
            self._check_open()
            self._url = None
            self._paused = False
            if self._client is None:
                return
            if self._process is not None and not self._process.is_running():
                self._teardown()
                return
            try:
                self._client.request(["stop"])
            except IpcError:
                self._teardown()
                raise

    def metadata(self) -> Metadata:
        """Station title and mpv-reported playback time. Never raises PlayerError."""
        if not self._lock.acquire(timeout=self.ipc_timeout):
            return Metadata(error=IpcError("mpv player busy"))
        try:
            if self._closed:
                return Metadata(error=PlayerClosed("mpv player is closed"))
            if self._client is None or self._url is None:
                return Metadata()
            title, error = self._station_title()
            return Metadata(
                title=title,
                playback_time_seconds=self._playback_time(),
                error=error,
            )
        finally:
            self._lock.release()

    def _station_title(self) -> tuple[str, Optional[PlayerError]]:
        try:
            raw = self._client.request(["get_property_string", "metadata"])
        except PlayerError as e:
            return "", e
        if not isinstance(raw, str) or not raw:
            return "", NoMetadata("no metadata")
        try:
            fields = json.loads(raw)
        except json.JSONDecodeError as e:
            return "", NoMetadata(f"metadata decode error: {e}")
        if not isinstance(fields, dict):
            return "", NoMetadata("no metadata")
        # mpv preserves header case from the stream (icy-title vs Icy-Title)
        fields = {str(k).lower(): v for k, v in fields.items()}
        title = str(fields.get("icy-title") or "").strip()
        if not title:
            return "", NoMetadata("stream has not announced a title")
        return title, None

    def _playback_time(self) -> int:
        try:
            value = self._client.request(["get_property", "playback-time"])
        except PlayerError as e:
            logger.debug(f"playback-time unavailable: {e}")
            return 0
        if isinstance(value, (int, float)):
            return max(0, int(value))
        return 0

    def media_title(self) -> Metadata:
        """Fallback title from mpv's `media-title` property."""
        with self._lock:
            self._check_open()
            if self._client is None:
                return Metadata()
            try:
                title = self._client.request(["get_property", "media-title"])
            except PlayerError as e:
                return Metadata(error=e)
            return Metadata(title=str(title or "").strip())

    def seek(self, offset_seconds: int) -> Optional[Metadata]:
        """Relative seek within the stream cache, then a fresh snapshot."""
        logger.info(f"mpv seek offset={offset_seconds}")
        with self._lock:
            self._check_open()
            if self._client is None or self._url is None:
                return None
            self._client.request(["seek", offset_seconds, "relative"])
            return self.metadata()

    def close(self) -> None:
        """Quit mpv and release the connection. The first failure is re-raised."""
        logger.info("mpv closing")
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._url = None
            error: Optional[PlayerError] = None
            try:
                if self._client is not None:
                    try:
                        self._client.request(["quit"])
                    except PlayerError as e:
                        error = e
                    try:
                        self._client.close()
                    except IpcError as e:
                        logger.error(f"mpv socket connection close: {e}")
                        if error is None:
                            error = e
                    self._client = None
            finally:
                if self._process is not None:
                    self._process.stop(timeout=self.stop_timeout)
                    self._process = None
                self._remove_socket()
            if error is not None:
                raise error
