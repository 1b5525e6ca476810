"""Shared fixtures: a scripted mpv peer and fake engine processes."""

import json
import socket
import threading
from typing import Any, Callable, Optional

import pytest

from sonicradio.domain.playback.mpv_ipc import MpvIpcClient


class FakeMpv:
    """Plays the mpv side of a JSON IPC connection.

    Each request line is recorded and passed to `responder`, which returns the
    raw lines to write back (bytes or dicts). The default responder answers
    get_property/get_property_string from `properties` and acks everything else.
    """

    def __init__(
        self,
        sock: socket.socket,
        responder: Optional[Callable[[dict], list]] = None,
        properties: Optional[dict] = None,
        errors: Optional[dict] = None,
    ):
        self.sock = sock
        self.responder = responder or self.default_responder
        self.requests: list[dict] = []
        self.properties: dict[str, Any] = properties if properties is not None else {}
        self.errors: dict[str, str] = errors if errors is not None else {}
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    @property
    def commands(self) -> list[list]:
        return [r["command"] for r in self.requests]

    def default_responder(self, request: dict) -> list:
        command = request["command"]
        reply: dict[str, Any] = {"request_id": request["request_id"], "error": "success"}
        if command[0] in ("get_property", "get_property_string"):
            name = command[1]
            if name in self.errors:
                reply["error"] = self.errors[name]
            elif name in self.properties:
                reply["data"] = self.properties[name]
            else:
                reply["error"] = "property unavailable"
        elif command[0] in self.errors:
            reply["error"] = self.errors[command[0]]
        return [reply]

    def _serve(self) -> None:
        buffer = b""
        try:
            while True:
                chunk = self.sock.recv(4096)
                if not chunk:
                    return
                buffer += chunk
                while b"\n" in buffer:
                    line, buffer = buffer.split(b"\n", 1)
                    request = json.loads(line)
                    self.requests.append(request)
                    for out in self.responder(request):
                        if isinstance(out, dict):
                            out = json.dumps(out).encode()
                        self.sock.sendall(out + b"\n")
        except OSError:
            return

    def close(self) -> None:
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.sock.close()


@pytest.fixture
def socket_pair():
    client_sock, server_sock = socket.socketpair()
    yield client_sock, server_sock
    for s in (client_sock, server_sock):
        try:
            s.close()
        except OSError:
            pass


@pytest.fixture
def fake_mpv(socket_pair):
    """(client, fake) connected over a socketpair with the default responder."""
    client_sock, server_sock = socket_pair
    fake = FakeMpv(server_sock)
    client = MpvIpcClient(client_sock, timeout=1.0)
    yield client, fake
    client.close()
    fake.close()


@pytest.fixture
def make_fake_mpv(socket_pair):
    """Factory for (client, fake) with a custom responder and client timeout."""
    created = []

    def _make(responder=None, timeout: float = 1.0):
        client_sock, server_sock = socket_pair
        fake = FakeMpv(server_sock, responder)
        client = MpvIpcClient(client_sock, timeout=timeout)
        created.append((client, fake))
        return client, fake

    yield _make
    for client, fake in created:
        client.close()
        fake.close()


class FakeProcess:
    """Stand-in for EngineProcess with scripted diagnostic output."""

    def __init__(self, executable: str, args: list, capture_stderr: bool = False):
        self.executable = executable
        self.args = args
        self.capture_stderr = capture_stderr
        self.stderr_text = ""
        self.running = True
        self.stop_calls = 0

    @property
    def pid(self) -> int:
        return 4242

    def is_running(self) -> bool:
        return self.running

    def output(self) -> str:
        return self.stderr_text

    def stop(self, timeout: float = 2.0) -> None:
        self.stop_calls += 1
        self.running = False


class FakeLauncher:
    """Records launches; returns FakeProcess handles (or raises `fail_with`)."""

    def __init__(self):
        self.launched: list[FakeProcess] = []
        self.fail_with: Optional[Exception] = None

    def __call__(self, executable: str, args: list, capture_stderr: bool = False) -> FakeProcess:
        if self.fail_with is not None:
            raise self.fail_with
        process = FakeProcess(executable, args, capture_stderr)
        self.launched.append(process)
        return process

    @property
    def current(self) -> FakeProcess:
        return self.launched[-1]


@pytest.fixture
def fake_launcher() -> FakeLauncher:
    return FakeLauncher()


class ManualClock:
    """Monotonic time source advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock()


class FakeMpvEngine:
    """Launcher stand-in for mpv: binds the --input-ipc-server socket and serves it.

    Every launch gets a fresh FakeMpv sharing `properties` and `errors`, so tests
    can script replies before play() and inspect `fake.commands` afterwards.
    """

    def __init__(self):
        self.processes: list[FakeProcess] = []
        self.fakes: list[FakeMpv] = []
        self.properties: dict[str, Any] = {}
        self.errors: dict[str, str] = {}
        self.create_socket = True
        self._accepted = threading.Event()

    def __call__(self, executable: str, args: list, capture_stderr: bool = False) -> FakeProcess:
        process = FakeProcess(executable, args, capture_stderr)
        self.processes.append(process)
        if self.create_socket:
            path = next(a.split("=", 1)[1] for a in args if a.startswith("--input-ipc-server="))
            server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            server.bind(path)
            server.listen(1)
            self._accepted.clear()
            threading.Thread(target=self._accept, args=(server,), daemon=True).start()
        return process

    def _accept(self, server: socket.socket) -> None:
        try:
            conn, _ = server.accept()
        except OSError:
            return
        finally:
            server.close()
        self.fakes.append(FakeMpv(conn, properties=self.properties, errors=self.errors))
        self._accepted.set()

    @property
    def fake(self) -> FakeMpv:
        self._accepted.wait(2.0)
        return self.fakes[-1]

    @property
    def process(self) -> FakeProcess:
        return self.processes[-1]

    def close(self) -> None:
        for fake in self.fakes:
            fake.close()


@pytest.fixture
def mpv_engine(monkeypatch):
    """Patch mpv_player.launch with a FakeMpvEngine."""
    from sonicradio.domain.playback import mpv_player

    engine = FakeMpvEngine()
    monkeypatch.setattr(mpv_player, "launch", engine)
    yield engine
    engine.close()
