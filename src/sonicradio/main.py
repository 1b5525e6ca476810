"""
sonicradio - interactive playback loop

A minimal line-oriented front-end: one station URL at a time, a background
poller refreshing the now-playing line, and single-word control commands.
"""

import threading
from dataclasses import dataclass, field
from typing import Optional

from loguru import logger

from sonicradio.core import config
from sonicradio.core.instance_lock import AlreadyRunning, InstanceLock
from sonicradio.core.output import get_console, log, setup_from_config
from sonicradio.domain import playback
from sonicradio.now_playing import MetadataPoller

VOLUME_STEP = 5
SEEK_STEP = 10

HELP_TEXT = """Commands:
  play <url>   play a station URL
  p            pause / resume
  + / -        volume up / down
  vol <n>      set volume (0-100)
  > / <        seek forward / back (mpv only)
  s            stop
  q            quit"""


@dataclass
class Session:
    """Mutable state of one interactive run."""

    player: playback.Player
    cfg: config.Config
    url: Optional[str] = None
    paused: bool = False
    last_title: str = ""
    status_lock: threading.Lock = field(default_factory=threading.Lock)


def render_metadata(session: Session, metadata: playback.Metadata) -> None:
    """Print the now-playing line when the title changes, and stream faults."""
    if metadata.error is not None:
        if isinstance(metadata.error, playback.StreamFault):
            # The poller stops the player on a fault; mirror that here
            with session.status_lock:
                session.url = None
                session.paused = False
                session.last_title = ""
            log(f"Stream error: {metadata.error}", level="error")
        else:
            logger.debug(f"Metadata unavailable: {metadata.error}")
        return

    with session.status_lock:
        if not metadata.title or metadata.title == session.last_title:
            return
        session.last_title = metadata.title

    elapsed = playback.format_time(metadata.playback_time_seconds)
    get_console().print(f"[{elapsed}] {metadata.title}", style="bold green", markup=False)


def _play(session: Session, url: str) -> None:
    try:
        session.player.play(url)
    except playback.PlayerError as e:
        log(f"Could not play {url}: {e}", level="error")
        session.url = None
        return
    session.url = url
    session.paused = False
    with session.status_lock:
        session.last_title = ""
    log(f"Playing {url}")


def handle_command(session: Session, line: str) -> bool:
    """Execute one command line. Returns False when the user asked to quit."""
    parts = line.strip().split(maxsplit=1)
    if not parts:
        return True
    command, arg = parts[0].lower(), (parts[1] if len(parts) > 1 else "")

    try:
        if command in ("q", "quit", "exit"):
            return False
        elif command == "play":
            if not arg:
                log("Usage: play <url>", level="warning")
            else:
                _play(session, arg)
        elif command in ("p", "pause"):
            if session.url is None:
                log("Nothing is playing", level="warning")
            else:
                target = not session.paused
                session.player.pause(target)
                session.paused = target
                log("Paused" if target else "Resumed")
        elif command in ("+", "-"):
            step = VOLUME_STEP if command == "+" else -VOLUME_STEP
            _set_volume(session, session.player.volume + step)
        elif command in ("vol", "volume"):
            try:
                _set_volume(session, int(arg))
            except ValueError:
                log("Usage: vol <0-100>", level="warning")
        elif command in (">", "<"):
            offset = SEEK_STEP if command == ">" else -SEEK_STEP
            if session.player.seek(offset) is None:
                log(f"Seek not supported by {session.player.engine.value}", level="warning")
        elif command in ("s", "stop"):
            session.player.stop()
            session.url = None
            session.paused = False
            log("Stopped")
        elif command in ("h", "help", "?"):
            get_console().print(HELP_TEXT, markup=False)
        else:
            log(f"Unknown command: {command} (type 'help')", level="warning")
    except playback.PlayerError as e:
        # Control failures are transient: report and leave the player usable
        log(f"{command} failed: {e}", level="error")

    return True


def _set_volume(session: Session, value: int) -> None:
    effective = session.player.set_volume(value)
    session.cfg.player.volume = effective
    if session.player.engine is playback.EngineType.FFPLAY and session.url:
        log(f"Volume {effective} (applies from the next play)")
    else:
        log(f"Volume {effective}")


def run(
    url: Optional[str] = None,
    engine: Optional[str] = None,
    volume: Optional[int] = None,
) -> int:
    """Run the interactive loop. Returns a process exit code."""
    cfg = config.load_config()
    if engine:
        cfg.player.engine = engine
    if volume is not None:
        cfg.player.volume = playback.clamp_volume(volume)

    config.ensure_directories()
    setup_from_config(cfg.logging)
    logger.info("---------------------- Starting ----------------------")

    lock = InstanceLock()
    try:
        lock.acquire()
    except AlreadyRunning as e:
        log(str(e), level="error")
        return 1

    cancel = threading.Event()
    try:
        try:
            player = playback.create_player(cfg.player, cancel=cancel)
        except playback.PlayerError as e:
            log(f"Could not start player: {e}", level="error")
            return 1

        session = Session(player=player, cfg=cfg)
        poller = MetadataPoller(
            player,
            on_update=lambda m: render_metadata(session, m),
            interval=cfg.player.poll_interval,
        )
        poller.start()

        log(f"sonicradio ({player.engine.value}) - type 'help' for commands")
        if url:
            _play(session, url)

        try:
            while True:
                try:
                    line = input("> ")
                except EOFError:
                    break
                if not handle_command(session, line):
                    break
        except KeyboardInterrupt:
            pass
        finally:
            logger.info("---------------------- Quitting ----------------------")
            cancel.set()
            poller.stop()
            try:
                player.close()
            except playback.PlayerError as e:
                logger.error(f"Error closing player at exit: {e}")
            config.save_config(cfg)
    finally:
        lock.release()

    return 0
