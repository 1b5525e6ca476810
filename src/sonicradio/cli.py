"""
sonicradio CLI - entry point

Starts the interactive player, or probes which playback engines are installed.
"""

import argparse
import sys


def run_check() -> int:
    """Report which engines are available. Exit code 1 if none are."""
    from sonicradio.core import config
    from sonicradio.domain.playback import EngineType, check_engine_available

    cfg = config.load_config()
    found = False
    for engine in EngineType:
        available = check_engine_available(cfg.player, engine)
        found = found or available
        print(f"{engine.value:<7} {'available' if available else 'not found'}")
    return 0 if found else 1


def main() -> None:
    """Main entry point for the sonicradio command."""
    parser = argparse.ArgumentParser(
        description="sonicradio - terminal internet radio",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--engine",
        choices=["auto", "mpv", "ffplay"],
        help="Playback engine (overrides config)",
    )
    parser.add_argument(
        "--volume", type=int, help="Initial volume 0-100 (overrides config)"
    )

    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")
    play_parser = subparsers.add_parser("play", help="Start playing a station URL")
    play_parser.add_argument("url", help="Station URL")
    subparsers.add_parser("check", help="Show which playback engines are installed")

    args = parser.parse_args()

    if args.subcommand == "check":
        sys.exit(run_check())

    from .main import run

    sys.exit(run(url=getattr(args, "url", None), engine=args.engine, volume=args.volume))


if __name__ == "__main__":
    main()
