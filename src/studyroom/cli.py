"""Command-line interface: run the study room server or render the chime."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .config import LOG_LEVELS, PlayerOptions, ServerConfig
from .errors import ConfigError
from .server import serve
from .sources.chime import ChimeSource
from .utils.audio import write_wav

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="studyroom", description=__doc__)
    parser.add_argument("--log-level", choices=LOG_LEVELS, type=str.upper, help="Logging verbosity")
    commands = parser.add_subparsers(dest="command", required=True)

    serve_cmd = commands.add_parser("serve", help="Run the HTTP server")
    serve_cmd.add_argument("--host", help="Interface to bind (default: 127.0.0.1)")
    serve_cmd.add_argument("--port", type=int, help="Port to bind (default: 8000)")
    serve_cmd.add_argument("--ui", type=Path, help="Path to the UI HTML file")
    serve_cmd.add_argument("--volume", type=float, default=0.5, help="Volume reached after a fade-in")
    serve_cmd.add_argument("--fade-in", type=float, default=2000.0, help="Fade-in duration in ms")
    serve_cmd.add_argument("--fade-out", type=float, default=500.0, help="Fade-out duration in ms")
    serve_cmd.add_argument("--load-timeout", type=float, help="Give up on a load after this many ms")

    chime_cmd = commands.add_parser("chime", help="Write the completion chime to a WAV file")
    chime_cmd.add_argument("output", type=Path, help="Path to the output WAV file")
    chime_cmd.add_argument("--duration", type=float, default=0.8, help="Duration in seconds")
    chime_cmd.add_argument("--sample-rate", type=int, default=22050, help="Sample rate")
    return parser


def server_config(args: argparse.Namespace) -> ServerConfig:
    """Environment first, then any flag given on the command line."""

    config = ServerConfig.from_env()
    return ServerConfig(
        host=args.host or config.host,
        port=args.port if args.port is not None else config.port,
        ui=args.ui or config.ui,
        log_level=args.log_level or config.log_level,
        player=PlayerOptions(
            volume=args.volume,
            fade_in_ms=args.fade_in,
            fade_out_ms=args.fade_out,
            load_timeout_ms=args.load_timeout,
        ),
    )


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "chime":
        logging.basicConfig(level=args.log_level or "INFO", format=LOG_FORMAT)
        source = ChimeSource()
        buffer = source.generate(args.duration, args.sample_rate)
        write_wav(args.output, buffer, args.sample_rate)
        logging.getLogger(__name__).info("Rendered chime to %s (%d samples)", args.output, len(buffer))
        return

    try:
        config = server_config(args)
    except ConfigError as exc:
        parser.error(str(exc))
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    serve(config)


if __name__ == "__main__":
    main()
