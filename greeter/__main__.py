from __future__ import annotations

import argparse

from greeter.config import LOG_LEVELS, Settings, get_settings
from greeter.observability.logging import AppLogger, configure_logging
from greeter.server import AppServer


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Greeter HTTP service")
    parser.add_argument("--host", default=settings.host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to listen on")
    parser.add_argument(
        "--log-level",
        type=str.lower,
        choices=LOG_LEVELS,
        default=settings.log_level.lower(),
        help="Minimum log level",
    )
    parser.add_argument("--json-logs", action=argparse.BooleanOptionalAction, default=settings.log_json, help="Render logs as JSON")
    return parser


def main() -> None:
    settings = get_settings()
    parser = build_parser(settings)
    args = parser.parse_args()

    # argparse does not check defaults against choices; LOG_LEVEL may come from the environment.
    if args.log_level not in LOG_LEVELS:
        parser.error(f"argument --log-level: invalid choice: {args.log_level!r} (choose from {', '.join(LOG_LEVELS)})")

    configure_logging(level=args.log_level, json_output=bool(args.json_logs))
    settings = settings.model_copy(update={"host": args.host, "port": args.port})
    AppServer(settings, AppLogger()).run()


if __name__ == "__main__":
    main()
