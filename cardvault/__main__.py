"""Entry point. `python -m cardvault` serves the API, `python -m cardvault sweep` cleans up once."""

import argparse
import logging
from os import environ

from uvicorn import run

from cardvault.log import configure_logging

logger = logging.getLogger(__name__)


def serve() -> None:
    run(
        "cardvault.app:app",
        host=environ.get("HOST", "0.0.0.0"),
        port=int(environ.get("PORT", 8080)),
        workers=int(environ.get("WORKERS", 1)),
        log_config=None,
    )


def sweep() -> None:
    from cardvault.tasks.sweep_challenges import run_sweep

    logger.info("Removed %d challenge(s)", run_sweep())


def main() -> None:
    parser = argparse.ArgumentParser(prog="cardvault")
    parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=["serve", "sweep"],
        help="serve the API (default) or remove closed and expired challenges once",
    )
    args = parser.parse_args()
    configure_logging()
    if args.command == "sweep":
        sweep()
    else:
        serve()


if __name__ == "__main__":
    main()
