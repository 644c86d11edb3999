"""Command line entry point of the Yeelight HomeKit bridge."""

from __future__ import annotations

import argparse
import logging
import sys

from . import YeelightHomeKit
from .config import ConfigError, load_config
from .const import DEFAULT_CONFIG_FILE, __version__

_LOGGER = logging.getLogger(__name__)


def get_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Get parsed passed in arguments."""
    parser = argparse.ArgumentParser(
        prog="yeelight-homekit",
        description="Bridge Yeelight bulbs into HomeKit.",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "-c",
        "--config",
        metavar="path_to_config_file",
        default=DEFAULT_CONFIG_FILE,
        help="JSON configuration file",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Start in debug logging mode"
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Start the bridge."""
    args = get_arguments(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s (%(threadName)s) [%(name)s] %(message)s",
    )

    try:
        config = load_config(args.config)
    except ConfigError as err:
        _LOGGER.error("Invalid configuration: %s", err)
        return 1

    homekit = YeelightHomeKit(config)
    homekit.setup()
    homekit.start()
    return 0


if __name__ == "__main__":
    sys.exit(main())
