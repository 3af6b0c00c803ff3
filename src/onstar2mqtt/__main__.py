"""Command line entry point: ``python -m onstar2mqtt``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from onstar2mqtt.config import MqttConfig, OnStarConfig
from onstar2mqtt.exceptions import OnStarMqttError
from onstar2mqtt.service import run_service

_LOG = logging.getLogger("onstar2mqtt")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="onstar2mqtt",
        description="Bridge an OnStar vehicle account to an MQTT home-automation bus.",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging verbosity (default: $LOG_LEVEL or INFO).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        onstar_config = OnStarConfig.from_env()
        mqtt_config = MqttConfig.from_env()
        asyncio.run(run_service(onstar_config, mqtt_config))
    except OnStarMqttError as exc:
        _LOG.error("Main function error: %s", exc, exc_info=args.log_level == "DEBUG")
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
