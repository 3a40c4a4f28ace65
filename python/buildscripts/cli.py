"""
Command line entry point: print a project's merged build configuration.

Usage::

    buildscripts-config --root-dir . --mode production
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

from buildscripts.config import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigLoadError,
    load_user_config,
)

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buildscripts-config",
        description="Resolve, load and merge a project's build configuration",
    )
    parser.add_argument(
        "--root-dir",
        default=".",
        help="Project root directory (default: current directory)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Config file path, absolute or relative to --root-dir. "
        "Skips config file discovery.",
    )
    parser.add_argument(
        "--mode",
        default="",
        help="Mode whose modeConfig overrides are applied (e.g. production)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=LOG_LEVELS,
        help="Logging level (default: INFO)",
    )
    return parser


def _to_json(config: Any) -> str:
    return json.dumps(config, indent=2, default=repr)


async def _main_async(args: argparse.Namespace) -> str:
    config = await load_user_config(
        args.root_dir, mode=args.mode, explicit_config=args.config
    )
    return _to_json(config)


def main(argv: Sequence[str] | None = None) -> None:
    """
    Run the command line interface.

    Exits with status 1 when the config file is missing or cannot be loaded.
    """
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        output = asyncio.run(_main_async(args))
    except ConfigFileNotFoundError as err:
        logger.error(str(err))
        sys.exit(1)
    except ConfigLoadError as err:
        logger.warning(f"Fail to load config file {err.original_path}")
        logger.error(err.format_trace())
        sys.exit(1)
    except ConfigError as err:
        logger.error(str(err))
        sys.exit(1)
    except ValueError as err:
        logger.error(f"Invalid project manifest: {err}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        sys.exit(1)

    print(output)


if __name__ == "__main__":
    main()
