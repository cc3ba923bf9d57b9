"""CLI for the tag reaper."""

import argparse
import sys
from pathlib import Path

import structlog

from .config import RetentionConfig
from .exceptions import ReaperError
from .services.reaper import Reaper


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description=(
            "Delete all but the newest matching tags from a container "
            "registry repository."
        )
    )
    parser.add_argument(
        "-c",
        "--config-file",
        "--file",
        type=Path,
        help=(
            "reaper config file; if omitted, options are read from "
            "INPUT_* environment variables"
        ),
        default=None,
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
        default=False,
    )
    return parser.parse_args(argv)


def _load_config(args: argparse.Namespace) -> RetentionConfig:
    if args.config_file is not None:
        cfg = RetentionConfig.from_file(args.config_file)
    else:
        cfg = RetentionConfig.from_env()
    if args.debug:
        cfg = cfg.model_copy(update={"debug": True})
    return cfg


def main(argv: list[str] | None = None) -> int:
    """Run one retention pass; return the process exit status."""
    args = _parse_args(argv)
    logger = structlog.get_logger(__name__)
    try:
        cfg = _load_config(args)
        Reaper(cfg).run()
    except ReaperError as exc:
        logger.error(f"Tag reaping failed: {exc.message}", **exc.details)
        return 1
    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())
