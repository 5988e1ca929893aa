"""Command-line front door for panepreview.

Without options the process is the host-side launcher: it opens a preview
pane next to the file manager (or closes the one already open). The pane
itself re-invokes this entry point with ``--preview-mode``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from . import thumbs
from .capabilities import Capabilities
from .config import LOG_PATH, load_preview_config
from .diagnostics import build_diagnostics
from .overlay import OverlayUnavailableError
from .render.dispatch import Dispatcher
from .runtime import run_launcher, run_preview_mode
from .runtime.channel import ChannelUnavailableError
from .terminal import TerminalController

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(process)d %(name)s %(levelname)s %(message)s"


def configure_logging(level_name: str) -> None:
    """Attach a file handler to the package logger when a level is set."""
    if not level_name:
        return
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise SystemExit(f"Unknown log level: {level_name}")
    package_logger = logging.getLogger("panepreview")
    try:
        LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(LOG_PATH, encoding="utf-8")
    except OSError:
        return
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    package_logger.setLevel(level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="panepreview",
        description="Live file preview in a terminal split beside the file manager.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Initial path to preview. Defaults to current directory.")
    parser.add_argument("--preview-mode", action="store_true", help=argparse.SUPPRESS)
    parser.add_argument("--diagnose", action="store_true", help="Print detected capabilities and exit.")
    parser.add_argument("--plan", metavar="PATH", help="Print the render plan chosen for PATH and exit.")
    parser.add_argument("--log-level", default=None, help="Write a debug log at this level (e.g. DEBUG).")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_preview_config()
    if args.log_level:
        config = replace(config, log_level=args.log_level)
    configure_logging(config.log_level)

    capabilities = Capabilities()
    terminal = TerminalController()

    if args.diagnose:
        columns, lines = terminal.pane_size()
        print(build_diagnostics(config, capabilities, columns, lines))
        return 0

    if args.plan is not None:
        plan_path = Path(args.plan)
        if not plan_path.exists():
            raise SystemExit(f"Path not found: {plan_path}")
        plan = Dispatcher(config, capabilities, terminal).plan(plan_path)
        print(f"{plan.strategy} {plan.tool}")
        return 0

    path = Path(args.path) if args.path else Path.cwd()
    try:
        if args.preview_mode:
            return run_preview_mode(path, config, capabilities, terminal)
        return run_launcher(path, config, capabilities, terminal)
    except (ChannelUnavailableError, OverlayUnavailableError) as exc:
        logger.info("preview unavailable: %s", exc)
        terminal.show_diagnostic(str(exc))
        return 0
    except OSError as exc:
        logger.exception("launch failed")
        print(f"panepreview: {exc}", file=sys.stderr)
        return 1


def thumbs_main(argv: Sequence[str] | None = None) -> int:
    return thumbs.main(argv)


if __name__ == "__main__":
    sys.exit(main())
