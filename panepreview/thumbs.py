"""Video thumbnail grid: ffmpegthumbnailer for each file, lsix to show them."""

from __future__ import annotations

import argparse
import logging
import subprocess
import sys
import tempfile
from collections.abc import Sequence
from pathlib import Path

from .capabilities import Capabilities
from .terminal import TerminalController

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = 256
REQUIRED_TOOLS = ("ffmpegthumbnailer", "lsix")


def generate_thumbnails(directory: Path, output_dir: Path) -> list[Path]:
    """Thumbnail every regular file in ``directory``; failures are skipped."""
    thumbnails: list[Path] = []
    for entry in sorted(directory.iterdir(), key=lambda path: path.name.lower()):
        if not entry.is_file():
            continue
        target = output_dir / f"{entry.name}.jpg"
        try:
            subprocess.run(
                ["ffmpegthumbnailer", "-s", str(THUMBNAIL_SIZE), "-i", str(entry), "-o", str(target)],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False,
            )
        except OSError as exc:
            logger.debug("thumbnailer failed for %s: %s", entry, exc)
            continue
        if target.exists():
            thumbnails.append(target)
    return thumbnails


def run_thumbs(
    directory: Path,
    capabilities: Capabilities | None = None,
    terminal: TerminalController | None = None,
) -> int:
    capabilities = capabilities if capabilities is not None else Capabilities()
    terminal = terminal if terminal is not None else TerminalController()
    missing = [tool for tool in REQUIRED_TOOLS if not capabilities.has(tool)]
    if missing:
        print(f"panethumbs: missing required tools: {', '.join(missing)}", file=sys.stderr)
        return 1
    if not directory.is_dir():
        print(f"panethumbs: not a directory: {directory}", file=sys.stderr)
        return 1

    with tempfile.TemporaryDirectory(prefix="panethumbs-") as tmp:
        thumbnails = generate_thumbnails(directory, Path(tmp))
        if thumbnails:
            subprocess.run(["lsix", *map(str, thumbnails)], check=False)
        else:
            print(f"panethumbs: no thumbnails generated in {directory}")
    terminal.wait_for_keypress()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="panethumbs",
        description="Show video thumbnails of a directory as an image grid.",
    )
    parser.add_argument("directory", nargs="?", default=None, help="Directory to scan (default: current directory).")
    args = parser.parse_args(argv)
    directory = Path(args.directory) if args.directory else Path.cwd()
    return run_thumbs(directory)
