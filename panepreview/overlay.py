"""Image-overlay command channel for ueberzug.

The listener is ``tail -f <fifo> | ueberzug layer``; commands are JSON
objects written one per line into the fifo. The write end stays open for the
channel's lifetime so the listener never sees end of file between commands.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import IO

from .capabilities import Capabilities
from .config import PreviewConfig
from .jobs import terminate_process
from .render.quicklook import quicklook_active

logger = logging.getLogger(__name__)

OVERLAY_IDENTIFIER = "PREVIEW"
OVERLAY_SCALER = "contain"
OVERLAY_COMMANDS = ("ueberzugpp", "ueberzug")


class OverlayUnavailableError(RuntimeError):
    pass


def add_command(path: Path, columns: int, lines: int) -> dict[str, object]:
    return {
        "action": "add",
        "identifier": OVERLAY_IDENTIFIER,
        "x": 0,
        "y": 0,
        "width": columns,
        "height": lines,
        "scaler": OVERLAY_SCALER,
        "path": str(path),
    }


def remove_command() -> dict[str, object]:
    return {"action": "remove", "identifier": OVERLAY_IDENTIFIER}


def overlay_command(capabilities: Capabilities) -> str | None:
    """Return the installed overlay daemon, or ``None`` when unusable."""
    if not capabilities.has("tail"):
        return None
    return capabilities.first_available(*OVERLAY_COMMANDS)


def overlay_enabled(config: PreviewConfig, capabilities: Capabilities) -> bool:
    """Whether the listener belongs in this pane: pinned, or ``auto`` without kitty or QuickLook."""
    if config.image_backend == "ueberzug":
        return True
    if config.image_backend != "auto":
        return False
    return not (capabilities.kitty_graphics or quicklook_active(config, capabilities))


class OverlayChannel:
    def __init__(
        self,
        fifo_path: Path,
        command: str,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
        make_fifo: Callable[[Path], None] = os.mkfifo,
    ) -> None:
        self.fifo_path = fifo_path
        self.command = command
        self._popen = popen
        self._make_fifo = make_fifo
        self._tail: subprocess.Popen | None = None
        self._layer: subprocess.Popen | None = None
        self._writer: IO[str] | None = None
        self.showing = False

    @property
    def running(self) -> bool:
        return self._writer is not None

    def start(self) -> None:
        """Create a fresh fifo and start the listener reading from it."""
        self._remove_fifo()
        try:
            self._make_fifo(self.fifo_path)
            self._tail = self._popen(
                ["tail", "-f", str(self.fifo_path)],
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
            self._layer = self._popen(
                [self.command, "layer", "--silent", "--parser", "json"],
                stdin=self._tail.stdout,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as exc:
            self.stop()
            raise OverlayUnavailableError(f"cannot start {self.command} layer listener: {exc}") from exc
        if self._tail.stdout is not None:
            self._tail.stdout.close()
        self._writer = open(self.fifo_path, "w", encoding="utf-8")
        self.showing = False
        logger.debug("overlay listener started on %s", self.fifo_path)

    def send(self, command: dict[str, object]) -> None:
        if self._writer is None:
            return
        try:
            self._writer.write(json.dumps(command) + "\n")
            self._writer.flush()
        except (BrokenPipeError, OSError, ValueError) as exc:
            logger.debug("overlay command dropped: %s", exc)

    def add(self, path: Path, columns: int, lines: int) -> None:
        self.send(add_command(path, columns, lines))
        self.showing = True

    def remove(self) -> None:
        if not self.showing:
            return
        self.send(remove_command())
        self.showing = False

    def restart(self) -> None:
        self.stop()
        self.start()

    def stop(self) -> None:
        """Stop the listener and remove the fifo; safe to call repeatedly."""
        writer, self._writer = self._writer, None
        if writer is not None:
            try:
                writer.close()
            except (BrokenPipeError, OSError):
                pass
        for proc in (self._layer, self._tail):
            if proc is not None:
                terminate_process(proc)
        self._layer = None
        self._tail = None
        self.showing = False
        self._remove_fifo()

    def _remove_fifo(self) -> None:
        try:
            os.unlink(self.fifo_path)
        except OSError:
            pass
