"""Selection channel: the host's named pipe of newly selected paths.

A reader thread turns each non-blank line into a ``SelectionArrived`` event;
end of file or a read error ends the session.
"""

from __future__ import annotations

import logging
import os
import stat
import threading
from collections.abc import Callable
from pathlib import Path

from ..config import PreviewConfig
from .events import PreviewEvent, SelectionArrived, ShutdownRequested

logger = logging.getLogger(__name__)


class ChannelUnavailableError(RuntimeError):
    pass


def require_selection_channel(config: PreviewConfig) -> Path:
    """Return the readable selection fifo or raise ``ChannelUnavailableError``."""
    if not config.fifo:
        raise ChannelUnavailableError("No selection channel available! (NNN_FIFO / PANEPREVIEW_FIFO is unset)")
    channel = Path(config.fifo)
    try:
        mode = channel.stat().st_mode
    except OSError as exc:
        raise ChannelUnavailableError(f"Selection channel {channel} is not available: {exc.strerror}") from exc
    if not stat.S_ISFIFO(mode) or not os.access(channel, os.R_OK):
        raise ChannelUnavailableError(f"Selection channel {channel} is not a readable fifo")
    return channel


class SelectionChannelReader:
    def __init__(self, channel: Path, post: Callable[[PreviewEvent], None]) -> None:
        self.channel = channel
        self.post = post
        self._thread = threading.Thread(
            target=self.run,
            name="panepreview-selection-reader",
            daemon=True,
        )

    def start(self) -> None:
        self._thread.start()

    def run(self) -> None:
        try:
            with open(self.channel, encoding="utf-8", errors="surrogateescape") as stream:
                for line in stream:
                    selection = line.rstrip("\r\n")
                    if not selection.strip():
                        continue
                    self.post(SelectionArrived(Path(selection)))
        except OSError as exc:
            logger.warning("selection channel %s failed: %s", self.channel, exc)
            self.post(ShutdownRequested(f"selection channel error: {exc}"))
            return
        self.post(ShutdownRequested("selection channel closed"))
