"""Preview-mode session: the long-lived loop inside the preview pane.

Selections, resizes and shutdown requests all arrive on one queue and are
handled strictly in arrival order. Every selection stops the previous render
jobs before the next render starts, so the pane has one writer at a time.
"""

from __future__ import annotations

import logging
import os
import signal
from pathlib import Path
from queue import SimpleQueue

from ..capabilities import Capabilities
from ..config import PreviewConfig
from ..jobs import JobRegistry
from ..overlay import OverlayChannel, OverlayUnavailableError, overlay_command, overlay_enabled
from ..render.dispatch import Dispatcher, RenderPlan
from ..scratch import ScratchFiles, resolve_instance
from ..terminal import TerminalController
from .channel import SelectionChannelReader, require_selection_channel
from .events import PreviewEvent, ResizeRequested, SelectionArrived, ShutdownRequested

logger = logging.getLogger(__name__)

STATE_NORMAL = "normal"
STATE_RESIZING = "resizing"
SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGHUP, signal.SIGINT)


class PreviewSession:
    def __init__(
        self,
        config: PreviewConfig,
        capabilities: Capabilities,
        terminal: TerminalController,
        scratch: ScratchFiles,
        dispatcher: Dispatcher,
        overlay: OverlayChannel | None = None,
    ) -> None:
        self.config = config
        self.capabilities = capabilities
        self.terminal = terminal
        self.scratch = scratch
        self.dispatcher = dispatcher
        self.overlay = overlay
        self.registry = JobRegistry()
        # SimpleQueue.put is reentrant, so signal handlers may post.
        self.events: SimpleQueue[PreviewEvent] = SimpleQueue()
        self.selection: Path | None = None
        self.last_plan: RenderPlan | None = None
        self.state = STATE_NORMAL
        self._closed = False

    def post(self, event: PreviewEvent) -> None:
        self.events.put(event)

    def install_signal_handlers(self) -> None:
        signal.signal(signal.SIGWINCH, lambda _signum, _frame: self.post(ResizeRequested()))
        for signum in SHUTDOWN_SIGNALS:
            signal.signal(
                signum,
                lambda received, _frame: self.post(ShutdownRequested(signal.Signals(received).name)),
            )

    def _clear_pane(self) -> None:
        self.terminal.clear_screen()
        if self.capabilities.kitty_graphics:
            self.terminal.kitty_clear_images()

    def show(self, path: Path) -> RenderPlan:
        """Replace whatever the pane shows with a render of ``path``."""
        self.registry.stop_all()
        if self.overlay is not None:
            self.overlay.remove()
        self._clear_pane()
        plan = self.dispatcher.render(path, self.registry)
        self.selection = path
        self.last_plan = plan
        self.scratch.write_selection(path)
        return plan

    def signal_host(self) -> None:
        if not self.config.host_pid:
            return
        try:
            os.kill(self.config.host_pid, signal.SIGWINCH)
        except (ProcessLookupError, PermissionError):
            pass

    def handle_resize(self) -> None:
        if self.overlay is None:
            return
        self.state = STATE_RESIZING
        try:
            self.registry.stop_image()
            self.registry.stop_all()
            self._clear_pane()
            self.overlay.restart()
            self.signal_host()
            selection = self.selection or self.scratch.read_selection()
            if selection is not None:
                self.show(selection)
        finally:
            self.state = STATE_NORMAL

    def handle(self, event: PreviewEvent) -> bool:
        """Process one event; return ``False`` when the loop should end."""
        if isinstance(event, SelectionArrived):
            self.show(event.path)
            return True
        if isinstance(event, ResizeRequested):
            self.handle_resize()
            return True
        logger.debug("shutting down: %s", event.reason)
        return False

    def run(self) -> None:
        while self.handle(self.events.get()):
            pass

    def close(self) -> None:
        """Stop every job and the overlay listener, remove scratch files."""
        if self._closed:
            return
        self._closed = True
        self.registry.stop_all()
        if self.overlay is not None:
            self.overlay.stop()
        self.scratch.remove_all()


def start_overlay(
    config: PreviewConfig,
    capabilities: Capabilities,
    scratch: ScratchFiles,
) -> OverlayChannel | None:
    """Start the ueberzug listener when it is the image backend in use.

    Raises ``OverlayUnavailableError`` when the backend is pinned to ueberzug
    but no listener can be started.
    """
    pinned = config.image_backend == "ueberzug"
    if not overlay_enabled(config, capabilities):
        return None
    command = overlay_command(capabilities)
    if command is None:
        if pinned:
            raise OverlayUnavailableError("ueberzug image backend selected but ueberzug/tail is not installed")
        return None
    overlay = OverlayChannel(scratch.overlay_fifo, command)
    try:
        overlay.start()
    except OverlayUnavailableError:
        if pinned:
            raise
        logger.warning("overlay listener unavailable, using other image backends")
        return None
    return overlay


def run_preview_mode(
    path: Path,
    config: PreviewConfig,
    capabilities: Capabilities | None = None,
    terminal: TerminalController | None = None,
) -> int:
    """Run the in-pane loop for ``path`` until the channel closes or a signal arrives."""
    capabilities = capabilities if capabilities is not None else Capabilities()
    terminal = terminal if terminal is not None else TerminalController()
    channel = require_selection_channel(config)
    scratch = ScratchFiles(
        config.scratch_dir,
        resolve_instance(config.instance, config.host_pid, os.getpid()),
    )
    overlay = start_overlay(config, capabilities, scratch)
    dispatcher = Dispatcher(config, capabilities, terminal, overlay=overlay)
    session = PreviewSession(config, capabilities, terminal, scratch, dispatcher, overlay=overlay)
    try:
        scratch.write_pid(os.getpgrp())
        session.install_signal_handlers()
        session.post(SelectionArrived(path))
        SelectionChannelReader(channel, session.post).start()
        session.run()
    finally:
        session.close()
    return 0
