"""Host-side launcher: open a preview pane, or close the one already open."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import sys
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

from ..capabilities import Capabilities
from ..config import PreviewConfig
from ..scratch import ScratchFiles, resolve_instance
from ..split import build_split_command, choose_split, launch_split
from ..terminal import TerminalController
from .channel import require_selection_channel

logger = logging.getLogger(__name__)


def preview_child_argv(path: Path) -> list[str]:
    return [sys.executable, "-m", "panepreview", "--preview-mode", str(path)]


def close_existing_preview(scratch: ScratchFiles) -> bool:
    """Terminate a running preview of this instance; return whether one was open."""
    pgid = scratch.read_pid()
    if pgid is None:
        return False
    try:
        os.killpg(pgid, signal.SIGTERM)
    except ProcessLookupError:
        logger.debug("stale preview pid file for group %s", pgid)
        scratch.remove_all()
        return False
    except PermissionError:
        return False
    scratch.remove_all()
    return True


def run_launcher(
    path: Path,
    config: PreviewConfig,
    capabilities: Capabilities | None = None,
    terminal: TerminalController | None = None,
    popen: Callable[..., subprocess.Popen] = subprocess.Popen,
) -> int:
    capabilities = capabilities if capabilities is not None else Capabilities()
    terminal = terminal if terminal is not None else TerminalController()
    host_pid = config.host_pid or os.getppid()
    instance = resolve_instance(config.instance, host_pid, os.getpid())
    scratch = ScratchFiles(config.scratch_dir, instance)

    if close_existing_preview(scratch):
        return 0

    require_selection_channel(config)
    columns, lines = terminal.pane_size()
    choice = choose_split(capabilities, config, columns, lines)
    environment = replace(config, instance=instance, host_pid=host_pid).to_environment()
    command = build_split_command(choice, preview_child_argv(path), environment, config, capabilities)
    launch_split(choice, command, environment, popen)
    return 0
