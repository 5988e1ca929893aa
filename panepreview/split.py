"""Acquire a pane for the preview: tmux split, kitty split, or a new window.

``choose_split`` is a pure function of capability flags, config overrides and
terminal geometry. ``build_split_command`` turns the choice into the argv
that re-invokes panepreview inside the new pane.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from .capabilities import Capabilities
from .config import PreviewConfig
from .render.quicklook import quicklook_active

logger = logging.getLogger(__name__)

METHOD_TMUX = "tmux"
METHOD_KITTY = "kitty"
METHOD_QUICKLOOK = "quicklook"
METHOD_WINDOW = "window"
DEFAULT_TERMINAL = "xterm"
PANE_TITLE = "panepreview"


@dataclass(frozen=True)
class SplitChoice:
    method: str
    orientation: str
    reason: str


def choose_orientation(override: str, columns: int, lines: int) -> str:
    """``h`` stacks panes (tall terminals), ``v`` puts them side by side."""
    if override in ("h", "v"):
        return override
    return "h" if lines * 2 > columns else "v"


def choose_split(
    capabilities: Capabilities,
    config: PreviewConfig,
    columns: int,
    lines: int,
) -> SplitChoice:
    """Pick the pane method; a ``kitty`` terminal override ranks kitty above tmux."""
    orientation = choose_orientation(config.split, columns, lines)
    candidates = [
        (METHOD_TMUX, capabilities.tmux_usable, "inside tmux"),
        (METHOD_KITTY, capabilities.kitty_remote_control, "kitty remote control listener"),
    ]
    if config.terminal == METHOD_KITTY:
        candidates.reverse()
    for method, usable, reason in candidates:
        if usable:
            return SplitChoice(method, orientation, reason)
    if quicklook_active(config, capabilities):
        return SplitChoice(METHOD_QUICKLOOK, orientation, "QuickLook on WSL")
    return SplitChoice(METHOD_WINDOW, orientation, "new terminal window")


def _tmux_size_args(capabilities: Capabilities, percent: int) -> list[str]:
    version = capabilities.tmux_version()
    if version is not None and version >= (3, 1):
        return ["-l", f"{percent}%"]
    return ["-p", str(percent)]


def build_split_command(
    choice: SplitChoice,
    child_argv: Sequence[str],
    environment: Mapping[str, str],
    config: PreviewConfig,
    capabilities: Capabilities,
) -> list[str]:
    if choice.method == METHOD_TMUX:
        argv = ["tmux", "split-window"]
        for key, value in sorted(environment.items()):
            argv.extend(["-e", f"{key}={value}"])
        argv.extend(["-d", "-v" if choice.orientation == "h" else "-h"])
        argv.extend(_tmux_size_args(capabilities, config.split_percent))
        argv.extend(child_argv)
        return argv

    if choice.method == METHOD_KITTY:
        argv = [
            "kitty",
            "@",
            "launch",
            "--no-response",
            "--title",
            PANE_TITLE,
            "--keep-focus",
            "--cwd",
            os.getcwd(),
            "--location",
            "hsplit" if choice.orientation == "h" else "vsplit",
        ]
        for key, value in sorted(environment.items()):
            argv.extend(["--env", f"{key}={value}"])
        argv.extend(child_argv)
        return argv

    if choice.method == METHOD_QUICKLOOK:
        return list(child_argv)

    terminal = config.terminal if config.terminal not in ("", METHOD_TMUX, METHOD_KITTY) else DEFAULT_TERMINAL
    return [terminal, "-e", *child_argv]


def launch_split(
    choice: SplitChoice,
    command: Sequence[str],
    environment: Mapping[str, str],
    popen: Callable[..., subprocess.Popen] = subprocess.Popen,
) -> subprocess.Popen:
    """Spawn ``command``; detached windows and QuickLook loops get their own session."""
    env = dict(os.environ)
    env.update(environment)
    detached = choice.method in (METHOD_WINDOW, METHOD_QUICKLOOK)
    logger.debug("launching preview via %s: %s", choice.method, command)
    return popen(
        list(command),
        env=env,
        stdin=subprocess.DEVNULL if choice.method == METHOD_QUICKLOOK else None,
        stdout=subprocess.DEVNULL if choice.method == METHOD_QUICKLOOK else None,
        stderr=subprocess.DEVNULL,
        start_new_session=detached,
    )
