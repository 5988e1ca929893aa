"""Capability probes for terminals, multiplexers and external tools.

Each probe is lazy and cached for the lifetime of the process: a tool's
presence is looked up once on first use and never re-checked.
"""

from __future__ import annotations

import os
import re
import shutil
import subprocess
from collections.abc import Callable, Mapping
from pathlib import Path

TMUX_MIN_VERSION = (3, 0)
_TMUX_VERSION_RE = re.compile(r"(\d+)\.(\d+)")

KNOWN_COMMANDS = (
    "bat",
    "catimg",
    "chafa",
    "exa",
    "eza",
    "ffmpegthumbnailer",
    "file",
    "kitty",
    "less",
    "ls",
    "lsix",
    "man",
    "mediainfo",
    "pistol",
    "scope.sh",
    "tail",
    "tar",
    "tmux",
    "tree",
    "ueberzug",
    "ueberzugpp",
    "unzip",
    "viu",
    "wslpath",
)


def parse_tmux_version(output: str) -> tuple[int, int] | None:
    """Parse ``tmux -V`` output such as ``tmux 3.3a`` or ``tmux next-3.4``."""
    match = _TMUX_VERSION_RE.search(output)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


class Capabilities:
    """Environment flags plus cached ``which``-style command probes."""

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        which: Callable[[str], str | None] = shutil.which,
        proc_version_path: Path = Path("/proc/version"),
    ) -> None:
        self.environ = os.environ if environ is None else environ
        self._which = which
        self._proc_version_path = proc_version_path
        self._commands: dict[str, str | None] = {}
        self._tmux_version: tuple[int, int] | None = None
        self._tmux_version_probed = False
        self._wsl: bool | None = None

    def which(self, command: str) -> str | None:
        if command not in self._commands:
            self._commands[command] = self._which(command)
        return self._commands[command]

    def has(self, command: str) -> bool:
        return self.which(command) is not None

    def first_available(self, *commands: str) -> str | None:
        for command in commands:
            if self.has(command):
                return command
        return None

    @property
    def in_tmux(self) -> bool:
        return bool(self.environ.get("TMUX"))

    def tmux_version(self) -> tuple[int, int] | None:
        if self._tmux_version_probed:
            return self._tmux_version
        self._tmux_version_probed = True
        if not self.has("tmux"):
            return None
        try:
            proc = subprocess.run(
                ["tmux", "-V"],
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                check=False,
            )
        except OSError:
            return None
        self._tmux_version = parse_tmux_version(proc.stdout)
        return self._tmux_version

    @property
    def tmux_usable(self) -> bool:
        if not self.in_tmux:
            return False
        version = self.tmux_version()
        return version is not None and version >= TMUX_MIN_VERSION

    @property
    def kitty_listen_on(self) -> str:
        return self.environ.get("KITTY_LISTEN_ON", "")

    @property
    def kitty_remote_control(self) -> bool:
        return bool(self.kitty_listen_on) and self.has("kitty")

    @property
    def kitty_graphics(self) -> bool:
        if self.environ.get("TERM", "") == "xterm-kitty":
            return True
        return bool(self.environ.get("KITTY_WINDOW_ID"))

    @property
    def is_wsl(self) -> bool:
        if self._wsl is None:
            if self.environ.get("WSL_DISTRO_NAME"):
                self._wsl = True
            else:
                try:
                    text = self._proc_version_path.read_text(encoding="utf-8", errors="replace")
                except OSError:
                    text = ""
                self._wsl = "microsoft" in text.lower()
        return self._wsl

    def probed_commands(self) -> dict[str, bool]:
        """Probe every known command, for diagnostics."""
        return {command: self.has(command) for command in KNOWN_COMMANDS}
