"""Per-instance scratch files in the temp directory.

Every file name carries the instance suffix, so concurrently running
previews never share a selection, pid or overlay channel file.
"""

from __future__ import annotations

import os
from pathlib import Path

SCRATCH_PREFIX = "panepreview"
SCRATCH_KINDS = ("selection", "pid", "ueberzug")


def resolve_instance(instance: str, host_pid: int, fallback_pid: int) -> str:
    """Numeric instance suffix: explicit id, else host pid, else ``fallback_pid``."""
    if instance:
        return instance
    return str(host_pid or fallback_pid)


class ScratchFiles:
    def __init__(self, directory: Path, instance: str) -> None:
        self.directory = directory
        self.instance = instance

    def path_for(self, kind: str) -> Path:
        return self.directory / f"{SCRATCH_PREFIX}-{self.instance}.{kind}"

    @property
    def selection(self) -> Path:
        return self.path_for("selection")

    @property
    def pid(self) -> Path:
        return self.path_for("pid")

    @property
    def overlay_fifo(self) -> Path:
        return self.path_for("ueberzug")

    def write_selection(self, path: Path) -> None:
        """Persist ``path`` as raw file-system bytes; undecodable names survive."""
        try:
            self.selection.write_bytes(os.fsencode(path) + b"\n")
        except OSError:
            pass

    def read_selection(self) -> Path | None:
        try:
            data = self.selection.read_bytes().rstrip(b"\r\n")
        except OSError:
            return None
        return Path(os.fsdecode(data)) if data.strip() else None

    def write_pid(self, pgid: int) -> None:
        self.pid.write_text(f"{pgid}\n", encoding="utf-8")

    def read_pid(self) -> int | None:
        try:
            return int(self.pid.read_text(encoding="utf-8").strip())
        except (OSError, ValueError):
            return None

    def remove_all(self) -> None:
        """Remove every scratch file of this instance; missing files are fine."""
        for kind in SCRATCH_KINDS:
            try:
                os.unlink(self.path_for(kind))
            except OSError:
                continue
