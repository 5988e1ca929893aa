"""File-kind classification for dispatch.

Prefers ``file --mime`` for MIME type and encoding; falls back to the
standard ``mimetypes`` table plus a NUL-byte sniff when ``file`` is absent.
"""

from __future__ import annotations

import mimetypes
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .capabilities import Capabilities
from .render.highlight import looks_binary


@dataclass(frozen=True)
class FileClassification:
    path: Path
    is_dir: bool
    mime: str = ""
    encoding: str = ""
    extension: str = ""

    @property
    def is_binary(self) -> bool:
        return self.encoding == "binary"


def parse_file_mime(output: str) -> tuple[str, str]:
    """Split ``file -b --mime`` output like ``text/plain; charset=us-ascii``."""
    mime, _, rest = output.strip().partition(";")
    encoding = ""
    for part in rest.split(";"):
        key, _, value = part.strip().partition("=")
        if key == "charset":
            encoding = value.strip()
    return mime.strip(), encoding


def file_extension(path: Path) -> str:
    """Lowercase text after the last dot of the file name, without the dot."""
    name = path.name
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def _probe_with_file(path: Path) -> tuple[str, str] | None:
    try:
        proc = subprocess.run(
            ["file", "-bL", "--mime", "--", str(path)],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
    except OSError:
        return None
    if proc.returncode != 0 or not proc.stdout.strip():
        return None
    return parse_file_mime(proc.stdout)


def _probe_without_file(path: Path) -> tuple[str, str]:
    binary = looks_binary(path)
    guessed, _ = mimetypes.guess_type(path.name)
    if guessed is None:
        guessed = "application/octet-stream" if binary else "text/plain"
    return guessed, "binary" if binary else "utf-8"


def classify(path: Path, capabilities: Capabilities) -> FileClassification:
    if path.is_dir():
        return FileClassification(path=path, is_dir=True, mime="inode/directory")

    probed = _probe_with_file(path) if capabilities.has("file") else None
    mime, encoding = probed if probed is not None else _probe_without_file(path)
    return FileClassification(
        path=path,
        is_dir=False,
        mime=mime,
        encoding=encoding,
        extension=file_extension(path),
    )
