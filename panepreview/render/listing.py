"""Built-in listings used when no external listing tool is installed.

Directory previews are a bounded-depth ANSI tree with size labels; archive
previews list members of zip and tar archives with the standard library.
"""

from __future__ import annotations

import os
import tarfile
import time
import zipfile
from pathlib import Path

from .highlight import sanitize_terminal_text

LISTING_DEFAULT_DEPTH = 3
LISTING_MAX_ENTRIES = 1_000
TREE_SIZE_LABEL_MIN_BYTES = 10 * 1024

DIR_COLOR = "\033[1;34m"
FILE_COLOR = "\033[38;5;252m"
BRANCH_COLOR = "\033[2;38;5;245m"
NOTE_COLOR = "\033[2;38;5;250m"
SIZE_COLOR = "\033[38;5;109m"
RESET = "\033[0m"


def _scan_children(directory: Path, show_hidden: bool) -> list[tuple[str, Path, bool, int | None]]:
    """Scan and sort one directory's visible children, directories first."""
    children: list[tuple[str, Path, bool, int | None]] = []
    with os.scandir(directory) as entries:
        for child in entries:
            name = child.name
            if not show_hidden and name.startswith("."):
                continue
            try:
                is_dir = child.is_dir(follow_symlinks=False)
            except OSError:
                is_dir = False
            size_bytes: int | None = None
            if not is_dir:
                try:
                    size_bytes = int(child.stat(follow_symlinks=False).st_size)
                except OSError:
                    size_bytes = None
            children.append((name, Path(child.path), is_dir, size_bytes))
    children.sort(key=lambda item: (not item[2], item[0].lower()))
    return children


def build_directory_listing(
    root_dir: Path,
    show_hidden: bool = False,
    max_depth: int = LISTING_DEFAULT_DEPTH,
    max_entries: int = LISTING_MAX_ENTRIES,
) -> str:
    """Render a coloured directory tree for ``root_dir``."""
    try:
        root_label = f"{root_dir.resolve()}/"
    except OSError:
        root_label = f"{root_dir}/"
    lines_out: list[str] = [f"{DIR_COLOR}{sanitize_terminal_text(root_label)}{RESET}", ""]
    emitted = 0

    def walk(directory: Path, prefix: str, depth: int) -> None:
        nonlocal emitted
        if depth > max_depth or emitted >= max_entries:
            return
        try:
            children = _scan_children(directory, show_hidden)
        except OSError as exc:
            lines_out.append(f"{BRANCH_COLOR}{prefix}└─{RESET} {NOTE_COLOR}<error: {exc}>{RESET}")
            return

        for idx, (name, child_path, is_dir, size_bytes) in enumerate(children):
            if emitted >= max_entries:
                break
            last = idx == len(children) - 1
            branch = "└─ " if last else "├─ "
            suffix = "/" if is_dir else ""
            name_color = DIR_COLOR if is_dir else FILE_COLOR
            size_label = ""
            if not is_dir and size_bytes is not None and size_bytes >= TREE_SIZE_LABEL_MIN_BYTES:
                size_label = f"{SIZE_COLOR} [{size_bytes // 1024} KB]{RESET}"
            lines_out.append(
                f"{BRANCH_COLOR}{prefix}{branch}{RESET}{name_color}{sanitize_terminal_text(name)}{suffix}{RESET}{size_label}"
            )
            emitted += 1
            if is_dir:
                walk(child_path, prefix + ("   " if last else "│  "), depth + 1)

    walk(root_dir, "", 1)
    if emitted >= max_entries:
        lines_out.append("")
        lines_out.append(f"{NOTE_COLOR}... truncated after {max_entries} entries ...{RESET}")
    return "\n".join(lines_out) + "\n"


def _format_member(size: int, mtime: float, name: str) -> str:
    stamp = time.strftime("%Y-%m-%d %H:%M", time.localtime(mtime))
    return f"{size:>12}  {stamp}  {sanitize_terminal_text(name)}"


def build_archive_listing(path: Path) -> str:
    """List members of a zip or tar archive (compressed tars included)."""
    lines: list[str] = []
    try:
        if zipfile.is_zipfile(path):
            with zipfile.ZipFile(path) as archive:
                for info in archive.infolist():
                    mtime = time.mktime(info.date_time + (0, 0, -1))
                    lines.append(_format_member(info.file_size, mtime, info.filename))
        else:
            with tarfile.open(path) as archive:
                for member in archive.getmembers():
                    name = member.name + ("/" if member.isdir() else "")
                    lines.append(_format_member(member.size, member.mtime, name))
    except (OSError, zipfile.BadZipFile, tarfile.TarError, EOFError) as exc:
        return f"{NOTE_COLOR}<cannot list archive: {exc}>{RESET}\n"
    if not lines:
        return f"{NOTE_COLOR}<empty archive>{RESET}\n"
    return "\n".join(lines) + "\n"
