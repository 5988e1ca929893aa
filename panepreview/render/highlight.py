"""Text loading, sanitization, and Pygments syntax highlighting.

Used for text previews when ``bat`` is not installed. Terminal control bytes
are neutralized before anything reaches the pager.
"""

from __future__ import annotations

import codecs
import re
from functools import lru_cache
from pathlib import Path

from pygments import highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

DEFAULT_STYLE = "monokai"
TEXT_PREVIEW_MAX_BYTES = 512 * 1024
BINARY_SNIFF_BYTES = 4_096

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


def read_text(path: Path, max_bytes: int = TEXT_PREVIEW_MAX_BYTES) -> str:
    """Read up to ``max_bytes`` of text, UTF-8 first and latin-1 otherwise.

    A leading BOM is dropped. When the read stops at ``max_bytes`` a multi-byte
    character split by the cut is discarded instead of failing the decode.
    """
    with path.open("rb") as handle:
        data = handle.read(max_bytes)
    truncated = len(data) >= max_bytes
    decoder = codecs.getincrementaldecoder("utf-8-sig")()
    try:
        return decoder.decode(data, final=not truncated)
    except UnicodeDecodeError:
        return data.decode("latin-1")


def looks_binary(path: Path) -> bool:
    """Return whether the head of ``path`` contains a NUL byte."""
    try:
        with path.open("rb") as handle:
            sample = handle.read(BINARY_SNIFF_BYTES)
    except OSError:
        return False
    return b"\x00" in sample


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(source) is None:
        return source

    out: list[str] = []
    for ch in source:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(ch)
            continue
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


@lru_cache(maxsize=16)
def _formatter_for_style(style: str) -> Terminal256Formatter:
    """Return a terminal formatter, falling back to the default style on bad names."""
    try:
        get_style_by_name(style)
    except ClassNotFound:
        style = DEFAULT_STYLE
    return Terminal256Formatter(style=style)


def colorize_source(source: str, path: Path, style: str = DEFAULT_STYLE) -> str:
    """Highlight ``source`` with a lexer picked from the file name.

    Unknown file types use the plain text lexer; any Pygments failure returns
    the sanitized source unchanged.
    """
    source = sanitize_terminal_text(source)
    try:
        lexer = get_lexer_for_filename(path.name, source)
    except ClassNotFound:
        lexer = TextLexer()
    try:
        return highlight(source, lexer, _formatter_for_style(style))
    except Exception:
        return source
