"""Image rendering backends in priority order.

Kitty graphics first, then QuickLook, the ueberzug overlay, and finally
plain terminal-raster viewers. Every backend gets the pane's current
columns and lines. Callers fall back to the binary-info banner when no
backend takes the image.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ..capabilities import Capabilities
from ..config import PreviewConfig
from ..jobs import JobRegistry, ProcessJob
from ..overlay import OverlayChannel
from ..terminal import TerminalController
from .quicklook import open_in_quicklook, quicklook_active

logger = logging.getLogger(__name__)


@dataclass
class ImageContext:
    capabilities: Capabilities
    config: PreviewConfig
    terminal: TerminalController
    registry: JobRegistry | None
    columns: int
    lines: int
    overlay: OverlayChannel | None = None
    popen: Callable[..., subprocess.Popen] = subprocess.Popen


class ImageBackend(Protocol):
    id: str

    def is_available(self, path: Path, context: ImageContext) -> bool: ...

    def show(self, path: Path, context: ImageContext) -> bool: ...


def _spawn_image_job(argv: list[str], context: ImageContext) -> bool:
    try:
        proc = context.popen(argv, stdin=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except OSError as exc:
        logger.warning("image viewer %s failed: %s", argv[0], exc)
        return False
    assert context.registry is not None
    context.registry.set_image(ProcessJob(proc))
    return True


class KittyBackend:
    id = "kitty"

    def is_available(self, path: Path, context: ImageContext) -> bool:
        if not context.capabilities.kitty_graphics:
            return False
        return context.capabilities.has("kitty") or path.suffix.lower() == ".png"

    def show(self, path: Path, context: ImageContext) -> bool:
        if not context.capabilities.has("kitty"):
            context.terminal.kitty_draw_png(path, 1, 1, context.columns, context.lines)
            return True
        return _spawn_image_job(
            [
                "kitty",
                "+kitten",
                "icat",
                "--silent",
                "--scale-up",
                "--place",
                f"{context.columns}x{context.lines}@0x0",
                "--transfer-mode=stream",
                "--stdin=no",
                str(path),
            ],
            context,
        )


class QuickLookBackend:
    id = "quicklook"

    def is_available(self, path: Path, context: ImageContext) -> bool:
        return quicklook_active(context.config, context.capabilities)

    def show(self, path: Path, context: ImageContext) -> bool:
        return open_in_quicklook(path, context.config, context.popen) is not None


class UeberzugBackend:
    id = "ueberzug"

    def is_available(self, path: Path, context: ImageContext) -> bool:
        return context.overlay is not None and context.overlay.running

    def show(self, path: Path, context: ImageContext) -> bool:
        assert context.overlay is not None
        context.overlay.add(path, context.columns, context.lines)
        return True


class RasterBackend:
    """Terminal-raster viewer that draws straight into the pane."""

    def __init__(self, command: str, build_argv: Callable[[Path, int, int], list[str]]) -> None:
        self.id = command
        self.command = command
        self.build_argv = build_argv

    def is_available(self, path: Path, context: ImageContext) -> bool:
        return context.capabilities.has(self.command)

    def show(self, path: Path, context: ImageContext) -> bool:
        return _spawn_image_job(self.build_argv(path, context.columns, context.lines), context)


IMAGE_BACKENDS: tuple[ImageBackend, ...] = (
    KittyBackend(),
    QuickLookBackend(),
    UeberzugBackend(),
    RasterBackend("catimg", lambda path, cols, lines: ["catimg", "-w", str(cols), str(path)]),
    RasterBackend("viu", lambda path, cols, lines: ["viu", "-w", str(cols), "-h", str(lines), str(path)]),
    RasterBackend("chafa", lambda path, cols, lines: ["chafa", f"--size={cols}x{lines}", str(path)]),
)


def candidate_backends(config: PreviewConfig) -> list[ImageBackend]:
    """Backends to try for ``config.image_backend`` (``auto`` means all)."""
    if config.image_backend == "none":
        return []
    if config.image_backend == "auto":
        return list(IMAGE_BACKENDS)
    return [backend for backend in IMAGE_BACKENDS if backend.id == config.image_backend]


def pick_backend(path: Path, context: ImageContext) -> ImageBackend | None:
    for backend in candidate_backends(context.config):
        if backend.is_available(path, context):
            return backend
    return None


def render_image(path: Path, context: ImageContext) -> str | None:
    """Show ``path`` with the first available backend; return its id."""
    backend = pick_backend(path, context)
    if backend is None or not backend.show(path, context):
        return None
    logger.debug("image %s shown with %s", path, backend.id)
    return backend.id
