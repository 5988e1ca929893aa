"""Renderer-into-pager pipelines.

A render starts the configured pager reading from a short-lived pipe and a
feeder thread writing into it: optional banner text first, then whatever the
renderer command prints. The pager is the job the loop stops; the feeder
notices the broken pipe and the renderer is stopped alongside the pager.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import IO

from ..jobs import terminate_process

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class RenderSource:
    """What to page: ``text`` is emitted before the output of ``argv``."""

    argv: tuple[str, ...] = ()
    text: str = ""


class PagedRenderJob:
    def __init__(
        self,
        pager: subprocess.Popen,
        renderer: subprocess.Popen | None,
        feeder: threading.Thread,
    ) -> None:
        self.pager = pager
        self.renderer = renderer
        self.feeder = feeder

    def stop(self) -> None:
        terminate_process(self.pager)
        if self.renderer is not None:
            terminate_process(self.renderer)

    def alive(self) -> bool:
        return self.pager.poll() is None


def _feed(sink: IO[bytes], text: str, renderer: subprocess.Popen | None) -> None:
    """Write banner text and renderer output into the pager until done or closed."""
    try:
        if text:
            sink.write(text.encode("utf-8", errors="replace"))
            sink.flush()
        if renderer is not None and renderer.stdout is not None:
            while True:
                chunk = renderer.stdout.read1(CHUNK_SIZE)
                if not chunk:
                    break
                sink.write(chunk)
                sink.flush()
    except (BrokenPipeError, ValueError, OSError):
        # Pager went away; the renderer has nobody to talk to.
        if renderer is not None and renderer.poll() is None:
            terminate_process(renderer)
    finally:
        try:
            sink.close()
        except (BrokenPipeError, ValueError, OSError):
            pass
        if renderer is not None and renderer.stdout is not None:
            renderer.stdout.close()


def start_paged_render(
    source: RenderSource,
    pager_argv: Sequence[str],
    popen: Callable[..., subprocess.Popen] = subprocess.Popen,
) -> PagedRenderJob:
    """Start pager and renderer concurrently and return the job to record."""
    pager = popen(list(pager_argv), stdin=subprocess.PIPE)
    renderer: subprocess.Popen | None = None
    text = source.text
    if source.argv:
        try:
            renderer = popen(
                list(source.argv),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except OSError as exc:
            logger.warning("renderer %s failed to start: %s", source.argv[0], exc)
            text += f"{source.argv[0]}: {exc}\n"

    assert pager.stdin is not None
    feeder = threading.Thread(
        target=_feed,
        args=(pager.stdin, text, renderer),
        name="panepreview-render-feeder",
        daemon=True,
    )
    feeder.start()
    return PagedRenderJob(pager, renderer, feeder)
