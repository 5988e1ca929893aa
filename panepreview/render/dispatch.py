"""File-kind dispatch: decide how a path is previewed, then render it.

Decision order is fixed: a configured external previewer takes everything,
then QuickLook, then classification by directory, MIME type, extension and
encoding. ``Dispatcher.plan`` has no side effects; ``Dispatcher.render``
executes the plan and records the resulting job in the registry.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..capabilities import Capabilities
from ..classify import FileClassification, classify
from ..config import PreviewConfig
from ..jobs import JobRegistry, ProcessJob
from ..overlay import OverlayChannel
from ..terminal import TerminalController
from .highlight import colorize_source, read_text, sanitize_terminal_text
from .image import ImageContext, pick_backend, render_image
from .listing import build_archive_listing, build_directory_listing
from .pipeline import RenderSource, start_paged_render
from .quicklook import open_in_quicklook, quicklook_active

logger = logging.getLogger(__name__)

BINARY_BANNER = "-------- \033[1;31mBinary file\033[0m --------\n"
ARCHIVE_EXTENSIONS = ("gz", "bz2")
LISTING_TOOLS = ("tree", "eza", "exa", "ls")
TREE_DEPTH = 3


@dataclass(frozen=True)
class RenderPlan:
    """Chosen rendering path: ``strategy`` is the file kind, ``tool`` the renderer."""

    strategy: str
    tool: str


class Dispatcher:
    def __init__(
        self,
        config: PreviewConfig,
        capabilities: Capabilities,
        terminal: TerminalController,
        overlay: OverlayChannel | None = None,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
        classifier: Callable[[Path, Capabilities], FileClassification] = classify,
    ) -> None:
        self.config = config
        self.capabilities = capabilities
        self.terminal = terminal
        self.overlay = overlay
        self.popen = popen
        self.classifier = classifier

    def _image_context(self, registry: JobRegistry | None, columns: int, lines: int) -> ImageContext:
        return ImageContext(
            capabilities=self.capabilities,
            config=self.config,
            terminal=self.terminal,
            registry=registry,
            columns=columns,
            lines=lines,
            overlay=self.overlay,
            popen=self.popen,
        )

    def _external_previewer(self) -> str | None:
        if self.config.use_scope and self.capabilities.has("scope.sh"):
            return "scope.sh"
        if self.config.use_pistol and self.capabilities.has("pistol"):
            return "pistol"
        return None

    def _listing_tool(self) -> str:
        return self.capabilities.first_available(*LISTING_TOOLS) or "builtin"

    def _binary_tool(self) -> str:
        return self.capabilities.first_available("mediainfo", "file") or "builtin"

    def _text_tool(self) -> str:
        if self.capabilities.has("bat"):
            return "bat"
        return "plain" if self.config.no_color else "pygments"

    def plan(self, path: Path) -> RenderPlan:
        external = self._external_previewer()
        if external is not None:
            return RenderPlan("external", external)
        if quicklook_active(self.config, self.capabilities):
            return RenderPlan("quicklook", "quicklook")

        info = self.classifier(path, self.capabilities)
        if info.is_dir:
            return RenderPlan("directory", self._listing_tool())
        if info.mime.startswith("image/"):
            backend = pick_backend(path, self._image_context(None, 0, 0))
            if backend is None:
                return RenderPlan("binary", self._binary_tool())
            return RenderPlan("image", backend.id)
        if info.mime == "application/zip":
            return RenderPlan("archive", "unzip" if self.capabilities.has("unzip") else "builtin")
        if info.mime == "text/troff":
            if self.capabilities.has("man"):
                return RenderPlan("man", "man")
            return RenderPlan("text", self._text_tool())
        if info.extension in ARCHIVE_EXTENSIONS:
            return RenderPlan("archive", "tar" if self.capabilities.has("tar") else "builtin")
        if info.is_binary:
            return RenderPlan("binary", self._binary_tool())
        return RenderPlan("text", self._text_tool())

    def render(self, path: Path, registry: JobRegistry) -> RenderPlan:
        """Render ``path`` into the pane and return the plan that was used."""
        plan = self.plan(path)
        columns, lines = self.terminal.pane_size()
        logger.debug("rendering %s as %s/%s at %sx%s", path, plan.strategy, plan.tool, columns, lines)

        if plan.strategy == "quicklook":
            proc = open_in_quicklook(path, self.config, self.popen)
            if proc is not None:
                registry.set_image(ProcessJob(proc))
            return plan
        if plan.strategy == "image":
            if render_image(path, self._image_context(registry, columns, lines)) is not None:
                return plan
            plan = RenderPlan("binary", self._binary_tool())

        source = self.source_for(path, plan, columns, lines)
        try:
            job = start_paged_render(source, self.config.pager_argv, self.popen)
        except OSError as exc:
            logger.error("pager %s failed to start: %s", self.config.pager, exc)
            self.terminal.write(f"panepreview: cannot start pager {self.config.pager!r}: {exc}\n")
            return plan
        registry.set_pager(job)
        return plan

    def source_for(self, path: Path, plan: RenderPlan, columns: int, lines: int) -> RenderSource:
        """Build the paged content for every strategy that goes through the pager."""
        target = str(path)
        tool = plan.tool
        if plan.strategy == "external":
            if tool == "scope.sh":
                scratch = str(self.config.scratch_dir)
                return RenderSource(argv=("scope.sh", target, str(columns), str(lines), scratch, "False"))
            return RenderSource(argv=(tool, target))

        if plan.strategy == "directory":
            if tool == "tree":
                try:
                    entry_count = len(os.listdir(path)) + 1
                except OSError:
                    entry_count = 1
                return RenderSource(
                    argv=(
                        "tree",
                        "--filelimit",
                        str(entry_count),
                        "-L",
                        str(TREE_DEPTH),
                        "-C",
                        "-F",
                        "--dirsfirst",
                        "--noreport",
                        target,
                    )
                )
            if tool in ("eza", "exa"):
                return RenderSource(argv=(tool, "-G", "--colour=always", target))
            if tool == "ls":
                return RenderSource(argv=("ls", "--color=always", target))
            return RenderSource(text=build_directory_listing(path, show_hidden=self.config.show_hidden))

        if plan.strategy == "archive":
            if tool == "unzip":
                return RenderSource(argv=("unzip", "-l", target))
            if tool == "tar":
                return RenderSource(argv=("tar", "-tvf", target))
            return RenderSource(text=build_archive_listing(path))

        if plan.strategy == "man":
            return RenderSource(argv=("man", "-Pcat", "-l", target))

        if plan.strategy == "binary":
            if tool == "mediainfo":
                return RenderSource(argv=("mediainfo", target), text=BINARY_BANNER)
            if tool == "file":
                return RenderSource(argv=("file", "-b", target), text=BINARY_BANNER)
            return RenderSource(text=BINARY_BANNER + self._builtin_binary_info(path))

        return self._text_source(path, tool, columns)

    def _builtin_binary_info(self, path: Path) -> str:
        info = self.classifier(path, self.capabilities)
        try:
            size = path.stat().st_size
        except OSError:
            size = 0
        return f"{info.mime or 'application/octet-stream'}, {size} bytes\n"

    def _text_source(self, path: Path, tool: str, columns: int) -> RenderSource:
        if tool == "bat":
            argv = [
                "bat",
                f"--terminal-width={columns}",
                "--decorations=always",
                "--color=never" if self.config.no_color else "--color=always",
                "--paging=never",
                f"--style={self.config.bat_style}",
            ]
            if self.config.bat_theme:
                argv.append(f"--theme={self.config.bat_theme}")
            argv.extend(["--", str(path)])
            return RenderSource(argv=tuple(argv))

        try:
            source = read_text(path)
        except OSError as exc:
            return RenderSource(text=f"<cannot read {sanitize_terminal_text(str(path))}: {exc}>\n")
        if tool == "pygments":
            return RenderSource(text=colorize_source(source, path, self.config.style))
        return RenderSource(text=sanitize_terminal_text(source))
