"""Human-readable report of what panepreview detects and would choose."""

from __future__ import annotations

from pathlib import Path

from .capabilities import Capabilities
from .config import CONFIG_PATH, PreviewConfig
from .overlay import overlay_command, overlay_enabled
from .render.image import ImageBackend, ImageContext, UeberzugBackend, candidate_backends
from .split import choose_split
from .terminal import TerminalController

# Kitty draws PNG inline without the icat kitten, so PNG can differ.
IMAGE_SAMPLES = (("png", Path("preview.png")), ("other formats", Path("preview.jpg")))


def _backend_available(backend: ImageBackend, path: Path, context: ImageContext) -> bool:
    if backend.id == UeberzugBackend.id:
        # The listener is not started here; check what the pane would start.
        return overlay_enabled(context.config, context.capabilities) and (
            overlay_command(context.capabilities) is not None
        )
    return backend.is_available(path, context)


def image_backend_report(
    config: PreviewConfig,
    capabilities: Capabilities,
    columns: int,
    lines: int,
) -> dict[str, str]:
    """Backend each sample image kind would be shown with."""
    context = ImageContext(
        capabilities=capabilities,
        config=config,
        terminal=TerminalController(),
        registry=None,
        columns=columns,
        lines=lines,
    )
    fallback = "none (disabled)" if config.image_backend == "none" else "binary-info banner"
    report: dict[str, str] = {}
    for label, sample in IMAGE_SAMPLES:
        chosen = next(
            (backend.id for backend in candidate_backends(config) if _backend_available(backend, sample, context)),
            fallback,
        )
        report[label] = chosen
    return report


def build_diagnostics(
    config: PreviewConfig,
    capabilities: Capabilities,
    columns: int,
    lines: int,
) -> str:
    tmux_version = capabilities.tmux_version()
    lines_out: list[str] = []
    lines_out.append("Environment:")
    lines_out.append(f"  config_file: {CONFIG_PATH}")
    lines_out.append(f"  selection_channel: {config.fifo or '-'}")
    lines_out.append(f"  pager: {config.pager}")
    lines_out.append(f"  tmux: {capabilities.in_tmux} (version {'.'.join(map(str, tmux_version)) if tmux_version else '-'})")
    lines_out.append(f"  kitty_listen_on: {capabilities.kitty_listen_on or '-'}")
    lines_out.append(f"  kitty_graphics: {capabilities.kitty_graphics}")
    lines_out.append(f"  wsl: {capabilities.is_wsl}")
    lines_out.append(f"  terminal_size: {columns}x{lines}")
    lines_out.append("")
    lines_out.append("Commands:")
    for command, available in capabilities.probed_commands().items():
        lines_out.append(f"  {command}: {'available' if available else 'missing'}")

    choice = choose_split(capabilities, config, columns, lines)
    lines_out.append("")
    lines_out.append(f"Split: {choice.method} ({choice.orientation})")
    lines_out.append(f"Reason: {choice.reason}")
    for label, backend_id in image_backend_report(config, capabilities, columns, lines).items():
        lines_out.append(f"Image backend ({label}): {backend_id}")
    return "\n".join(lines_out)
