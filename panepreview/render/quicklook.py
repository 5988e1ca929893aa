"""QuickLook integration for previews on a Windows-subsystem host."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable
from pathlib import Path

from ..capabilities import Capabilities
from ..config import PreviewConfig

logger = logging.getLogger(__name__)


def quicklook_active(config: PreviewConfig, capabilities: Capabilities) -> bool:
    return bool(config.quicklook_path) and capabilities.is_wsl and capabilities.has("wslpath")


def windows_path(path: Path) -> str:
    """Translate a WSL path with ``wslpath -w``; the input path on failure."""
    try:
        proc = subprocess.run(
            ["wslpath", "-w", str(path)],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            check=False,
        )
    except OSError:
        return str(path)
    converted = proc.stdout.strip()
    return converted if proc.returncode == 0 and converted else str(path)


def open_in_quicklook(
    path: Path,
    config: PreviewConfig,
    popen: Callable[..., subprocess.Popen] = subprocess.Popen,
) -> subprocess.Popen | None:
    try:
        return popen(
            [config.quicklook_path, windows_path(path)],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as exc:
        logger.warning("QuickLook failed for %s: %s", path, exc)
        return None
