"""Runtime entry points: the host-side launcher and the in-pane preview loop."""

from .launcher import run_launcher
from .session import PreviewSession, run_preview_mode

__all__ = ["PreviewSession", "run_launcher", "run_preview_mode"]
