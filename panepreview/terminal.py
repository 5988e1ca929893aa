"""Terminal control helpers for the preview pane.

Owns screen clearing, pane geometry and the single-keypress wait used by
diagnostics. Also wraps Kitty graphics protocol calls used for inline images.
"""

from __future__ import annotations

import base64
import os
from pathlib import Path
import shutil
import termios
import tty

CLEAR_SCREEN = b"\x1b[H\x1b[2J"
DEFAULT_PANE_SIZE = (80, 24)


class TerminalController:
    def __init__(self, stdin_fd: int = 0, stdout_fd: int = 1) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd

    def pane_size(self) -> tuple[int, int]:
        """Return the pane's current ``(columns, lines)``."""
        size = shutil.get_terminal_size(DEFAULT_PANE_SIZE)
        return max(1, size.columns), max(1, size.lines)

    def write(self, text: str) -> None:
        os.write(self.stdout_fd, text.encode("utf-8", errors="replace"))

    def clear_screen(self) -> None:
        os.write(self.stdout_fd, CLEAR_SCREEN)

    def kitty_clear_images(self) -> None:
        # Delete all images and placements from the current screen.
        os.write(self.stdout_fd, b"\x1b_Ga=d,d=A,q=2;\x1b\\")

    def kitty_draw_png(
        self,
        image_path: Path,
        col: int,
        row: int,
        width_cells: int,
        height_cells: int,
    ) -> None:
        encoded_path = base64.b64encode(str(image_path).encode("utf-8")).decode("ascii")
        payload = (
            f"\x1b7\x1b[{max(1, row)};{max(1, col)}H"
            f"\x1b_Ga=T,t=f,f=100,q=2,c={max(1, width_cells)},r={max(1, height_cells)};{encoded_path}\x1b\\"
            "\x1b8"
        )
        os.write(self.stdout_fd, payload.encode("ascii"))

    def wait_for_keypress(self) -> None:
        """Block until one byte arrives on stdin (cbreak mode when a TTY)."""
        if not os.isatty(self.stdin_fd):
            os.read(self.stdin_fd, 1)
            return
        saved = termios.tcgetattr(self.stdin_fd)
        try:
            tty.setcbreak(self.stdin_fd, termios.TCSANOW)
            os.read(self.stdin_fd, 1)
        finally:
            termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, saved)

    def show_diagnostic(self, message: str) -> None:
        """Print ``message`` and wait for acknowledgment."""
        self.write(f"{message.rstrip()}\nPress any key to exit\n")
        self.wait_for_keypress()
