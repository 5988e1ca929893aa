from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path

from panepreview.config import PreviewConfig
from panepreview.runtime.channel import ChannelUnavailableError, SelectionChannelReader, require_selection_channel
from panepreview.runtime.events import SelectionArrived, ShutdownRequested


class RequireSelectionChannelTests(unittest.TestCase):
    def test_unset_channel_raises_with_diagnostic(self) -> None:
        with self.assertRaises(ChannelUnavailableError) as ctx:
            require_selection_channel(PreviewConfig())
        self.assertIn("No selection channel available!", str(ctx.exception))

    def test_missing_or_regular_file_is_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ChannelUnavailableError):
                require_selection_channel(PreviewConfig(fifo=str(Path(tmp) / "missing")))
            regular = Path(tmp) / "regular"
            regular.write_text("", encoding="utf-8")
            with self.assertRaises(ChannelUnavailableError):
                require_selection_channel(PreviewConfig(fifo=str(regular)))

    def test_fifo_is_accepted(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            fifo = Path(tmp) / "nnn.fifo"
            os.mkfifo(fifo)
            self.assertEqual(require_selection_channel(PreviewConfig(fifo=str(fifo))), fifo)


class SelectionChannelReaderTests(unittest.TestCase):
    def test_posts_each_non_blank_line_then_shutdown(self) -> None:
        events = []
        with tempfile.TemporaryDirectory() as tmp:
            channel = Path(tmp) / "channel"
            channel.write_text("/home/a.txt\n\n   \n/home/dir with space\n", encoding="utf-8")
            SelectionChannelReader(channel, events.append).run()

        self.assertEqual(
            events[:2],
            [SelectionArrived(Path("/home/a.txt")), SelectionArrived(Path("/home/dir with space"))],
        )
        self.assertEqual(len(events), 3)
        self.assertIsInstance(events[2], ShutdownRequested)

    def test_unreadable_channel_requests_shutdown(self) -> None:
        events = []
        with tempfile.TemporaryDirectory() as tmp:
            SelectionChannelReader(Path(tmp) / "gone", events.append).run()
        self.assertEqual(len(events), 1)
        self.assertIsInstance(events[0], ShutdownRequested)


if __name__ == "__main__":
    unittest.main()
