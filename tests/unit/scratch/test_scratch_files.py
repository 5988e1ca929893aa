from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path

from panepreview.scratch import ScratchFiles, resolve_instance


class ResolveInstanceTests(unittest.TestCase):
    def test_explicit_instance_then_host_pid_then_fallback(self) -> None:
        self.assertEqual(resolve_instance("abc", 10, 20), "abc")
        self.assertEqual(resolve_instance("", 10, 20), "10")
        self.assertEqual(resolve_instance("", 0, 20), "20")


class ScratchFilesTests(unittest.TestCase):
    def test_paths_carry_instance_suffix(self) -> None:
        scratch = ScratchFiles(Path("/tmp"), "123")
        self.assertEqual(scratch.selection, Path("/tmp/panepreview-123.selection"))
        self.assertEqual(scratch.pid, Path("/tmp/panepreview-123.pid"))
        self.assertEqual(scratch.overlay_fifo, Path("/tmp/panepreview-123.ueberzug"))

    def test_selection_and_pid_round_trip_and_remove_all(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            scratch = ScratchFiles(Path(tmp), "9")
            self.assertIsNone(scratch.read_selection())
            self.assertIsNone(scratch.read_pid())

            scratch.write_selection(Path("/home/user/notes.txt"))
            scratch.write_pid(4321)
            scratch.overlay_fifo.write_text("", encoding="utf-8")

            self.assertEqual(scratch.read_selection(), Path("/home/user/notes.txt"))
            self.assertEqual(scratch.read_pid(), 4321)

            scratch.remove_all()
            self.assertEqual(list(Path(tmp).iterdir()), [])
            scratch.remove_all()

    def test_instances_do_not_share_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            first = ScratchFiles(Path(tmp), "1")
            second = ScratchFiles(Path(tmp), "2")
            first.write_selection(Path("/a"))
            self.assertIsNone(second.read_selection())
            second.remove_all()
            self.assertEqual(first.read_selection(), Path("/a"))

    def test_selection_with_undecodable_bytes_round_trips(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            scratch = ScratchFiles(Path(tmp), "3")
            name = Path(os.fsdecode(b"/tmp/caf\xe9.txt"))

            scratch.write_selection(name)

            self.assertEqual(scratch.selection.read_bytes(), b"/tmp/caf\xe9.txt\n")
            self.assertEqual(scratch.read_selection(), name)


if __name__ == "__main__":
    unittest.main()
