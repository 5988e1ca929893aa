from __future__ import annotations

import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from panepreview.capabilities import Capabilities
from panepreview.thumbs import run_thumbs


def _caps(*available: str) -> Capabilities:
    names = set(available)
    return Capabilities(environ={}, which=lambda command: command if command in names else None)


def _fake_thumbnailer(argv, **_kwargs):
    if argv[0] == "ffmpegthumbnailer":
        source = Path(argv[argv.index("-i") + 1])
        if source.suffix == ".mp4":
            Path(argv[argv.index("-o") + 1]).write_bytes(b"jpg")
    return mock.Mock(returncode=0)


class RunThumbsTests(unittest.TestCase):
    def test_missing_tools_report_and_exit_one(self) -> None:
        stderr = io.StringIO()
        with mock.patch("sys.stderr", stderr), mock.patch("panepreview.thumbs.subprocess.run") as run_mock:
            result = run_thumbs(Path("."), _caps("lsix"), mock.Mock())

        self.assertEqual(result, 1)
        self.assertIn("ffmpegthumbnailer", stderr.getvalue())
        run_mock.assert_not_called()

    def test_thumbnails_each_file_then_shows_grid_and_waits(self) -> None:
        terminal = mock.Mock()
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "b.mp4").write_bytes(b"video")
            (root / "a.mp4").write_bytes(b"video")
            (root / "notes.txt").write_text("x", encoding="utf-8")
            (root / "sub").mkdir()

            with mock.patch("panepreview.thumbs.subprocess.run", side_effect=_fake_thumbnailer) as run_mock:
                result = run_thumbs(root, _caps("ffmpegthumbnailer", "lsix"), terminal)

        self.assertEqual(result, 0)
        thumbnailer_calls = [call.args[0] for call in run_mock.call_args_list if call.args[0][0] == "ffmpegthumbnailer"]
        self.assertEqual(
            [Path(argv[argv.index("-i") + 1]).name for argv in thumbnailer_calls],
            ["a.mp4", "b.mp4", "notes.txt"],
        )
        self.assertEqual(thumbnailer_calls[0][:3], ["ffmpegthumbnailer", "-s", "256"])
        lsix_argv = run_mock.call_args_list[-1].args[0]
        self.assertEqual(lsix_argv[0], "lsix")
        self.assertEqual([Path(p).name for p in lsix_argv[1:]], ["a.mp4.jpg", "b.mp4.jpg"])
        terminal.wait_for_keypress.assert_called_once_with()

    def test_no_thumbnails_skips_lsix(self) -> None:
        terminal = mock.Mock()
        out = io.StringIO()
        with tempfile.TemporaryDirectory() as tmp, mock.patch("sys.stdout", out), mock.patch(
            "panepreview.thumbs.subprocess.run", side_effect=_fake_thumbnailer
        ) as run_mock:
            (Path(tmp) / "readme.txt").write_text("x", encoding="utf-8")
            result = run_thumbs(Path(tmp), _caps("ffmpegthumbnailer", "lsix"), terminal)

        self.assertEqual(result, 0)
        self.assertNotIn("lsix", [call.args[0][0] for call in run_mock.call_args_list])
        self.assertIn("no thumbnails", out.getvalue())
        terminal.wait_for_keypress.assert_called_once_with()


if __name__ == "__main__":
    unittest.main()
