from __future__ import annotations

import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from panepreview.capabilities import Capabilities
from panepreview.classify import classify, file_extension, parse_file_mime


def _caps(*available: str) -> Capabilities:
    names = set(available)
    return Capabilities(environ={}, which=lambda command: command if command in names else None)


class ParseFileMimeTests(unittest.TestCase):
    def test_mime_and_charset(self) -> None:
        self.assertEqual(parse_file_mime("text/plain; charset=us-ascii\n"), ("text/plain", "us-ascii"))
        self.assertEqual(parse_file_mime("image/png; charset=binary"), ("image/png", "binary"))
        self.assertEqual(parse_file_mime("inode/x-empty"), ("inode/x-empty", ""))

    def test_extension_is_lowercased_suffix(self) -> None:
        self.assertEqual(file_extension(Path("a/Archive.TAR.GZ")), "gz")
        self.assertEqual(file_extension(Path("Makefile")), "")


class ClassifyTests(unittest.TestCase):
    def test_directory_needs_no_probe(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, mock.patch("panepreview.classify.subprocess.run") as run_mock:
            info = classify(Path(tmp), _caps("file"))
        self.assertTrue(info.is_dir)
        self.assertEqual(info.mime, "inode/directory")
        run_mock.assert_not_called()

    def test_uses_file_command_when_available(self) -> None:
        completed = subprocess.CompletedProcess([], 0, stdout="application/zip; charset=binary\n")
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "bundle.zip"
            target.write_bytes(b"PK\x03\x04")
            with mock.patch("panepreview.classify.subprocess.run", return_value=completed) as run_mock:
                info = classify(target, _caps("file"))

        self.assertEqual(run_mock.call_args.args[0], ["file", "-bL", "--mime", "--", str(target)])
        self.assertEqual(info.mime, "application/zip")
        self.assertTrue(info.is_binary)
        self.assertEqual(info.extension, "zip")

    def test_falls_back_to_mimetypes_and_nul_sniff(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            text = Path(tmp) / "notes.txt"
            text.write_text("hello\n", encoding="utf-8")
            blob = Path(tmp) / "blob"
            blob.write_bytes(b"\x00\x01\x02")
            noext = Path(tmp) / "README"
            noext.write_text("read me\n", encoding="utf-8")

            text_info = classify(text, _caps())
            blob_info = classify(blob, _caps())
            noext_info = classify(noext, _caps())

        self.assertEqual(text_info.mime, "text/plain")
        self.assertFalse(text_info.is_binary)
        self.assertEqual(blob_info.mime, "application/octet-stream")
        self.assertTrue(blob_info.is_binary)
        self.assertEqual(noext_info.mime, "text/plain")

    def test_failed_file_probe_uses_fallback(self) -> None:
        failed = subprocess.CompletedProcess([], 1, stdout="")
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "page.png"
            target.write_bytes(b"\x89PNG\r\n\x1a\n\x00")
            with mock.patch("panepreview.classify.subprocess.run", return_value=failed):
                info = classify(target, _caps("file"))
        self.assertEqual(info.mime, "image/png")
        self.assertTrue(info.is_binary)


if __name__ == "__main__":
    unittest.main()
