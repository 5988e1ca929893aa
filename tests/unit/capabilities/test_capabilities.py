"""Tests for environment and command capability probes."""

from __future__ import annotations

import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from panepreview.capabilities import Capabilities, parse_tmux_version


def _which_from(available: set[str]):
    return lambda command: f"/usr/bin/{command}" if command in available else None


class ParseTmuxVersionTests(unittest.TestCase):
    def test_parses_release_and_suffixed_versions(self) -> None:
        self.assertEqual(parse_tmux_version("tmux 3.3a\n"), (3, 3))
        self.assertEqual(parse_tmux_version("tmux next-3.4"), (3, 4))
        self.assertEqual(parse_tmux_version("tmux 2.9"), (2, 9))

    def test_unparseable_output_is_none(self) -> None:
        self.assertIsNone(parse_tmux_version("tmux master"))


class CapabilitiesTests(unittest.TestCase):
    def test_command_probe_is_cached(self) -> None:
        which = mock.Mock(return_value="/usr/bin/bat")
        caps = Capabilities(environ={}, which=which)

        self.assertTrue(caps.has("bat"))
        self.assertTrue(caps.has("bat"))
        which.assert_called_once_with("bat")

    def test_first_available_respects_order(self) -> None:
        caps = Capabilities(environ={}, which=_which_from({"exa", "ls"}))
        self.assertEqual(caps.first_available("tree", "eza", "exa", "ls"), "exa")
        self.assertIsNone(caps.first_available("tree", "eza"))

    def test_tmux_usable_requires_session_and_minimum_version(self) -> None:
        completed = subprocess.CompletedProcess(["tmux", "-V"], 0, stdout="tmux 3.2a\n")
        with mock.patch("panepreview.capabilities.subprocess.run", return_value=completed) as run_mock:
            caps = Capabilities(environ={"TMUX": "/tmp/tmux-1000/default,1,0"}, which=_which_from({"tmux"}))
            self.assertTrue(caps.tmux_usable)
            self.assertEqual(caps.tmux_version(), (3, 2))
        run_mock.assert_called_once()

        old = subprocess.CompletedProcess(["tmux", "-V"], 0, stdout="tmux 2.8\n")
        with mock.patch("panepreview.capabilities.subprocess.run", return_value=old):
            caps = Capabilities(environ={"TMUX": "x"}, which=_which_from({"tmux"}))
            self.assertFalse(caps.tmux_usable)

        caps = Capabilities(environ={}, which=_which_from({"tmux"}))
        self.assertFalse(caps.tmux_usable)

    def test_kitty_flags(self) -> None:
        caps = Capabilities(environ={"KITTY_LISTEN_ON": "unix:/tmp/kitty"}, which=_which_from({"kitty"}))
        self.assertTrue(caps.kitty_remote_control)
        self.assertFalse(caps.kitty_graphics)

        self.assertTrue(Capabilities(environ={"TERM": "xterm-kitty"}, which=_which_from(set())).kitty_graphics)
        self.assertTrue(Capabilities(environ={"KITTY_WINDOW_ID": "3"}, which=_which_from(set())).kitty_graphics)
        self.assertFalse(Capabilities(environ={"KITTY_LISTEN_ON": "x"}, which=_which_from(set())).kitty_remote_control)

    def test_wsl_detection_from_env_or_proc_version(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            proc_version = Path(tmp) / "version"
            proc_version.write_text("Linux version 5.15.90.1-microsoft-standard-WSL2\n", encoding="utf-8")
            caps = Capabilities(environ={}, which=_which_from(set()), proc_version_path=proc_version)
            self.assertTrue(caps.is_wsl)

            caps = Capabilities(
                environ={}, which=_which_from(set()), proc_version_path=Path(tmp) / "missing"
            )
            self.assertFalse(caps.is_wsl)

        caps = Capabilities(environ={"WSL_DISTRO_NAME": "Ubuntu"}, which=_which_from(set()))
        self.assertTrue(caps.is_wsl)

    def test_probed_commands_reports_every_known_command(self) -> None:
        caps = Capabilities(environ={}, which=_which_from({"bat"}))
        probed = caps.probed_commands()
        self.assertTrue(probed["bat"])
        self.assertFalse(probed["tree"])


if __name__ == "__main__":
    unittest.main()
