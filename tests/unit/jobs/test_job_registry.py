"""Tests for job stopping and the one-pager/one-image registry."""

from __future__ import annotations

import subprocess
import unittest
from unittest import mock

from panepreview.jobs import JobRegistry, ProcessJob, terminate_process


class FakeJob:
    def __init__(self, log: list[str], name: str) -> None:
        self.log = log
        self.name = name
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True
        self.log.append(f"stop {self.name}")

    def alive(self) -> bool:
        return not self.stopped


class TerminateProcessTests(unittest.TestCase):
    def test_terminate_then_wait(self) -> None:
        proc = mock.Mock()
        terminate_process(proc)
        proc.terminate.assert_called_once_with()
        proc.wait.assert_called_once()
        proc.kill.assert_not_called()

    def test_kills_when_grace_period_expires(self) -> None:
        proc = mock.Mock()
        proc.wait.side_effect = [subprocess.TimeoutExpired("less", 2.0), 0]
        terminate_process(proc)
        proc.kill.assert_called_once_with()
        self.assertEqual(proc.wait.call_count, 2)

    def test_already_exited_process_is_ignored(self) -> None:
        proc = mock.Mock()
        proc.terminate.side_effect = ProcessLookupError()
        terminate_process(proc)
        proc.wait.assert_called_once()


class ProcessJobTests(unittest.TestCase):
    def test_stop_terminates_every_process_and_alive_polls(self) -> None:
        first, second = mock.Mock(), mock.Mock()
        first.poll.return_value = 0
        second.poll.return_value = None
        job = ProcessJob(first, second)

        self.assertTrue(job.alive())
        job.stop()
        first.terminate.assert_called_once_with()
        second.terminate.assert_called_once_with()


class JobRegistryTests(unittest.TestCase):
    def test_setting_a_job_stops_the_previous_one(self) -> None:
        log: list[str] = []
        registry = JobRegistry()
        first, second = FakeJob(log, "a"), FakeJob(log, "b")

        registry.set_pager(first)
        registry.set_pager(second)

        self.assertTrue(first.stopped)
        self.assertIs(registry.pager, second)
        self.assertEqual(registry.active_jobs(), [second])

    def test_stop_all_stops_pager_then_image_and_empties_registry(self) -> None:
        log: list[str] = []
        registry = JobRegistry()
        registry.set_pager(FakeJob(log, "pager"))
        registry.set_image(FakeJob(log, "image"))

        registry.stop_all()
        registry.stop_all()

        self.assertEqual(log, ["stop pager", "stop image"])
        self.assertIsNone(registry.pager)
        self.assertIsNone(registry.image)
        self.assertEqual(registry.active_jobs(), [])


if __name__ == "__main__":
    unittest.main()
