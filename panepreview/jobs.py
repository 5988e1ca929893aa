"""In-process registry of render jobs.

Holds at most one pager job and one image job. Stopping a job is best-effort:
a process that already exited counts as stopped.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Protocol

logger = logging.getLogger(__name__)

TERMINATE_GRACE_SECONDS = 2.0


class Job(Protocol):
    def stop(self) -> None: ...

    def alive(self) -> bool: ...


def terminate_process(proc: subprocess.Popen) -> None:
    """Send the default termination signal and reap ``proc``."""
    try:
        proc.terminate()
    except (ProcessLookupError, OSError):
        pass
    try:
        proc.wait(timeout=TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        logger.debug("pid %s ignored SIGTERM, killing", proc.pid)
        try:
            proc.kill()
        except (ProcessLookupError, OSError):
            pass
        proc.wait()


class ProcessJob:
    """One or more child processes stopped together."""

    def __init__(self, *processes: subprocess.Popen) -> None:
        self.processes = list(processes)

    def stop(self) -> None:
        for proc in self.processes:
            terminate_process(proc)

    def alive(self) -> bool:
        return any(proc.poll() is None for proc in self.processes)


class JobRegistry:
    def __init__(self) -> None:
        self.pager: Job | None = None
        self.image: Job | None = None

    def set_pager(self, job: Job) -> None:
        self.stop_pager()
        self.pager = job

    def set_image(self, job: Job) -> None:
        self.stop_image()
        self.image = job

    def stop_pager(self) -> None:
        job, self.pager = self.pager, None
        if job is not None:
            job.stop()

    def stop_image(self) -> None:
        job, self.image = self.image, None
        if job is not None:
            job.stop()

    def stop_all(self) -> None:
        self.stop_pager()
        self.stop_image()

    def active_jobs(self) -> list[Job]:
        return [job for job in (self.pager, self.image) if job is not None and job.alive()]
