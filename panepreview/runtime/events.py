"""Events consumed by the preview session loop."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SelectionArrived:
    path: Path


@dataclass(frozen=True)
class ResizeRequested:
    pass


@dataclass(frozen=True)
class ShutdownRequested:
    reason: str


PreviewEvent = SelectionArrived | ResizeRequested | ShutdownRequested
