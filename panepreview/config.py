"""Preview configuration from the JSON config file and the environment.

Environment variables win over the config file; the file wins over defaults.
All access is defensive: malformed or missing config falls back safely.
The launcher forwards the resolved configuration to the in-pane process
through ``PreviewConfig.to_environment``.
"""

from __future__ import annotations

import json
import os
import shlex
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path

from platformdirs import user_config_dir, user_log_dir

APP_NAME = "panepreview"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
LOG_PATH = Path(user_log_dir(APP_NAME, appauthor=False)) / f"{APP_NAME}.log"

DEFAULT_PAGER = "less -R"
SPLIT_CHOICES = ("h", "v")
IMAGE_BACKEND_CHOICES = ("auto", "kitty", "quicklook", "ueberzug", "catimg", "viu", "chafa", "none")
_TRUE_VALUES = {"1", "true", "yes", "on"}

# First variable that is set wins. The PANEPREVIEW_* name is also the one
# forwarded to the preview-mode child.
ENVIRONMENT_NAMES: dict[str, tuple[str, ...]] = {
    "fifo": ("PANEPREVIEW_FIFO", "NNN_FIFO"),
    "pager": ("PANEPREVIEW_PAGER", "PAGER"),
    "split": ("PANEPREVIEW_SPLIT", "SPLIT"),
    "split_percent": ("PANEPREVIEW_SPLIT_PERCENT",),
    "terminal": ("PANEPREVIEW_TERMINAL", "TERMINAL"),
    "style": ("PANEPREVIEW_STYLE",),
    "bat_style": ("PANEPREVIEW_BAT_STYLE", "BAT_STYLE"),
    "bat_theme": ("PANEPREVIEW_BAT_THEME", "BAT_THEME"),
    "use_scope": ("PANEPREVIEW_USE_SCOPE", "USE_SCOPE"),
    "use_pistol": ("PANEPREVIEW_USE_PISTOL", "USE_PISTOL"),
    "quicklook_path": ("PANEPREVIEW_QLPATH", "QLPATH"),
    "image_backend": ("PANEPREVIEW_IMAGE_BACKEND",),
    "no_color": ("PANEPREVIEW_NO_COLOR", "NO_COLOR"),
    "show_hidden": ("PANEPREVIEW_SHOW_HIDDEN",),
    "instance": ("PANEPREVIEW_ID",),
    "host_pid": ("PANEPREVIEW_HOST_PID",),
    "tmpdir": ("PANEPREVIEW_TMPDIR", "TMPDIR"),
    "log_level": ("PANEPREVIEW_LOG_LEVEL",),
}


@dataclass(frozen=True)
class PreviewConfig:
    """Resolved settings shared by the launcher and the preview loop."""

    fifo: str = ""
    pager: str = DEFAULT_PAGER
    split: str = ""
    split_percent: int = 50
    terminal: str = ""
    style: str = "monokai"
    bat_style: str = "numbers"
    bat_theme: str = ""
    use_scope: bool = False
    use_pistol: bool = False
    quicklook_path: str = ""
    image_backend: str = "auto"
    no_color: bool = False
    show_hidden: bool = False
    instance: str = ""
    host_pid: int = 0
    tmpdir: str = ""
    log_level: str = ""

    @property
    def pager_argv(self) -> list[str]:
        try:
            argv = shlex.split(self.pager)
        except ValueError:
            argv = []
        return argv or shlex.split(DEFAULT_PAGER)

    @property
    def scratch_dir(self) -> Path:
        return Path(self.tmpdir) if self.tmpdir else Path(tempfile.gettempdir())

    def to_environment(self) -> dict[str, str]:
        """Return the fixed variable set that recreates this config in a child."""
        out: dict[str, str] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            name = ENVIRONMENT_NAMES[item.name][0]
            if isinstance(value, bool):
                out[name] = "1" if value else "0"
            elif value in ("", 0):
                continue
            else:
                out[name] = str(value)
        return out


def load_config(path: Path | None = None) -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    config_path = path if path is not None else CONFIG_PATH
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def _coerce(raw: object, default: object) -> object:
    """Convert a raw env/file value to the type of ``default``."""
    if isinstance(default, bool):
        if isinstance(raw, bool):
            return raw
        return str(raw).strip().lower() in _TRUE_VALUES
    if isinstance(default, int):
        if isinstance(raw, bool):
            return default
        try:
            return int(str(raw).strip())
        except ValueError:
            return default
    return str(raw).strip()


def load_preview_config(
    environ: Mapping[str, str] | None = None,
    config_data: Mapping[str, object] | None = None,
) -> PreviewConfig:
    """Resolve ``PreviewConfig`` from config file data and the environment."""
    env = os.environ if environ is None else environ
    data = load_config() if config_data is None else config_data
    defaults = PreviewConfig()
    values: dict[str, object] = {}

    for item in fields(PreviewConfig):
        default = getattr(defaults, item.name)
        raw: object | None = None
        for name in ENVIRONMENT_NAMES[item.name]:
            candidate = env.get(name)
            if candidate:
                raw = candidate
                break
        if raw is None and item.name in data:
            raw = data[item.name]
        if raw is not None:
            values[item.name] = _coerce(raw, default)

    config = replace(defaults, **values)
    if config.split not in SPLIT_CHOICES:
        config = replace(config, split="")
    if config.image_backend not in IMAGE_BACKEND_CHOICES:
        config = replace(config, image_backend="auto")
    if not 1 <= config.split_percent <= 99:
        config = replace(config, split_percent=defaults.split_percent)
    return config
