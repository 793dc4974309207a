"""SBMConfig: where the store lives and how the external helpers behave.

Default layout:

    ~/.config/sbm/          # or $SBM_HOME, or --home
        sbm.toml            # optional settings
        data.json           # the bookmark store

sbm.toml example:

    [sbm]
    data_file = "data.json"
    opener = "xdg-open"       # "" = use Python's webbrowser module
    fetch_timeout = 10
    user_agent = "sbm/0.1"
    max_fetch_bytes = 1048576
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sbm.errors import PersistenceError

_CONFIG_FILENAME = "sbm.toml"
_HOME_ENV = "SBM_HOME"
_DEFAULT_HOME = "~/.config/sbm"
_DEFAULT_DATA_FILE = "data.json"
_DEFAULT_OPENER = "xdg-open"
_DEFAULT_TIMEOUT = 10.0
_DEFAULT_USER_AGENT = "sbm/0.1"
_DEFAULT_MAX_FETCH_BYTES = 1024 * 1024


@dataclass
class SBMConfig:
    """Resolved configuration for one invocation."""

    root: Path                        # directory holding sbm.toml and the data file
    data_file: str = _DEFAULT_DATA_FILE
    opener: str = _DEFAULT_OPENER
    fetch_timeout: float = _DEFAULT_TIMEOUT
    user_agent: str = _DEFAULT_USER_AGENT
    max_fetch_bytes: int = _DEFAULT_MAX_FETCH_BYTES

    @property
    def data_path(self) -> Path:
        return self.root / self.data_file

    @property
    def config_path(self) -> Path:
        return self.root / _CONFIG_FILENAME

    def ensure_dirs(self) -> None:
        """Create the config directory if it does not exist."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = f"Could not create directory '{self.root}': {exc}"
            raise PersistenceError(msg) from exc


def _resolve_root(root: Path | str | None) -> Path:
    if root:
        return Path(root).expanduser()
    env_home = os.environ.get(_HOME_ENV)
    if env_home:
        return Path(env_home).expanduser()
    return Path(_DEFAULT_HOME).expanduser()


def load_config(root: Path | str | None = None) -> SBMConfig:
    """Load sbm.toml from root ($SBM_HOME or ~/.config/sbm when root is None)."""
    root_path = _resolve_root(root)
    config_path = root_path / _CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.exists():
        try:
            with config_path.open("rb") as f:
                raw = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            msg = f"Could not read {config_path}: {exc}"
            raise PersistenceError(msg) from exc

    section = raw.get("sbm", {})
    if not isinstance(section, dict):
        msg = f"Invalid {config_path}: [sbm] must be a table"
        raise PersistenceError(msg)
    try:
        return SBMConfig(
            root=root_path,
            data_file=str(section.get("data_file", _DEFAULT_DATA_FILE)),
            opener=str(section.get("opener", _DEFAULT_OPENER)),
            fetch_timeout=float(section.get("fetch_timeout", _DEFAULT_TIMEOUT)),
            user_agent=str(section.get("user_agent", _DEFAULT_USER_AGENT)),
            max_fetch_bytes=int(section.get("max_fetch_bytes", _DEFAULT_MAX_FETCH_BYTES)),
        )
    except (TypeError, ValueError) as exc:
        msg = f"Invalid value in {config_path}: {exc}"
        raise PersistenceError(msg) from exc


def init_config(root: Path) -> Path:
    """Write a default sbm.toml at root. Raises if one already exists."""
    config_path = root / _CONFIG_FILENAME
    if config_path.exists():
        msg = f"sbm.toml already exists at {config_path}"
        raise FileExistsError(msg)

    root.mkdir(parents=True, exist_ok=True)
    content = f"""\
[sbm]
# data_file = "{_DEFAULT_DATA_FILE}"
# opener = "{_DEFAULT_OPENER}"      # command used by `sbm open`; "" = Python webbrowser
# fetch_timeout = {int(_DEFAULT_TIMEOUT)}           # seconds, when fetching a page title
# user_agent = "{_DEFAULT_USER_AGENT}"
# max_fetch_bytes = {_DEFAULT_MAX_FETCH_BYTES}   # stop downloading after this many bytes
"""
    config_path.write_text(content)
    return config_path
