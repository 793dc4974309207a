"""Hand a URL to an external viewer (xdg-open by default)."""

from __future__ import annotations

import logging
import shlex
import subprocess
import webbrowser
from typing import TYPE_CHECKING

from sbm.errors import ViewerError

if TYPE_CHECKING:
    from sbm.config import SBMConfig

logger = logging.getLogger("sbm.viewer")


def open_url(url: str, cfg: SBMConfig) -> None:
    """Open url with cfg.opener, or Python's webbrowser when the opener is empty.

    Raises ViewerError if the viewer cannot be started or reports failure.
    """
    if not cfg.opener.strip():
        if not webbrowser.open(url):
            msg = "Could not open URL: no browser acknowledged the request"
            raise ViewerError(msg)
        return

    cmd = [*shlex.split(cfg.opener), url]
    logger.info("opening with: %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, check=False)  # noqa: S603
    except OSError as exc:
        msg = f"Could not open URL: {exc}"
        raise ViewerError(msg) from exc
    if result.returncode != 0:
        msg = f"Could not open URL: {cmd[0]} exited with status {result.returncode}"
        raise ViewerError(msg)
