"""Fetch a web page just far enough to read its <title>."""

from __future__ import annotations

import logging
import urllib.error
import urllib.request
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup

from sbm.errors import FetchError

if TYPE_CHECKING:
    from sbm.config import SBMConfig

logger = logging.getLogger("sbm.fetcher")

_CHUNK = 4096
# Reading stops once either closing marker has arrived.
_STOP_MARKERS = (b"</title>", b"</header>")
# Bytes kept from the previous scan so a marker split across chunks is still seen.
_OVERLAP = max(len(m) for m in _STOP_MARKERS) - 1


def fetch_page(url: str, cfg: SBMConfig) -> str:
    """Download the start of a page, up to its closing </title> or </header>.

    Raises FetchError on network or HTTP failure.
    """
    buf = bytearray()
    scanned = 0
    try:
        req = urllib.request.Request(url, headers={"User-Agent": cfg.user_agent})  # noqa: S310
        with urllib.request.urlopen(req, timeout=cfg.fetch_timeout) as resp:  # noqa: S310
            charset = resp.headers.get_content_charset() or "utf-8"
            while len(buf) < cfg.max_fetch_bytes:
                chunk = resp.read(_CHUNK)
                if not chunk:
                    break
                buf.extend(chunk)
                tail = bytes(buf[max(0, scanned - _OVERLAP) :]).lower()
                if any(marker in tail for marker in _STOP_MARKERS):
                    break
                scanned = len(buf)
    except (urllib.error.URLError, OSError, ValueError) as exc:
        reason = exc.reason if isinstance(exc, urllib.error.URLError) else exc
        msg = f"Could not download page: {reason}"
        raise FetchError(msg) from exc

    logger.debug("fetched %d bytes from %s", len(buf), url)
    try:
        return buf.decode(charset, errors="replace")
    except LookupError:
        return buf.decode("utf-8", errors="replace")


def extract_title(contents: str) -> str:
    """Return the whitespace-collapsed document <title>, or "" if there is none.

    A <title> inside <head> wins over one nested elsewhere (an inline <svg>, say).
    """
    soup = BeautifulSoup(contents, "html.parser")
    title = soup.head.find("title") if soup.head else None
    if title is None:
        title = soup.title
    if title is None:
        return ""
    return " ".join(title.get_text().split())


def fetch_title(url: str, cfg: SBMConfig) -> str:
    """Fetch url and extract its title. A page without a title yields ""."""
    contents = fetch_page(url, cfg)
    if not contents:
        logger.warning("No webpage contents read from %s", url)
        return ""
    title = extract_title(contents)
    if not title:
        logger.warning("No <title> tag found at %s", url)
    return title
