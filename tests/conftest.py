"""Shared fixtures for sbm tests."""

from datetime import datetime

import pytest

from sbm.config import SBMConfig
from sbm.models import Store


@pytest.fixture
def cfg(tmp_path):
    """Config rooted in a throwaway directory."""
    return SBMConfig(root=tmp_path / "sbm")


@pytest.fixture
def store():
    """Store with tags reading(1), work(2), news(3) and three rows.

    Row 1 "Example Domain" has tags [1]; row 2 "Python Docs" has [2];
    row 3 "Hacker News" has [1, 3].
    """
    s = Store()
    for name in ("reading", "work", "news"):
        s.append_tag(name)
    stamp = datetime(2024, 1, 31, 9, 15, 0)
    for url, title, tags in (
        ("https://example.com", "Example Domain", [1]),
        ("https://docs.python.org", "Python Docs", [2]),
        ("https://news.ycombinator.com", "Hacker News", [1, 3]),
    ):
        row = s.append_row(url, title=title, tag_ids=tags)
        row.updated_at = stamp
    return s
