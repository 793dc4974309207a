"""Simple bookmark manager: one JSON file holding bookmarks and tags.

Layout:
    ~/.config/sbm/
        sbm.toml      # optional settings
        data.json     # {"tags": {id: name}, "rows": {id: [url, title, comment, updated_at, [tag ids]]}}

Every invocation loads data.json, runs one command against the in-memory
Store, and rewrites the file only if the command succeeded.
"""

from sbm.codec import decode, encode
from sbm.config import SBMConfig, init_config, load_config
from sbm.models import Row, Store, Tag
from sbm.repository import StoreRepository

__all__ = [
    "Row",
    "SBMConfig",
    "Store",
    "StoreRepository",
    "Tag",
    "decode",
    "encode",
    "init_config",
    "load_config",
]
