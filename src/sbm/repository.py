"""Load and save the bookmark store.

StoreRepository is the only code that touches data.json:

    repo = StoreRepository(cfg)
    store = repo.load(confirm=click.confirm)
    ...mutate store...
    repo.save(store)

A missing data file is a two-step bootstrap: load() asks for consent, writes
an empty store, and raises StoreCreated so the caller exits without running
the requested command. The user then re-runs it against the new store.
"""

from __future__ import annotations

import contextlib
import fcntl
import logging
from typing import TYPE_CHECKING

from sbm.codec import decode, encode
from sbm.errors import DeclinedError, PersistenceError, StoreCreated
from sbm.models import Store

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from sbm.config import SBMConfig

logger = logging.getLogger("sbm.repository")


class StoreRepository:
    """data.json-backed store lifecycle."""

    def __init__(self, cfg: SBMConfig) -> None:
        self.cfg = cfg

    @property
    def path(self) -> Path:
        return self.cfg.data_path

    def exists(self) -> bool:
        return self.path.exists()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def load(self, confirm: Callable[[str], bool]) -> Store:
        """Read and decode the store.

        Raises StoreCreated after bootstrapping a missing file, DeclinedError if
        the user refuses the bootstrap, and DecodeError for a corrupt file.
        """
        self.cfg.ensure_dirs()
        if not self.exists():
            if not confirm(f"Could not find '{self.path}'. Create a new store?"):
                msg = "Store not created"
                raise DeclinedError(msg)
            self.create()
            raise StoreCreated(self.path)

        try:
            data = self.path.read_bytes()
        except OSError as exc:
            msg = f"Could not read {self.path}: {exc}"
            raise PersistenceError(msg) from exc

        store = decode(data)
        logger.info("loaded %s: %d rows, %d tags", self.path, store.row_count, store.tag_count)
        return store

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def create(self) -> Store:
        """Write an empty store (both counters at 1) and return it."""
        store = Store()
        self.save(store)
        logger.info("created empty store at %s", self.path)
        return store

    def save(self, store: Store) -> None:
        """Encode and write the store: temp file under exclusive flock, then rename."""
        try:
            data = encode(store)
        except UnicodeEncodeError as exc:
            msg = f"Could not save to {self.path}: text is not valid UTF-8 ({exc.reason})"
            raise PersistenceError(msg) from exc
        self.cfg.ensure_dirs()
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            with tmp.open("wb") as f:
                fcntl.flock(f, fcntl.LOCK_EX)
                written = f.write(data)
                if written != len(data):
                    msg = f"short write ({written} of {len(data)} bytes)"
                    raise OSError(msg)
            tmp.replace(self.path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                tmp.unlink()
            msg = f"Could not save to {self.path}: {exc}"
            raise PersistenceError(msg) from exc
        logger.info("saved %s: %d rows, %d tags", self.path, store.row_count, store.tag_count)
