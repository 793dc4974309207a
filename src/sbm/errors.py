"""Exception hierarchy for the bookmark store.

Core modules raise these; only the CLI translates them into exit codes.
"""

from __future__ import annotations


class SBMError(Exception):
    """Base class for every error the store reports to the user."""


class ValidationError(SBMError):
    """Malformed or missing argument, or a tag name that breaks the naming rules."""


class NotFoundError(SBMError):
    """A row or tag reference does not resolve to a live entry."""


class RowNotFoundError(NotFoundError):
    def __init__(self, row_id: int | str) -> None:
        super().__init__(f"URL ID {row_id} could not be found")
        self.row_id = row_id


class TagNotFoundError(NotFoundError):
    def __init__(self, ref: int | str) -> None:
        super().__init__(f"Could not find tag '{ref}'")
        self.ref = ref


class CapacityExceededError(SBMError):
    """Every tag slot on a row is already taken."""


class PersistenceError(SBMError):
    """The backing file cannot be read, created or written."""


class DecodeError(PersistenceError):
    """The backing file exists but does not hold a well-formed store."""


class ExternalFailure(SBMError):
    """A collaborator outside the process (network, viewer) failed."""


class FetchError(ExternalFailure):
    pass


class ViewerError(ExternalFailure):
    pass


class DeclinedError(SBMError):
    """The user answered "no" to a confirmation prompt."""


class StoreCreated(SBMError):  # noqa: N818
    """A fresh store was written on first run; the command must be re-run."""

    def __init__(self, path: object) -> None:
        super().__init__(f"Store created at {path}. Re-run your last command.")
        self.path = path
