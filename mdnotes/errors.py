"""Error taxonomy shared by the storage engine, repositories and gateway."""

from __future__ import annotations


class MdNotesError(Exception):
    """Base class for every error raised by the data layer."""


class StoreConnectionError(MdNotesError):
    """The database file or its directory could not be opened/created."""


class StatementError(MdNotesError):
    """A statement was malformed or violated a constraint."""


class NotFoundError(MdNotesError):
    """A referenced uuid or tag id does not resolve."""


class ValidationError(MdNotesError):
    """A request payload is missing a required field or has the wrong shape."""
