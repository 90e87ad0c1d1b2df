"""Run-level exceptions and the exit codes they map to."""

from __future__ import annotations


class InnBinderError(Exception):
    """Base class for errors that end a run with a specific exit code."""

    exit_code = 3


class UserInputError(InnBinderError):
    """Bad command-line input: unknown format, bad volume selector."""

    exit_code = 1


class NetworkError(InnBinderError):
    """The table of contents could not be fetched."""

    exit_code = 2


class FatalConsistencyError(InnBinderError):
    """On-disk state is missing or inconsistent; the run cannot continue."""

    exit_code = 3


class ManifestError(FatalConsistencyError):
    pass


class CacheMissError(FatalConsistencyError):
    pass


class RootNotFoundError(FatalConsistencyError):
    pass
