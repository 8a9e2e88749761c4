"""
Error taxonomy for a minify run.

Every failure listed here is fatal for the run; the orchestrator catches them
at its boundary, records them in the run result and cleans up the staging area.
"""

from pathlib import Path
from typing import Iterable, Optional, Union


class MinifierError(Exception):
    """Base class for all assetminifier errors."""


class ConfigurationError(MinifierError):
    """Rules file or command-line configuration is unusable."""


class SelectionMismatchError(MinifierError):
    """The input directory does not hold every archive the rules file declares."""

    def __init__(self, expected: int, found: int, missing: Iterable[str] = ()):
        self.expected = expected
        self.found = found
        self.missing = sorted(missing)
        message = f"missing expected input archives: expected {expected}, found {found}"
        if self.missing:
            message += f" (missing: {', '.join(self.missing)})"
        super().__init__(message)


class ArchiveIOError(MinifierError, OSError):
    """Archive open/read/write or staging filesystem failure."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else None
        if self.path is not None:
            message = f"{message}: {self.path}"
        super().__init__(message)


class ArchiveReadError(ArchiveIOError):
    """A source archive cannot be opened or read as a ZIP container."""


class StagingError(ArchiveIOError):
    """An accepted entry could not be copied into the staging directory."""


class RepackError(ArchiveIOError):
    """The output archive could not be written."""
