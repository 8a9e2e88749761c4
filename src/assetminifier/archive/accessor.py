"""ZIP container primitives used by the extractor and the repacker.

Wraps ``zipfile`` so that opening failures surface as ``ArchiveIOError``
subclasses carrying the archive path, and so that both phases agree on how an
entry timestamp is represented (a ZIP ``date_time`` tuple).
"""

import contextlib
import zipfile
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

from assetminifier.core.errors import ArchiveReadError, RepackError
from assetminifier.core.settings import ZIP_EPOCH

DateTime = Tuple[int, int, int, int, int, int]

_COMPRESSION = {
    "deflated": zipfile.ZIP_DEFLATED,
    "stored": zipfile.ZIP_STORED,
}


def compression_for(name: str) -> int:
    """Map a configured compression name to a zipfile constant."""
    try:
        return _COMPRESSION[name]
    except KeyError:
        raise ValueError(f"Unsupported compression '{name}'") from None


@contextlib.contextmanager
def open_for_read(archive_path: Union[str, Path]) -> Iterator[zipfile.ZipFile]:
    """Open a source archive for streamed entry reads.

    Args:
        archive_path: Path to the archive file

    Raises:
        ArchiveReadError: If the file is missing or not a valid ZIP container
    """
    try:
        zipf = zipfile.ZipFile(archive_path, "r")
    except zipfile.BadZipFile as e:
        raise ArchiveReadError(f"Not a valid ZIP archive ({e})", archive_path) from e
    except OSError as e:
        raise ArchiveReadError(f"Cannot open archive ({e.strerror or e})", archive_path) from e

    with zipf:
        yield zipf


@contextlib.contextmanager
def open_for_write(
    archive_path: Union[str, Path],
    compression: int = zipfile.ZIP_DEFLATED,
) -> Iterator[zipfile.ZipFile]:
    """Create (or truncate) the output archive for streamed entry writes.

    The central directory is written when the context exits.

    Raises:
        RepackError: If the output file cannot be created
    """
    try:
        zipf = zipfile.ZipFile(archive_path, "w", compression=compression)
    except OSError as e:
        raise RepackError(f"Cannot create output archive ({e.strerror or e})", archive_path) from e

    with zipf:
        yield zipf


def entry_timestamp(info: zipfile.ZipInfo) -> Optional[DateTime]:
    """Return the entry's last-modified time, or None if the entry carries none.

    A zeroed DOS date field decodes with month and day 0; such entries have
    no usable timestamp.
    """
    date_time = tuple(info.date_time)
    if len(date_time) != 6:
        return None
    year, month, day = date_time[:3]
    if month == 0 or day == 0 or year < ZIP_EPOCH[0]:
        return None
    return date_time  # type: ignore[return-value]
