"""
Repack the staging tree into the output archive.

Files are written in sorted relative-path order so that identical staging
trees always produce entries in the same order. Each entry gets the timestamp
recorded during extraction when one is known, otherwise the staged file's own
modification time.
"""

import logging
import os
import shutil
import stat
import zipfile
import zlib
from pathlib import Path
from typing import Iterator, Mapping, Optional, Tuple, Union

from assetminifier.archive.accessor import DateTime, open_for_write
from assetminifier.core.errors import RepackError
from assetminifier.extraction.extractor import normalize_index_key

logger = logging.getLogger(__name__)


def iter_staged_files(staging_root: Union[str, Path]) -> Iterator[Tuple[Path, str]]:
    """
    Yield (absolute path, entry name) for every regular file in the tree.

    Entry names are relative to ``staging_root`` and use forward slashes.
    """
    staging_root = Path(staging_root)
    for dirpath, dirnames, filenames in os.walk(staging_root):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if not path.is_file():
                continue
            relative = os.path.relpath(path, staging_root)
            yield path, relative.replace(os.sep, "/")


def _entry_info(path: Path, entry_name: str, date_time: Optional[DateTime], compression: int) -> zipfile.ZipInfo:
    if date_time is None:
        info = zipfile.ZipInfo.from_file(path, entry_name, strict_timestamps=False)
    else:
        info = zipfile.ZipInfo(entry_name, date_time=date_time)
        info.file_size = path.stat().st_size
        info.external_attr = (stat.S_IFREG | 0o644) << 16
    info.compress_type = compression
    return info


def repack(
    staging_root: Union[str, Path],
    output_file: Union[str, Path],
    timestamps: Mapping[str, DateTime],
    compression: int = zipfile.ZIP_DEFLATED,
    buffer_size: int = 64 * 1024,
) -> int:
    """
    Write every staged file into a new output archive.

    Args:
        staging_root: Root of the staging tree
        output_file: Archive to create; an existing file is overwritten
        timestamps: Original entry times keyed by normalized relative path
        compression: zipfile compression constant for every entry
        buffer_size: Copy buffer size

    Returns:
        Number of entries written

    Raises:
        RepackError: If the archive or any entry cannot be written. The output
            file may be left incomplete.
    """
    written = 0
    with open_for_write(output_file, compression) as zipf:
        for path, entry_name in iter_staged_files(staging_root):
            date_time = timestamps.get(normalize_index_key(entry_name))
            try:
                info = _entry_info(path, entry_name, date_time, compression)
                with open(path, "rb") as src, zipf.open(info, "w") as dst:
                    shutil.copyfileobj(src, dst, buffer_size)
            except (OSError, ValueError, zlib.error) as e:
                raise RepackError(f"Failed to add '{entry_name}' to {output_file} ({e})", path) from e
            written += 1
            logger.debug(f"Packed {entry_name}")
    return written
