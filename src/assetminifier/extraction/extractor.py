"""
Selective extraction of source archives into the staging directory.

Archives are processed in selection order; a later archive overwrites files
staged by an earlier one at the same relative path. The original timestamp of
every staged file is recorded in a TimestampIndex that the repacker consumes.
"""

import logging
import os
import shutil
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, Optional, Union

from assetminifier.archive.accessor import DateTime, entry_timestamp, open_for_read
from assetminifier.core.errors import StagingError
from assetminifier.rules.filters import is_entry_included
from assetminifier.rules.ruleset import RuleSet
from assetminifier.selection.selector import SourceArchive

logger = logging.getLogger(__name__)

TimestampIndex = Dict[str, DateTime]


@dataclass
class StagingResult:
    """Outcome of the extraction phase."""
    extracted: int = 0
    timestamps: TimestampIndex = field(default_factory=dict)


def normalize_index_key(relative_path: str) -> str:
    """
    Key used for the TimestampIndex: lowercased, with OS separators.

    Both archive entry names ("a/B.txt") and staged relative paths
    ("a\\B.txt" on Windows) map to the same key.
    """
    return os.path.normpath(relative_path.replace("/", os.sep)).lower()


def staging_path(staging_root: Path, entry_name: str) -> Optional[Path]:
    """Map an entry name into the staging tree, or None if it would escape it."""
    posix = PurePosixPath(entry_name)
    if posix.is_absolute() or ".." in posix.parts:
        return None
    parts = [p for p in posix.parts if p not in ("", ".")]
    if not parts or ":" in parts[0]:
        return None
    return staging_root.joinpath(*parts)


def _copy_entry(
    zipf: zipfile.ZipFile, info: zipfile.ZipInfo, target: Path, buffer_size: int
) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with zipf.open(info, "r") as src, open(target, "wb") as dst:
        shutil.copyfileobj(src, dst, buffer_size)


def extract_archive(
    archive: SourceArchive,
    staging_root: Union[str, Path],
    rules: RuleSet,
    timestamps: TimestampIndex,
    buffer_size: int = 64 * 1024,
) -> int:
    """
    Extract the entries of one archive accepted by the rules.

    Args:
        archive: Source archive to read
        staging_root: Root of the staging tree
        rules: Parsed rules providing the entry whitelist/blacklist
        timestamps: Index updated with the original time of each staged file
        buffer_size: Copy buffer size

    Returns:
        Number of files written to the staging tree

    Raises:
        ArchiveReadError: If the archive cannot be opened as a ZIP container
        StagingError: If an entry cannot be read or written
    """
    staging_root = Path(staging_root)
    extracted = 0

    with open_for_read(archive.path) as zipf:
        for info in zipf.infolist():
            name = info.filename
            if not is_entry_included(name, rules):
                continue

            target = staging_path(staging_root, name)
            if target is None:
                logger.warning(f"Skipping potentially unsafe entry {name!r} in {archive.path}")
                continue

            try:
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                _copy_entry(zipf, info, target, buffer_size)
            except (OSError, zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError) as e:
                raise StagingError(f"Failed to stage entry '{name}' from {archive.path} ({e})", target) from e

            date_time = entry_timestamp(info)
            if date_time is not None:
                timestamps[normalize_index_key(name)] = date_time
            extracted += 1

    return extracted


def stage_archives(
    archives: Iterable[SourceArchive],
    staging_root: Union[str, Path],
    rules: RuleSet,
    buffer_size: int = 64 * 1024,
) -> StagingResult:
    """Extract every selected archive, in order, into the staging tree."""
    result = StagingResult()
    for archive in archives:
        logger.info(f"Extracting valid files from {archive.path.name}...")
        count = extract_archive(archive, staging_root, rules, result.timestamps, buffer_size)
        logger.debug(f"{count} files staged from {archive.path.name}")
        result.extracted += count
    return result
