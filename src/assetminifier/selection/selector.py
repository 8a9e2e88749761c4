"""
Input archive discovery.

Scans the input directory for candidate archives and keeps those the rules
file accepts, verifying content hashes where the rules declare one.
"""

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence, Set, Union

from assetminifier.core.config import check_hash_algorithm
from assetminifier.core.errors import ConfigurationError, SelectionMismatchError
from assetminifier.rules.filters import accept_input_file
from assetminifier.rules.ruleset import RuleSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceArchive:
    """A selected input archive."""
    path: Path
    name: str  # lowercase filename, as keyed in the input filter

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "SourceArchive":
        path = Path(path)
        return cls(path=path, name=path.name.lower())


def file_digest(path: Union[str, Path], algorithm: str = "md5", chunk_size: int = 8192) -> str:
    """Calculate the hex digest of a file's full content."""
    file_hash = hashlib.new(algorithm)
    with open(path, "rb") as f:
        chunk = f.read(chunk_size)
        while chunk:
            file_hash.update(chunk)
            chunk = f.read(chunk_size)
    return file_hash.hexdigest()


def _is_excluded(path: Path, excluded: Set[Path]) -> bool:
    resolved = path.resolve()
    return any(resolved == ex or ex in resolved.parents for ex in excluded)


def _iter_candidates(input_dir: Path, recursive: bool) -> Iterator[Path]:
    entries = input_dir.rglob("*") if recursive else input_dir.iterdir()
    for path in sorted(entries):
        if path.is_file():
            yield path


def select_inputs(
    input_dir: Union[str, Path],
    rules: RuleSet,
    recursive: bool = False,
    exclude: Iterable[Union[str, Path]] = (),
    hash_algorithm: str = "md5",
    hash_chunk_size: int = 8192,
) -> List[SourceArchive]:
    """
    Find the source archives for a run.

    Args:
        input_dir: Directory holding the candidate archives
        rules: Parsed rules providing the input filter
        recursive: Descend into subdirectories instead of a flat scan
        exclude: Files or directories never treated as candidates
            (the output archive and the staging directory)
        hash_algorithm: hashlib algorithm used for InputFile hashes
        hash_chunk_size: Read size used while hashing

    Returns:
        Accepted archives, ordered by path

    Raises:
        ConfigurationError: If hash_algorithm is not a usable hashlib algorithm
    """
    try:
        hash_algorithm = check_hash_algorithm(hash_algorithm)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    input_dir = Path(input_dir)
    if not input_dir.is_dir():
        logger.warning(f"Input directory {input_dir} does not exist; no archives selected")
        return []

    excluded = {Path(p).resolve() for p in exclude}

    def digest(path: Path) -> str:
        return file_digest(path, hash_algorithm, hash_chunk_size)

    selected: List[SourceArchive] = []
    for path in _iter_candidates(input_dir, recursive):
        if excluded and _is_excluded(path, excluded):
            continue
        if accept_input_file(path, rules, digest):
            logger.info(f"Found {path.resolve()}")
            selected.append(SourceArchive.from_path(path))

    return selected


def validate_selection(selected: Sequence[SourceArchive], rules: RuleSet) -> None:
    """
    Check that every declared input archive was found exactly once.

    Raises:
        SelectionMismatchError: If an input filter is declared and the number
            of selected archives differs from it
    """
    if not rules.input_filter:
        return

    if len(selected) != len(rules.input_filter):
        found = {archive.name for archive in selected}
        missing = set(rules.input_filter) - found
        raise SelectionMismatchError(
            expected=len(rules.input_filter),
            found=len(selected),
            missing=missing,
        )
