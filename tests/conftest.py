"""
Shared fixtures: small ZIP archives built on the fly.
"""

import zipfile
from pathlib import Path
from typing import Dict, Tuple, Union

import pytest

from assetminifier.core.config import Settings

DEFAULT_TIME = (2020, 1, 1, 12, 0, 0)

EntryValue = Union[bytes, Tuple[bytes, Tuple[int, int, int, int, int, int]]]


def write_zip(path: Path, entries: Dict[str, EntryValue]) -> Path:
    """
    Write a ZIP archive.

    Each value is either raw bytes (stamped with DEFAULT_TIME) or a
    (bytes, date_time) pair. Names ending in "/" become directory markers.
    """
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zipf:
        for name, value in entries.items():
            if isinstance(value, tuple):
                data, date_time = value
            else:
                data, date_time = value, DEFAULT_TIME
            zipf.writestr(zipfile.ZipInfo(name, date_time=date_time), data)
    return path


def read_zip(path: Path) -> Dict[str, Tuple[bytes, Tuple[int, ...]]]:
    """Return {entry name: (content, date_time)} for an archive."""
    with zipfile.ZipFile(path, "r") as zipf:
        return {info.filename: (zipf.read(info), tuple(info.date_time)) for info in zipf.infolist()}


@pytest.fixture
def input_dir(tmp_path: Path) -> Path:
    path = tmp_path / "input"
    path.mkdir()
    return path


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    path = tmp_path / "output"
    path.mkdir()
    return path


@pytest.fixture
def make_zip(input_dir: Path):
    """Factory writing an archive into the input directory."""
    def _make(name: str, entries: Dict[str, EntryValue]) -> Path:
        return write_zip(input_dir / name, entries)
    return _make


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


def corrupt_entry(path: Path, name: str) -> Path:
    """Overwrite the compressed payload of one entry with 0xFF bytes."""
    with zipfile.ZipFile(path, "r") as zipf:
        info = zipf.getinfo(name)
    with open(path, "r+b") as f:
        f.seek(info.header_offset + 26)
        name_len = int.from_bytes(f.read(2), "little")
        extra_len = int.from_bytes(f.read(2), "little")
        f.seek(info.header_offset + 30 + name_len + extra_len)
        f.write(b"\xff" * info.compress_size)
    return path
