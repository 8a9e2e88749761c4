"""
Tests for repacking the staging tree into the output archive.
"""

import os
import time
import zipfile

import pytest

from conftest import read_zip

from assetminifier.core.errors import RepackError
from assetminifier.extraction.extractor import normalize_index_key
from assetminifier.packing import repacker
from assetminifier.packing.repacker import iter_staged_files, repack


@pytest.fixture
def staging(tmp_path):
    root = tmp_path / "tmp"
    (root / "maps").mkdir(parents=True)
    (root / "models" / "players").mkdir(parents=True)
    (root / "empty").mkdir()
    (root / "maps" / "b.bsp").write_bytes(b"bbb")
    (root / "maps" / "a.bsp").write_bytes(b"aaa")
    (root / "models" / "players" / "Kyle.md3").write_bytes(b"kyle")
    (root / "z.cfg").write_bytes(b"cfg")
    return root


def test_iter_staged_files_is_sorted_and_uses_forward_slashes(staging):
    names = [name for _, name in iter_staged_files(staging)]
    assert names == ["z.cfg", "maps/a.bsp", "maps/b.bsp", "models/players/Kyle.md3"]


def test_repack_writes_every_file(staging, tmp_path):
    output = tmp_path / "out.zip"

    written = repack(staging, output, {})

    assert written == 4
    entries = read_zip(output)
    assert set(entries) == {"z.cfg", "maps/a.bsp", "maps/b.bsp", "models/players/Kyle.md3"}
    assert entries["models/players/Kyle.md3"][0] == b"kyle"
    # directories are not written as explicit entries
    assert not any(name.endswith("/") for name in entries)


def test_repack_restores_recorded_timestamps(staging, tmp_path):
    output = tmp_path / "out.zip"
    timestamps = {normalize_index_key("models/players/kyle.md3"): (2003, 7, 14, 18, 30, 42)}

    repack(staging, output, timestamps)

    entries = read_zip(output)
    assert entries["models/players/Kyle.md3"][1] == (2003, 7, 14, 18, 30, 42)


def test_repack_falls_back_to_file_mtime(staging, tmp_path):
    output = tmp_path / "out.zip"
    mtime = time.mktime((2021, 6, 15, 10, 20, 30, 0, 0, -1))
    os.utime(staging / "z.cfg", (mtime, mtime))

    repack(staging, output, {})

    assert read_zip(output)["z.cfg"][1] == (2021, 6, 15, 10, 20, 30)


def test_repack_uses_configured_compression(staging, tmp_path):
    output = tmp_path / "out.zip"

    repack(staging, output, {}, compression=zipfile.ZIP_STORED)

    with zipfile.ZipFile(output) as zipf:
        assert {info.compress_type for info in zipf.infolist()} == {zipfile.ZIP_STORED}


def test_repack_output_not_creatable(staging, tmp_path):
    with pytest.raises(RepackError):
        repack(staging, tmp_path / "missing" / "out.zip", {})


def test_repack_entry_failure_raises(staging, tmp_path, monkeypatch):
    vanished = staging / "maps" / "gone.bsp"

    def files_with_vanished_entry(root):
        yield from iter_staged_files(root)
        yield vanished, "maps/gone.bsp"

    monkeypatch.setattr(repacker, "iter_staged_files", files_with_vanished_entry)

    with pytest.raises(RepackError) as excinfo:
        repack(staging, tmp_path / "out.zip", {})

    assert "maps/gone.bsp" in str(excinfo.value)
    assert excinfo.value.path == vanished
