"""Unit tests for staging extraction."""

import os
import shutil
import tempfile
import unittest
from pathlib import Path

from conftest import corrupt_entry, write_zip

from assetminifier.core.errors import ArchiveReadError, StagingError
from assetminifier.extraction.extractor import (
    extract_archive,
    normalize_index_key,
    stage_archives,
)
from assetminifier.rules.ruleset import parse_rules
from assetminifier.selection.selector import SourceArchive

RULES = parse_rules([
    "OutFilename out.zip",
    "EntryWhitelist *.bsp",
    "EntryWhitelist models/*",
    "EntryBlacklist *_old.bsp",
])


class TestExtractArchive(unittest.TestCase):
    """Test cases for extract_archive and stage_archives."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.staging = self.temp_dir / "tmp"
        self.staging.mkdir()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def _archive(self, name, entries):
        return SourceArchive.from_path(write_zip(self.temp_dir / name, entries))

    def test_extracts_only_accepted_entries(self):
        archive = self._archive("pk1.zip", {
            "maps/": b"",
            "maps/map1.bsp": (b"bsp", (2019, 5, 4, 3, 2, 10)),
            "maps/map1_old.bsp": b"old",
            "readme.txt": b"hello",
        })
        timestamps = {}

        count = extract_archive(archive, self.staging, RULES, timestamps)

        self.assertEqual(count, 1)
        self.assertEqual((self.staging / "maps" / "map1.bsp").read_bytes(), b"bsp")
        self.assertFalse((self.staging / "maps" / "map1_old.bsp").exists())
        self.assertFalse((self.staging / "readme.txt").exists())
        self.assertEqual(timestamps, {normalize_index_key("maps/map1.bsp"): (2019, 5, 4, 3, 2, 10)})

    def test_directory_marker_creates_directory(self):
        archive = self._archive("pk1.zip", {"models/": b"", "models/empty/": b""})

        count = extract_archive(archive, self.staging, RULES, {})

        self.assertEqual(count, 0)
        self.assertTrue((self.staging / "models" / "empty").is_dir())

    def test_entry_without_timestamp_keeps_previous_mapping(self):
        key = normalize_index_key("models/x.md3")
        timestamps = {key: (2018, 1, 2, 3, 4, 6)}
        archive = self._archive("pk1.zip", {"models/x.md3": (b"new", (1980, 0, 0, 0, 0, 0))})

        extract_archive(archive, self.staging, RULES, timestamps)

        self.assertEqual(timestamps[key], (2018, 1, 2, 3, 4, 6))
        self.assertEqual((self.staging / "models" / "x.md3").read_bytes(), b"new")

    def test_unsafe_entries_are_skipped(self):
        archive = self._archive("pk1.zip", {
            "../escape.bsp": b"evil",
            "maps/../../escape2.bsp": b"evil",
            "maps/ok.bsp": b"ok",
        })

        count = extract_archive(archive, self.staging, RULES, {})

        self.assertEqual(count, 1)
        self.assertFalse((self.temp_dir / "escape.bsp").exists())
        self.assertFalse((self.temp_dir / "escape2.bsp").exists())

    def test_invalid_archive_raises(self):
        path = self.temp_dir / "broken.zip"
        path.write_bytes(b"this is not a zip archive")

        with self.assertRaises(ArchiveReadError) as ctx:
            extract_archive(SourceArchive.from_path(path), self.staging, RULES, {})
        self.assertEqual(ctx.exception.path, path)

    def test_corrupt_entry_raises_staging_error(self):
        path = write_zip(self.temp_dir / "pk1.zip", {"maps/map1.bsp": b"map data " * 200})
        corrupt_entry(path, "maps/map1.bsp")

        with self.assertRaises(StagingError) as ctx:
            extract_archive(SourceArchive.from_path(path), self.staging, RULES, {})
        self.assertIn("maps/map1.bsp", str(ctx.exception))
        self.assertIn("pk1.zip", str(ctx.exception))

    def test_later_archives_overwrite_earlier_ones(self):
        first = self._archive("a.zip", {"models/x.md3": (b"from a", (2001, 1, 1, 0, 0, 0))})
        second = self._archive("b.zip", {"models/x.md3": (b"from b", (2002, 2, 2, 0, 0, 0))})

        result = stage_archives([first, second], self.staging, RULES)

        self.assertEqual(result.extracted, 2)
        self.assertEqual((self.staging / "models" / "x.md3").read_bytes(), b"from b")
        self.assertEqual(result.timestamps[normalize_index_key("models/x.md3")], (2002, 2, 2, 0, 0, 0))


def test_normalize_index_key():
    assert normalize_index_key("Maps/Map1.BSP") == os.path.join("maps", "map1.bsp")
    assert normalize_index_key("maps//./map1.bsp") == normalize_index_key("MAPS/map1.bsp")
