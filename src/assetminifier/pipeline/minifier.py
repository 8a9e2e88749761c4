"""
Run orchestration: select, stage, repack, clean up.

``AssetsMinifier.minify`` drives one run through its states and is the only
place that decides what a failure means. Every phase raises; the minifier
records the error, moves to FAILED and removes the staging directory on the
way out.
"""

import logging
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from assetminifier.archive.accessor import compression_for, open_for_read
from assetminifier.core.config import Settings, get_settings
from assetminifier.core.errors import MinifierError, StagingError
from assetminifier.extraction.extractor import stage_archives, staging_path
from assetminifier.packing.repacker import repack
from assetminifier.rules.filters import is_entry_included
from assetminifier.rules.ruleset import RuleSet
from assetminifier.selection.selector import SourceArchive, select_inputs, validate_selection

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    """Lifecycle of a minify run. CLEANED_UP and FAILED are terminal."""
    IDLE = "idle"
    RULES_PARSED = "rules_parsed"
    INPUTS_SELECTED = "inputs_selected"
    STAGED = "staged"
    REPACKED = "repacked"
    CLEANED_UP = "cleaned_up"
    FAILED = "failed"


@dataclass
class MinifyResult:
    """Outcome of a minify run."""
    state: RunState
    output_file: Path
    archives: List[SourceArchive] = field(default_factory=list)
    extracted: int = 0
    written: int = 0
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.CLEANED_UP


class AssetsMinifier:
    """
    Merge the accepted entries of every selected input archive into one output archive.
    """

    def __init__(
        self,
        input_dir: Union[str, Path],
        output_dir: Union[str, Path],
        rules: RuleSet,
        settings: Optional[Settings] = None,
    ):
        self.input_dir = Path(input_dir)
        self.output_dir = Path(output_dir)
        self.rules = rules
        self.settings = settings or get_settings()
        self.state = RunState.RULES_PARSED

    @property
    def output_file(self) -> Path:
        return self.rules.output_path(self.output_dir)

    @property
    def staging_dir(self) -> Path:
        return self.output_dir / self.settings.staging_dir_name

    def select(self) -> List[SourceArchive]:
        """Select and validate the input archives for this run."""
        logger.info(f"Checking {self.input_dir.resolve()} for valid assets files...")
        archives = select_inputs(
            self.input_dir,
            self.rules,
            recursive=self.settings.recursive_scan,
            exclude=(self.output_file, self.staging_dir),
            hash_algorithm=self.settings.hash_algorithm,
            hash_chunk_size=self.settings.hash_chunk_size,
        )
        validate_selection(archives, self.rules)
        if not archives:
            logger.warning(f"No input archives found in {self.input_dir}")
        return archives

    def plan(self) -> Dict[str, List[str]]:
        """
        Dry run: list, per selected archive, the entries that would be staged.

        Nothing is written to disk.
        """
        archives = self.select()
        self.state = RunState.INPUTS_SELECTED
        planned: Dict[str, List[str]] = {}
        for archive in archives:
            with open_for_read(archive.path) as zipf:
                planned[str(archive.path)] = [
                    info.filename
                    for info in zipf.infolist()
                    if not info.is_dir()
                    and is_entry_included(info.filename, self.rules)
                    and staging_path(self.staging_dir, info.filename) is not None
                ]
        return planned

    def _prepare_staging(self) -> Path:
        staging = self.staging_dir
        logger.info(f"Temporary extraction folder: {staging.resolve()}")
        try:
            if staging.exists() and not staging.is_dir():
                staging.unlink()
            staging.mkdir(parents=True, exist_ok=True)
            for child in staging.iterdir():
                if child.is_dir() and not child.is_symlink():
                    shutil.rmtree(child)
                else:
                    child.unlink()
        except OSError as e:
            raise StagingError(f"Cannot prepare staging directory ({e})", staging) from e
        return staging

    def _cleanup_staging(self) -> None:
        staging = self.staging_dir
        if not staging.exists():
            return
        try:
            shutil.rmtree(staging)
        except OSError as e:
            logger.warning(f"Failed to remove staging directory {staging}: {e}")

    def minify(self) -> MinifyResult:
        """
        Run the whole pipeline.

        Returns:
            MinifyResult in state CLEANED_UP on success, FAILED otherwise,
            with the error that stopped the run
        """
        self.state = RunState.RULES_PARSED
        result = MinifyResult(state=self.state, output_file=self.output_file)
        staging_claimed = False

        try:
            result.archives = self.select()
            self.state = RunState.INPUTS_SELECTED

            staging_claimed = True
            staging = self._prepare_staging()
            staged = stage_archives(
                result.archives, staging, self.rules, self.settings.copy_buffer_size
            )
            result.extracted = staged.extracted
            self.state = RunState.STAGED
            logger.info(f"Extracted {staged.extracted} files")

            logger.info(f"Archiving files to {self.output_file.resolve()}...")
            result.written = repack(
                staging,
                self.output_file,
                staged.timestamps,
                compression=compression_for(self.settings.compression),
                buffer_size=self.settings.copy_buffer_size,
            )
            self.state = RunState.REPACKED
        except (MinifierError, OSError) as e:
            logger.error(f"Minify run failed after state {self.state.value}: {e}")
            self.state = RunState.FAILED
            result.error = e
        finally:
            if staging_claimed:
                self._cleanup_staging()

        if self.state is not RunState.FAILED:
            self.state = RunState.CLEANED_UP
            logger.info("Done")
        result.state = self.state
        return result
