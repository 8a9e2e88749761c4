"""
Rules file model and parser.

A rules file is line oriented; each line holds at most one directive:

    OutFilename <filename>                 (required, last occurrence wins)
    InputFile <md5hex|0> <filename>        (0 = skip the hash check)
    EntryWhitelist <wildcard-pattern>
    EntryBlacklist <wildcard-pattern>      (wins over the whitelist)

Keywords are case-insensitive. Unknown or malformed lines are ignored rather
than rejected, so rules files may carry comments or notes freely.
"""

import logging
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from assetminifier.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class DirectiveKind(str, Enum):
    """Directives understood by the rules parser."""
    OUT_FILENAME = "outfilename"
    INPUT_FILE = "inputfile"
    ENTRY_WHITELIST = "entrywhitelist"
    ENTRY_BLACKLIST = "entryblacklist"


# Number of whitespace separated tokens each directive takes, keyword included
DIRECTIVE_ARITY: Dict[DirectiveKind, int] = {
    DirectiveKind.OUT_FILENAME: 2,
    DirectiveKind.INPUT_FILE: 3,
    DirectiveKind.ENTRY_WHITELIST: 2,
    DirectiveKind.ENTRY_BLACKLIST: 2,
}


class Directive(NamedTuple):
    """One recognized rules file line."""
    kind: DirectiveKind
    args: Tuple[str, ...]


class RuleSet(BaseModel):
    """Parsed rules: output name, input archive filter, entry allow/deny lists."""

    model_config = ConfigDict(frozen=True)

    output_name: str
    input_filter: Dict[str, str] = Field(default_factory=dict)
    whitelist: List[str] = Field(default_factory=list)
    blacklist: List[str] = Field(default_factory=list)

    @field_validator("output_name")
    @classmethod
    def _require_output_name(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("output name must not be empty")
        return value

    def output_path(self, output_dir: Union[str, Path]) -> Path:
        """Resolve the output archive against the output directory."""
        return Path(output_dir) / self.output_name

    def summary(self) -> Dict[str, Union[str, int]]:
        return {
            "output_name": self.output_name,
            "input_filters": len(self.input_filter),
            "whitelist_filters": len(self.whitelist),
            "blacklist_filters": len(self.blacklist),
        }


def _last_path_segment(value: str) -> str:
    return PurePosixPath(value.replace("\\", "/")).name


def classify_line(line: str) -> Optional[Directive]:
    """
    Classify a single rules file line.

    Args:
        line: Raw line from the rules file

    Returns:
        The recognized Directive, or None when the line should be ignored
    """
    stripped = line.strip()
    if not stripped:
        return None

    keyword = stripped.split(None, 1)[0].lower()
    try:
        kind = DirectiveKind(keyword)
    except ValueError:
        return None

    arity = DIRECTIVE_ARITY[kind]
    tokens = stripped.split(None, arity - 1)
    if len(tokens) != arity:
        return None

    return Directive(kind, tuple(tokens[1:]))


def parse_rules(lines: Iterable[str]) -> RuleSet:
    """
    Build a RuleSet from rules file lines.

    Raises:
        ConfigurationError: If no usable OutFilename directive is present
    """
    output_name: Optional[str] = None
    input_filter: Dict[str, str] = {}
    whitelist: List[str] = []
    blacklist: List[str] = []

    for line_no, line in enumerate(lines, start=1):
        directive = classify_line(line)
        if directive is None:
            continue

        if directive.kind is DirectiveKind.OUT_FILENAME:
            name = _last_path_segment(directive.args[0])
            if not name:
                logger.warning(f"Ignoring OutFilename without a file name on line {line_no}")
                continue
            output_name = name
        elif directive.kind is DirectiveKind.INPUT_FILE:
            expected_hash, filename = directive.args
            input_filter[filename.lower()] = expected_hash.lower()
        elif directive.kind is DirectiveKind.ENTRY_WHITELIST:
            whitelist.append(directive.args[0])
        elif directive.kind is DirectiveKind.ENTRY_BLACKLIST:
            blacklist.append(directive.args[0])

    if output_name is None:
        raise ConfigurationError("rules file must define an output filename (OutFilename)")

    return RuleSet(
        output_name=output_name,
        input_filter=input_filter,
        whitelist=whitelist,
        blacklist=blacklist,
    )


def load_rules_file(path: Union[str, Path], encoding: str = "utf-8") -> RuleSet:
    """
    Read and parse a rules file from disk.

    Raises:
        ConfigurationError: If the file is missing, not a regular file,
            cannot be decoded, or defines no output filename
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Rules file '{path}' does not exist")
    if not path.is_file():
        raise ConfigurationError(f"Rules file '{path}' must be a regular file")

    try:
        with open(path, "r", encoding=encoding) as f:
            lines = f.read().splitlines()
    except UnicodeDecodeError as e:
        raise ConfigurationError(f"Rules file '{path}' is not valid {encoding}: {e}") from e

    try:
        return parse_rules(lines)
    except ConfigurationError as e:
        raise ConfigurationError(f"{path}: {e}") from e
