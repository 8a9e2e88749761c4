"""
Predicates over a RuleSet.

Kept as plain functions taking the RuleSet as data: one decides whether a file
in the input directory is a source archive, the other whether an entry inside
a source archive belongs in the output.
"""

import logging
from pathlib import Path
from typing import Callable, Union

from assetminifier.core.settings import HASH_BYPASS
from assetminifier.rules.ruleset import RuleSet
from assetminifier.rules.wildcard import wildcard_match

logger = logging.getLogger(__name__)

DigestFunc = Callable[[Path], str]


def accept_input_file(path: Union[str, Path], rules: RuleSet, digest: DigestFunc) -> bool:
    """
    Decide whether a candidate file is one of the declared input archives.

    Args:
        path: Candidate file
        rules: Parsed rules
        digest: Function returning the hex content hash of a file

    Returns:
        True if there is no input filter, or the lowercase filename is declared
        and its hash matches (or the declared hash is "0")
    """
    if not rules.input_filter:
        return True

    path = Path(path)
    name = path.name.lower()
    expected = rules.input_filter.get(name)
    if expected is None:
        return False

    if expected == HASH_BYPASS:
        return True

    try:
        actual = digest(path)
    except OSError as e:
        logger.error(f"Failed to hash {path}: {e}")
        return False

    if actual.lower() != expected.lower():
        logger.debug(f"Hash mismatch for {path}: expected {expected}, got {actual}")
        return False
    return True


def is_entry_included(entry_name: str, rules: RuleSet) -> bool:
    """Blacklist wins, then whitelist; anything else is excluded."""
    for pattern in rules.blacklist:
        if wildcard_match(entry_name, pattern):
            return False

    for pattern in rules.whitelist:
        if wildcard_match(entry_name, pattern):
            return True

    return False
