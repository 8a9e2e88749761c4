"""
Entry point that turns raw paths into a ready-to-run AssetsMinifier.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from assetminifier.core.config import Settings, get_settings
from assetminifier.core.errors import ConfigurationError
from assetminifier.pipeline.minifier import AssetsMinifier, MinifyResult
from assetminifier.rules.ruleset import load_rules_file

logger = logging.getLogger(__name__)


def resolve_directory(value: Union[str, Path]) -> Path:
    """
    Validate a directory argument.

    An existing path must be a directory. A missing path is accepted only if
    its last segment has no extension, i.e. it can be created as a directory.

    Raises:
        ConfigurationError: If the path cannot be used as a directory
    """
    path = Path(value)
    if path.exists():
        if not path.is_dir():
            raise ConfigurationError(f"{value} is not a directory!")
    elif "." in path.name:
        raise ConfigurationError(f"{value} is not a directory!")
    return path


def prepare_run(
    rules_path: Union[str, Path],
    input_dir: Union[str, Path],
    output_dir: Optional[Union[str, Path]] = None,
    settings: Optional[Settings] = None,
) -> AssetsMinifier:
    """
    Validate directories, load the rules and create the output directory.

    Args:
        rules_path: Rules file on disk
        input_dir: Directory holding the source archives
        output_dir: Where the output archive and staging directory go;
            defaults to ``input_dir``
        settings: Optional settings override

    Raises:
        ConfigurationError: On any unusable path or rules file
    """
    settings = settings or get_settings()
    input_path = resolve_directory(input_dir)
    output_path = resolve_directory(output_dir) if output_dir is not None else input_path

    rules = load_rules_file(rules_path, encoding=settings.rules_encoding)
    logger.info(f"Loaded rules successfully from {rules_path}")
    for key, value in rules.summary().items():
        logger.debug(f"  {key}: {value}")

    try:
        output_path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(f"Cannot create output directory {output_path}: {e}") from e

    return AssetsMinifier(input_path, output_path, rules, settings)


def run_minifier(
    rules_path: Union[str, Path],
    input_dir: Union[str, Path],
    output_dir: Optional[Union[str, Path]] = None,
    settings: Optional[Settings] = None,
) -> MinifyResult:
    """Load the rules and run the minifier once."""
    minifier = prepare_run(rules_path, input_dir, output_dir, settings)
    return minifier.minify()
