from .extractor import (
    StagingResult,
    TimestampIndex,
    extract_archive,
    normalize_index_key,
    stage_archives,
    staging_path,
)

__all__ = [
    "StagingResult",
    "TimestampIndex",
    "extract_archive",
    "normalize_index_key",
    "staging_path",
    "stage_archives",
]
