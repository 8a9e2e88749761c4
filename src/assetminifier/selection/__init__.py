from .selector import SourceArchive, file_digest, select_inputs, validate_selection

__all__ = ["SourceArchive", "file_digest", "select_inputs", "validate_selection"]
