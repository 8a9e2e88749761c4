from .repacker import iter_staged_files, repack

__all__ = ["iter_staged_files", "repack"]
