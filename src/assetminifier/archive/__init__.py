from .accessor import open_for_read, open_for_write, entry_timestamp, compression_for

__all__ = ["open_for_read", "open_for_write", "entry_timestamp", "compression_for"]
