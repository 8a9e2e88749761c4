"""
Project-wide constants that are unlikely to change at runtime.
"""

HASH_BYPASS = "0"  # InputFile hash value that disables the content check
DEFAULT_STAGING_DIR_NAME = "tmp"
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)  # earliest date a DOS timestamp can hold
