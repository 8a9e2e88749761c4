# assetminifier/src/assetminifier/core/config.py

import hashlib
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from assetminifier.core.settings import DEFAULT_STAGING_DIR_NAME


def check_hash_algorithm(name: str) -> str:
    """Return the lowercase name of a hashlib algorithm that yields hex digests."""
    normalized = name.lower()
    available = {algorithm.lower() for algorithm in hashlib.algorithms_available}
    # shake_* digests need an explicit length
    if normalized not in available or normalized.startswith("shake_"):
        raise ValueError(f"unsupported hash algorithm '{name}'")
    return normalized


class Settings(BaseSettings):
    # Staging area created under the output directory
    staging_dir_name: str = Field(default=DEFAULT_STAGING_DIR_NAME, min_length=1)

    # Input verification
    hash_algorithm: str = Field(default="md5")
    hash_chunk_size: int = Field(default=8192, ge=1)

    # Archive I/O
    copy_buffer_size: int = Field(default=64 * 1024, ge=1)
    compression: Literal["deflated", "stored"] = Field(default="deflated")

    recursive_scan: bool = Field(default=False)
    rules_encoding: str = Field(default="utf-8")
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ASSETMIN_",
        extra="ignore",
    )

    @field_validator("hash_algorithm")
    @classmethod
    def _known_hash_algorithm(cls, value: str) -> str:
        return check_hash_algorithm(value)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
