"""
Configuration management for the ngram-search system.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TokenizerConfig(BaseSettings):
    """Configuration for n-gram tokenization."""

    ngram_size: int = Field(
        default=2, ge=1, description="Number of code points per n-gram token"
    )
    include_final_window: bool = Field(
        default=False,
        description=(
            "Emit the last window (starting at len - n). Off by default, which "
            "yields exactly len - n tokens for texts longer than n."
        ),
    )

    model_config = SettingsConfigDict(env_prefix="TOKENIZER_")


class StorageConfig(BaseSettings):
    """Configuration for the artifact storage layer."""

    base_path: Path = Field(
        default=Path("./data"), description="Base path for local artifact storage"
    )

    model_config = SettingsConfigDict(env_prefix="STORAGE_")


class IndexConfig(BaseSettings):
    """Configuration for index building."""

    max_document_id: int = Field(
        default=255,
        ge=0,
        le=2**32 - 1,
        description="Largest representable document identifier (255 = one byte)",
    )
    compression_level: int = Field(
        default=6, description="Zstd compression level for postings (1-22)"
    )

    model_config = SettingsConfigDict(env_prefix="INDEX_")


class Config(BaseSettings):
    """Main configuration."""

    # Sub-configs
    tokenizer: TokenizerConfig = Field(default_factory=TokenizerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)

    # Global settings
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_nested_delimiter="__"
    )


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (mainly for testing)."""
    global _config
    _config = None
