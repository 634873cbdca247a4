from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "lexrag"
    environment: str = "development"
    log_config_path: Path = Path(__file__).resolve().parent.parent / "logging.yaml"
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    enable_file_logging: bool = False
    enable_json_logs: bool = True

    # Chunking
    chunk_size: int = Field(default=1000, gt=0)  # UTF-8 bytes
    chunk_overlap: int = Field(default=200, ge=0)

    # Retrieval
    default_k: int = Field(default=4, gt=0)
    fetch_multiplier: int = Field(default=10, ge=1)  # candidates fetched per requested result
    compression_fetch_multiplier: int = Field(default=2, ge=1)
    similarity_algorithm: str = "cosine"  # "cosine" | "jaccard" | "euclidean" | "bm25"
    num_queries: int = Field(default=3, ge=0)

    # OpenAI
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.2

    model_config = SettingsConfigDict(
        env_prefix="LEXRAG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_overlap(self) -> "Settings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
