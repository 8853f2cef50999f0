"""
Markov Text Service Configuration
"""

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ===== Service =====
    SERVICE_NAME: str = Field(default="markovtext-service")
    SERVICE_VERSION: str = Field(default="1.0.0")
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    LOG_LEVEL: str = Field(default="info")
    DEBUG: bool = Field(default=False)

    # ===== CORS =====
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"]
    )

    # ===== Markov model defaults =====
    MARKOV_ORDER: int = Field(default=2)
    MARKOV_MAX_REPEAT: int = Field(default=2)
    MARKOV_MIN_SENTENCE_LEN: int = Field(default=5)
    MARKOV_MAX_SENTENCE_LEN: int = Field(default=25)
    MARKOV_PARAGRAPH_BREAK: int = Field(default=5)
    MARKOV_STOP_TOKENS: str = Field(default=".!?")

    # ===== Training =====
    TRAIN_CHUNK_SIZE: int = Field(default=4096)
    TRAIN_MAX_WORKERS: Optional[int] = Field(default=None)

    # ===== Model storage =====
    MODEL_DIR: str = Field(default="./models")
    MODEL_FILE_SUFFIX: str = Field(default=".mkv")
    DEFAULT_MODEL_NAME: str = Field(default="default")
    PRELOAD_MODEL: bool = Field(default=True)

    # Bundled (read-only) resources
    EMBEDDED_MODEL_PACKAGE: str = Field(default="markovtext.resources")
    EMBEDDED_MODEL_PATH: Optional[str] = Field(default=None)
    BUNDLED_CORPUS_PATH: Optional[str] = Field(default="corpus/sample.txt")

    # ===== Generation =====
    DEFAULT_WORD_COUNT: int = Field(default=100)
    MAX_WORD_COUNT: int = Field(default=5000)
    RANDOM_SEED: Optional[int] = Field(default=None)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
