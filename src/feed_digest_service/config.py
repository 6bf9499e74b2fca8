"""Application configuration using Pydantic Settings."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    # Content Extraction (network)
    extraction_timeout_seconds: int = 30
    extraction_user_agent: str = "FeedDigest/1.0 (RSS Feed Aggregator)"
    extraction_max_content_size_mb: int = 50
    article_fetch_timeout_seconds: int = 10

    # Retry (linear backoff: base, 2*base, 3*base, ...)
    extraction_retry_attempts: int = 3
    extraction_retry_base_delay_ms: int = 1000

    # PDF Extraction
    pdf_strategy: Literal["multi_backend", "byte_scanner"] = "multi_backend"
    pdf_max_pages: int = 100  # Caps worst-case latency/memory per document
    pdf_min_content_length: int = 100  # Backend output must exceed this to be accepted
    pdf_document_timeout_seconds: float = 300.0  # Per-document deadline in the pipeline

    # Gibberish Classifier
    gibberish_min_length: int = 50
    gibberish_binary_ratio: float = 0.05
    gibberish_special_ratio: float = 0.30
    gibberish_max_pdf_markers: int = 3
    gibberish_max_word_length: float = 15.0
    gibberish_min_sentence_words: float = 1.0
    gibberish_max_sentence_words: float = 50.0
    gibberish_min_common_words: int = 3

    @property
    def extraction_max_content_size_bytes(self) -> int:
        """Get max downloadable document size in bytes."""
        return self.extraction_max_content_size_mb * 1024 * 1024

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
