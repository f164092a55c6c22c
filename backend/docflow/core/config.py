from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_name: str = "Docflow"
    debug: bool = False
    api_prefix: str = "/api/v1"

    # Inference engine (provider: google | openai | anthropic)
    llm_provider: str = "google"
    llm_model: str = ""  # auto-defaults per provider if empty
    google_ai_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    llm_max_tokens: int = 8192
    llm_temperature: float = 0.1
    llm_timeout_ms: int = 120_000
    response_language: str = "Russian"

    # Documents
    max_document_size_mb: int = 20

    # Retry profiles (delay before retry k+1 = base * 2^k)
    interactive_max_attempts: int = 2  # chat flows
    interactive_base_delay_ms: int = 1000
    document_max_attempts: int = 3
    document_base_delay_ms: int = 1000
    batch_max_attempts: int = 2
    batch_base_delay_ms: int = 1000
    brainstorm_max_attempts: int = 3
    brainstorm_base_delay_ms: int = 1500
    news_item_max_attempts: int = 2
    news_item_base_delay_ms: int = 1000
    verification_max_attempts: int = 3  # DDU checklist verification
    verification_base_delay_ms: int = 2000
    credit_max_attempts: int = 3  # credit disposition card
    credit_base_delay_ms: int = 1500

    # News feed (source: simulated | rss)
    news_source: str = "simulated"
    news_rss_url: str = "https://news.yandex.ru/index.rss"
    news_default_keywords: list[str] = ["Банк ДОМ.РФ", "ДОМ.РФ"]
    news_default_max_items: int = 10
    news_fetch_timeout_s: float = 15.0
    news_snippet_max_chars: int = 1000

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    @property
    def max_document_size_bytes(self) -> int:
        return self.max_document_size_mb * 1024 * 1024

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
