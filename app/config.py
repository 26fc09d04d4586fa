"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration — reads from environment / .env file."""

    # Provider credentials (SEO feature)
    gemini_api_key: str = ""
    openai_api_key: str = ""

    # Provider credentials (Learn feature, may equal the SEO keys)
    gemini_learn_key: str = ""
    openai_learn_key: str = ""

    # Models
    gemini_model: str = "gemini-2.0-flash"
    openai_model: str = "gpt-4o-mini"

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origin: str = "*"
    max_body_bytes: int = 1024 * 1024
    log_level: str = "INFO"

    # Daily quotas (per identity, per feature)
    daily_limit_seo: int = 3
    daily_limit_learn: int = 3

    # Redis (empty = in-memory stores only)
    redis_url: str = ""

    # Response cache
    cache_ttl_seconds: int = 0          # 0 = entries never expire
    cache_max_entries: int = 1024

    # Provider calls
    provider_timeout_seconds: float = 20.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def has_any_provider(self) -> bool:
        return any((
            self.gemini_api_key,
            self.openai_api_key,
            self.gemini_learn_key,
            self.openai_learn_key,
        ))

    @property
    def is_fallback_only(self) -> bool:
        return not self.has_any_provider

    @property
    def cors_origins(self) -> list[str]:
        if self.cors_origin == "*":
            return ["*"]
        return [o.strip() for o in self.cors_origin.split(",") if o.strip()]


settings = Settings()
