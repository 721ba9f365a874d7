from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # LLM - Multi-provider support (openai, groq, google)
    llm_provider: str = "openai"
    openai_api_key: str = ""
    llm_api_key: str = ""
    llm_chat_model: str = "gpt-4o-mini"
    llm_max_tokens: int = 250

    # Unset means the remote call may wait indefinitely
    llm_timeout: float | None = None

    # Logging
    log_level: str = "INFO"

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    @property
    def provider_api_key(self) -> str:
        """Credential for the configured provider."""
        if self.llm_provider == "openai":
            return self.openai_api_key or self.llm_api_key
        return self.llm_api_key or self.openai_api_key

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
