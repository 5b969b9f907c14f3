from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    AZURE_OPENAI_ENDPOINT: str = ""
    AZURE_OPENAI_API_KEY: str = ""
    AZURE_OPENAI_API_VERSION: str = "preview"
    SORA_MODEL: str = "sora"
    SORA_REQUEST_TIMEOUT_SECONDS: float = 60.0
    SORA_VERIFY_SSL: bool = True
    SORA_MAX_RETRIES: int = 3
    SORA_RETRY_BASE_DELAY_SECONDS: float = 1.0
    SORA_RETRY_MULTIPLIER: float = 2.0
    FRONTEND_URL: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("AZURE_OPENAI_ENDPOINT")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("SORA_MAX_RETRIES")
    @classmethod
    def non_negative_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError("SORA_MAX_RETRIES must be >= 0")
        return value

settings = Settings()
