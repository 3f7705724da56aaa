from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Yoon"
    environment: str = Field("local", validation_alias="ENVIRONMENT")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(False, validation_alias="LOG_JSON")
    push_enabled: bool = Field(True, validation_alias="PUSH_ENABLED")
    expo_push_url: str = Field(
        "https://exp.host/--/api/v2/push/send", validation_alias="EXPO_PUSH_URL"
    )
    push_timeout_seconds: float = Field(10.0, validation_alias="PUSH_TIMEOUT_SECONDS")
    max_seats_per_trip: int = Field(8, validation_alias="MAX_SEATS_PER_TRIP")
    currency: str = "CFA"
    pin_length: int = Field(4, validation_alias="PIN_LENGTH")
    min_password_length: int = Field(6, validation_alias="MIN_PASSWORD_LENGTH")
    session_ttl_seconds: int = Field(30 * 24 * 3600, validation_alias="SESSION_TTL_SECONDS")

    model_config = SettingsConfigDict(case_sensitive=False)


@lru_cache()
def get_settings() -> Settings:
    load_dotenv(".env")
    return Settings()


settings = get_settings()
