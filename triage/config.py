# triage/config.py
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    database_url: str = Field("sqlite:///./triage_notes.db", validation_alias="DATABASE_URL")

    openai_api_key: str | None = Field(None, validation_alias="OPENAI_API_KEY")
    openai_base_url: str | None = Field(None, validation_alias="OPENAI_BASE_URL")
    llm_model: str = Field("llama-3.3-70b-versatile", validation_alias="LLM_MODEL")
    llm_temperature: float = Field(0.2, validation_alias="LLM_TEMPERATURE")
    generation_timeout_seconds: float = Field(60.0, validation_alias="GENERATION_TIMEOUT_SECONDS")

    # "dynamic": the model judges sufficiency; "fixed": stop after max_turns.
    sufficiency_policy: Literal["dynamic", "fixed"] = Field(
        "dynamic", validation_alias="SUFFICIENCY_POLICY"
    )
    max_turns: int | None = Field(None, ge=1, validation_alias="MAX_TURNS")

    fallback_store_path: str = Field(
        "./triage_notes_fallback.jsonl", validation_alias="FALLBACK_STORE_PATH"
    )

    auth_token: str | None = Field(None, validation_alias="AUTH_TOKEN")
    allow_anonymous_auth: bool = Field(True, validation_alias="ALLOW_ANONYMOUS_AUTH")

    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
