"""Environment-based settings for assembling the rating core."""
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

REQUIRED_BY_BACKEND = {
    "file": ("DATA_FILE", "data_file"),
    "sql": ("DATABASE_URL", "database_url"),
    "http": ("API_URL", "api_url"),
}


class Settings(BaseSettings):
    """
    Read from the environment and `.env`, e.g. REPOSITORY_BACKEND=sql.

    Every CLI invocation is a fresh process, so only persistent backends can be
    selected here; InMemoryRepository is wired directly by tests.
    """
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    repository_backend: Literal["file", "sql", "http"] = "file"
    data_file: Optional[str] = "ideas.json"
    database_url: Optional[str] = None
    api_url: Optional[str] = None
    api_token: Optional[str] = Field(None, repr=False)
    http_max_retries: int = Field(5, ge=1)
    rating_strategy: Literal["range", "integer"] = "range"
    rating_min: float = 1
    rating_max: float = 5
    log_level: str = "INFO"

    @field_validator("repository_backend", "rating_strategy", mode="before")
    @classmethod
    def _lower(cls, value):
        return value.lower() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _check_range(self) -> "Settings":
        if self.rating_min > self.rating_max:
            raise ValueError("RATING_MIN must not exceed RATING_MAX.")
        return self

    def validate_backend(self) -> None:
        """Raises ValueError naming the variable the chosen backend is missing."""
        required = REQUIRED_BY_BACKEND.get(self.repository_backend)
        if required and not getattr(self, required[1]):
            env_name = required[0]
            raise ValueError(
                f"{env_name} must be set when REPOSITORY_BACKEND={self.repository_backend}."
            )
