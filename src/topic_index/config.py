from typing import Dict, List, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_FIELD_WEIGHTS: Dict[str, float] = {
    "title": 3.0,
    "subtitle": 2.0,
    "summary": 2.0,
    "key_points": 2.0,
    "explanation": 1.0,
    "analogy": 1.0,
    "visual_concept": 1.0,
    "real_world_use": 1.0,
    "questions": 1.0,
    "code_examples": 0.5,
    "resources": 0.5,
    "practice_problems": 0.5,
}


class Settings(BaseSettings):
    # Tokenizer
    min_token_length: int = Field(default=2, ge=1)
    token_allow_list: List[str] = Field(default_factory=lambda: ["os", "io"])
    remove_stopwords: bool = False

    # Ranking
    field_weights: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_FIELD_WEIGHTS)
    )

    # Query surface
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    query_workers: int = Field(default=4, ge=1)

    # Optional JSON record source loaded at application startup
    records_path: Optional[str] = None

    admin_api_key: Optional[SecretStr] = None  # For mutating HTTP routes

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="TOPIC_INDEX_",
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
