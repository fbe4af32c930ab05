import os
from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Application configuration settings.

    Read once from the environment (and .env) at startup; frozen afterwards.
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    # Service Info
    service_name: str = "deal-finder-proxy"
    log_level: str = "INFO"

    # API
    host: str = "0.0.0.0"
    port: int = 8080
    ext_shared_token: str = ""

    # LLM (OpenAI)
    openai_api_key: str = ""
    openai_model: str = "gpt-5"
    openai_temperature: Optional[float] = None
    completion_timeout_seconds: float = 120.0

    # Paths
    base_dir: str = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    prompts_dir: str = os.path.join(base_dir, "prompts")

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
