from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    app_name: str = "zero-config-templates"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    upstream_archive_url: str = (
        "https://github.com/dhuruvandb/zero-config-templates/archive/refs/heads/main.zip"
    )
    upstream_timeout: float = 60.0
    github_token: str | None = None

    templates: List[str] = ["react", "angular", "express", "nestjs"]
    compression_level: int = 9
    stream_archives: bool = True

    rate_limit_max_requests: int = 5
    rate_limit_window_seconds: float = 60.0

    cors_origins: List[str] = ["*"]

settings = Settings()
