from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Dict, List

# Poll cadence labels -> milliseconds
INTERVALS: Dict[str, int] = {
    "30s": 30_000,
    "1m": 60_000,
    "5m": 300_000,
    "30m": 1_800_000,
    "1hr": 3_600_000,
}

# History labels -> retention bound. Applied as a point count, not a duration.
TIME_PERIODS: Dict[str, int] = {
    "1hr": 60,
    "6hr": 360,
    "24hr": 1440,
}

class Settings(BaseSettings):
    app_name: str = "HordeMonitor"
    environment: str = Field(default="dev")
    log_level: str = Field(default="INFO")

    api_base_url: str = Field(default="https://aihorde.net/api/v2")
    client_agent: str = Field(default="Horde Monitor v1.0")
    http_timeout: float | None = Field(default=30.0)

    default_interval: str = Field(default="5m")
    default_period: str = Field(default="1hr")

    api_host: str = Field(default="127.0.0.1")
    api_port: int = Field(default=8000)

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    class Config:
        env_file = ".env"

settings = Settings()
