from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/binday.db"
    log_level: str = "INFO"
    upstream_base_url: str = "https://online.cheshireeast.gov.uk/MyCollectionDay/SearchByAjax"
    upstream_timeout: float = 30.0
    user_agent: str = "BinCollectionDay/1.0"
    timezone: str = "Europe/London"
    refresh_schedule: str = "03:00"
    api_key: str = ""

    @field_validator("timezone", mode="before")
    @classmethod
    def default_empty_timezone(cls, v: str) -> str:
        if not v or not v.strip():
            return "Europe/London"
        return v

    model_config = {"env_prefix": "", "case_sensitive": False}


settings = Settings()
