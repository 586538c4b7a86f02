from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RECIPES_", env_file=".env")

    database_url: str = "sqlite:///database.sqlite"
    migrations_dir: Path = Path(__file__).resolve().parent / "sql"
    log_level: str = "INFO"
    echo_sql: bool = False


settings = Settings()
