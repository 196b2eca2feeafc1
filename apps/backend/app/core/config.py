from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Pixel Collector"
    database_url: str = ""
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # seconds a (event_name, event_id) pair stays in the dedupe window
    dedupe_window_seconds: float = 60.0

    cors_origins: list[str] = ["*"]
    log_level: str = "info"

    # bind address for `pixel-collector` / `python main.py`
    host: str = "0.0.0.0"
    port: int = 3001

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
