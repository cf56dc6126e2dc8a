"""SyariahOS configuration — settings for the task tracking backend."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite:///data/syariahos.db"

    # CORS (comma-separated origins)
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Logging
    log_level: str = "INFO"

    # Audit trail (task.created, history.deleted, ...)
    activity_log_enabled: bool = True

    # Recurring task resets (daily/weekly/monthly/yearly cycles)
    reset_enabled: bool = True
    reset_check_interval_minutes: float = 60.0

    # Validation limits mirrored by the request models
    task_text_max_length: int = 255
    history_note_max_length: int = 500

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
