from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # --- Basic configuration ---
    APP_NAME: str = "persistkit"
    APP_ENV: str = "development"  # development, production, testing
    DEBUG: bool = True

    # --- Database (SQLModel) ---
    DB_URL: str = "sqlite:///./app.db"
    DB_ECHO: bool = False
    # Entities stay readable after a commit made from a worker thread
    DB_EXPIRE_ON_COMMIT: bool = False

    @property
    def DATABASE_URL(self) -> str:
        return self.DB_URL

    # --- Repository registry ---
    REGISTRY_USE_CACHING: bool = False

    # --- Logging ---
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False

    # --- Pydantic ---
    # Load env from project root .env; priority: env vars > .env > defaults
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )


# Singleton settings instance
settings = Settings()
