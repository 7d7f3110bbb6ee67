from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./diary.db"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Create missing tables on startup. Disable when Alembic owns the schema.
    AUTO_CREATE_TABLES: bool = True

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://diary.example.com,http://localhost:3000"
    CORS_ORIGINS: str = "*"

    # Structured-generation backend (Gemini generateContent REST API)
    GEMINI_API_KEY: str = ""
    GENERATION_MODEL: str = "gemini-3-flash-preview"
    GENERATION_API_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GENERATION_TIMEOUT: float = 60.0

    # Number of past entries handed to the model as context
    CONTEXT_HISTORY_LIMIT: int = 3

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
