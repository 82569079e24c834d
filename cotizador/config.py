from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "cotizador-despiece"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    # Vision model (OpenAI-compatible chat completions)
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MAX_TOKENS: int = 1500
    OPENAI_TEMPERATURE: float = 0.0
    OPENAI_TIMEOUT_SECONDS: int = 120

    # Google Sheets service account
    GOOGLE_SERVICE_ACCOUNT_EMAIL: str = ""
    GOOGLE_PRIVATE_KEY: str = ""  # usually stored with literal "\n" escapes
    GOOGLE_SHEET_ID: str = ""
    SHEETS_MODE: str = "new_tab"  # "new_tab" | "append"
    SHEETS_APPEND_TAB: str = "Presupuestos"

    # Uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_MB: int = 10

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def private_key(self) -> str:
        """Service account key with escaped newlines restored."""
        return self.GOOGLE_PRIVATE_KEY.replace("\\n", "\n")

    @property
    def openai_configured(self) -> bool:
        return bool(self.OPENAI_API_KEY)

    @property
    def sheets_configured(self) -> bool:
        return bool(
            self.GOOGLE_SERVICE_ACCOUNT_EMAIL
            and self.GOOGLE_PRIVATE_KEY
            and self.GOOGLE_SHEET_ID
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, created on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
