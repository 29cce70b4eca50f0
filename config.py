from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Model provider (generative-text endpoint used by the Mentor adapter)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-pro"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta/models"
    GEMINI_TIMEOUT_SECONDS: float = 30.0

    # Relay chat (/chat) uses Claude when a key is configured
    ANTHROPIC_API_KEY: str = ""
    RELAY_MODEL: str = "claude-sonnet-4-5"

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    PORT: int = 3000

    # Mentor Settings
    MENTOR_MODE_DEFAULT: bool = True
    MENTOR_IDLE_THRESHOLD_SECONDS: float = 20.0
    MENTOR_TICK_INTERVAL_SECONDS: float = 30.0
    MENTOR_FOLLOW_UP_DELAY_SECONDS: float = 15.0
    MENTOR_DELIVERY_DELAY_SECONDS: float = 1.0
    STREAM_CHAR_DELAY_MS: int = 30

    # Conversation / insights
    HISTORY_WINDOW: int = 6
    INSIGHT_LOG_LIMIT: int = 20

    # Local persistence
    LOCAL_STORE_PATH: str = "data/local_store.json"
    FEEDBACK_PATH: str = "data/feedback.json"

    class Config:
        env_file = ".env"


settings = Settings()
