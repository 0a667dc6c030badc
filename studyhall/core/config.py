# studyhall/core/config.py
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Settings:
    """Application settings loaded from environment variables"""

    # Google AI Configuration
    GOOGLE_API_KEY: str = os.getenv("GOOGLE_API_KEY", os.getenv("API_KEY", ""))
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    LESSON_THINKING_BUDGET: int = int(os.getenv("LESSON_THINKING_BUDGET", "4096"))
    LESSON_MAX_OUTPUT_TOKENS: int = int(os.getenv("LESSON_MAX_OUTPUT_TOKENS", "8192"))

    # Storage Configuration
    STORE_BACKEND: str = os.getenv("STORE_BACKEND", "sqlite").lower()
    STORE_PATH: str = os.getenv("STORE_PATH", "./studyhall.db")
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))
    REDIS_PASSWORD: str = os.getenv("REDIS_PASSWORD", "")

    # Application Configuration
    DEBUG: bool = os.getenv("DEBUG", "True").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LLM_LOG_DIR: str = os.getenv("LLM_LOG_DIR", "")

    @property
    def has_api_key(self) -> bool:
        return bool(self.GOOGLE_API_KEY)

# Create global settings instance
settings = Settings()
