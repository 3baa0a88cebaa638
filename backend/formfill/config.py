"""
Application Configuration
Manages all environment variables and settings
"""
from typing import List
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "Aadhaar Form Assistant"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Logging
    LOG_TO_FILE: bool = False
    LOG_DIR: str = "logs"

    # File Upload
    MAX_FILE_SIZE_MB: int = 10

    # OCR Settings
    TESSERACT_CMD: str = "tesseract"
    OCR_LANGUAGES: List[str] = ["eng", "hin"]  # One pass per language, merged in order

    # Name reconstruction from word boxes
    NAME_WORD_MIN_CONFIDENCE: float = 0.40
    NAME_LINE_TOLERANCE_PX: int = 20
    NAME_WORD_GAP_PX: int = 60
    NAME_SCAN_LINES: int = 10

    # Field matching
    FUZZY_SCORE_CUTOFF: float = 60.0  # rapidfuzz score (0-100), distance <= 0.4
    AUTOFILL_MIN_CONFIDENCE: float = 0.6

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
