# autograde/core/config.py

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    # Where debug dumps (text objects, rows, columns) are written
    DEBUG_ROOT: str = "autograde/debug_out"
    LOG_LEVEL: str = "INFO"

    # MongoDB
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "autograde"

    # OCR providers
    GOOGLE_CREDENTIALS_PATH: Optional[str] = None
    VISION_RETRIES: int = 2
    VISION_RETRY_DELAY: float = 0.6
    ANTHROPIC_API_KEY: Optional[str] = None
    CLAUDE_MODEL: str = "claude-3-5-sonnet-latest"
    CLAUDE_MAX_TOKENS: int = 4000

    # Images larger than this (longest side, px) are downscaled before OCR
    MAX_IMAGE_SIDE: int = 2400

    # Job orchestration
    WORKER_CONCURRENCY: int = 5
    MAX_JOB_ATTEMPTS: int = 3
    JOB_RETRY_BASE_DELAY: float = 1.0
    MAX_RETAINED_IMAGES: int = 100

    # Vision pipeline tuning (pixels at standard scan resolution)
    ROW_Y_TOLERANCE: float = 15.0
    COLUMN_X_TOLERANCE: float = 20.0
    MARK_X_TOLERANCE: float = 25.0
    MIN_COLUMN_OBSERVATIONS: int = 2
    COLUMN_SAMPLE_ROWS: int = 5
    LOW_CONFIDENCE_THRESHOLD: float = 0.5
    LOW_CONFIDENCE_MAX_TEXT_LEN: int = 2
    LEADING_COLUMNS: int = 2
    ROW_MATCHING: str = "positional"
    ROW_SKIP: int = 0

    class Config:
        env_prefix = "AUTOGRADE_"
        case_sensitive = False


CONFIG = Settings()

DEBUG_ROOT = str(Path(CONFIG.DEBUG_ROOT))
