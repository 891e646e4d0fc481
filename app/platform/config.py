from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ─────────────────────────────────────
    APP_NAME: str = "Site Forensics API"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = True

    # ── Logging ─────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = True

    # ── Redis / Cache ───────────────────────────
    # Left unset, analysis caches stay in process memory
    REDIS_URL: Optional[str] = None
    CACHE_KEY_PREFIX: str = "analysis"
    CACHE_DEFAULT_TTL_SECONDS: int = 3600  # 1 hour
    CACHE_MEMORY_MAX_ENTRIES: int = 1024

    # ── Analysis defaults ───────────────────────
    ANALYSIS_DEFAULT_MAX_DEPTH: int = 3
    ANALYSIS_DEFAULT_RESPECT_ROBOTS_TXT: bool = True
    ANALYSIS_DEFAULT_INCLUDE_EXTERNAL_LINKS: bool = False
    ANALYSIS_DEFAULT_PERFORMANCE_RUNS: int = 1

    ANALYSIS_TIMEOUT_SECONDS: Optional[float] = 300  # 5 minutes max per run
    ANALYSIS_MODULE_TIMEOUT_SECONDS: Optional[float] = None
    ANALYSIS_PARALLEL_WAVES: bool = False
    ANALYSIS_PUBLISH_EVENTS: bool = False

    # ── Crawler ─────────────────────────────────
    CRAWLER_USER_AGENT: str = "Site-Forensics-Analyzer/1.0"
    CRAWLER_TIMEOUT_SECONDS: float = 30

    URL_MAX_LENGTH: int = 2048

    class Config:
        env_file = str(Path(__file__).parent.parent.parent / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
