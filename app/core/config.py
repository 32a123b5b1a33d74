from dotenv import load_dotenv
load_dotenv()
import os
from dataclasses import dataclass, field
from typing import List


def _split_csv(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass
class Settings:
    """
    Runtime configuration for the tips recommendation service.

    Values can be overridden via environment variables (or a local `.env`).
    """

    # Recommendation cache (entries older than this are treated as absent)
    RECOMMENDATION_CACHE_TTL_SECONDS: float = float(
        os.getenv("RECOMMENDATION_CACHE_TTL_SECONDS", str(4 * 60 * 60))
    )
    SECTION_MAX_RESULTS: int = int(os.getenv("SECTION_MAX_RESULTS", "12"))

    # TMDb candidate producer
    TMDB_API_KEY: str = os.getenv("TMDB_API_KEY", "")
    TMDB_BASE_URL: str = os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org/3")
    TMDB_LANGUAGE: str = os.getenv("TMDB_LANGUAGE", "en-US")
    TMDB_TIMEOUT_SECONDS: float = float(os.getenv("TMDB_TIMEOUT_SECONDS", "8.0"))

    # Circuit breaker around the producer
    PRODUCER_FAILURE_THRESHOLD: int = int(os.getenv("PRODUCER_FAILURE_THRESHOLD", "5"))
    PRODUCER_RECOVERY_TIMEOUT_SECONDS: float = float(
        os.getenv("PRODUCER_RECOVERY_TIMEOUT_SECONDS", "30.0")
    )

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    CORS_ORIGINS: List[str] = field(
        default_factory=lambda: _split_csv(
            os.getenv("CORS_ORIGINS", "http://localhost:8081,http://localhost:19006")
        )
    )


settings = Settings()
