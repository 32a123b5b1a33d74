from __future__ import annotations
import logging
from typing import Any, Dict

from app.core.config import settings


class StructuredLogger:
    def __init__(self, name: str = "app.service", level: str | None = None):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, (level or settings.LOG_LEVEL), logging.INFO))

    def log_request(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_ms: float,
        request_id: str | None = None,
        extra: Dict[str, Any] | None = None,
    ) -> None:
        """Logs an API request with structured fields."""
        log_data = {
            "type": "api_request",
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
            "request_id": request_id,
        }
        if extra:
            log_data.update(extra)
        self.logger.info("Structured log: %s", log_data)

    def log_section(
        self,
        section: str,
        returned: int,
        cache_hit: bool,
        excluded_total: int,
        request_id: str | None = None,
    ) -> None:
        """Logs one served tips section."""
        log_data = {
            "type": "tips_section",
            "section": section,
            "returned": returned,
            "cache_hit": cache_hit,
            "excluded_total": excluded_total,
            "request_id": request_id,
        }
        self.logger.info("Structured log: %s", log_data)

    def log_error(
        self,
        message: str,
        error: Exception | None = None,
        request_id: str | None = None,
        extra: Dict[str, Any] | None = None,
    ) -> None:
        """Logs an error with its type, if any."""
        log_data = {
            "type": "api_error",
            "message": message,
            "request_id": request_id,
            "error_type": type(error).__name__ if error else None,
        }
        if extra:
            log_data.update(extra)
        self.logger.error("Structured error: %s", log_data)


service_logger = StructuredLogger()
