"""
Logging setup and the JSON audit trail.

Application modules log through ``logging.getLogger(__name__)``; security
relevant facts (logins, request outcomes, patient status transitions) go to
the ``audit`` logger as one JSON object per line.
"""

import json
import logging
import sys
from typing import Any, Dict, Optional
from fastapi import Request

from app.core.dates import utcnow

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = "INFO") -> None:
    """Attach a stdout handler to the root logger (once) and set its level"""
    root = logging.getLogger()
    if not any(getattr(handler, "_clinic_crm", False) for handler in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._clinic_crm = True
        root.addHandler(handler)
    root.setLevel(level.upper())


def client_ip(request: Request) -> str:
    """Caller address, honouring the first hop of a reverse proxy"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or (request.client.host if request.client else "unknown")


class AuditLogger:
    """Writes audit events as JSON lines on the ``audit`` logger"""

    def __init__(self, name: str = "audit"):
        self.logger = logging.getLogger(name)

    def _emit(self, event_type: str, level: str = "INFO", **fields: Any) -> None:
        record: Dict[str, Any] = {"event_type": event_type, "timestamp": utcnow().isoformat(), "severity": level}
        record.update(fields)
        self.logger.log(logging.getLevelName(level), json.dumps(record, default=str))

    def login(self, request: Request, username: str, success: bool, user_id: Optional[str] = None) -> None:
        self._emit(
            "login_attempt",
            "INFO" if success else "WARNING",
            username=username,
            user_id=user_id,
            success=success,
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent", ""),
        )

    def request_completed(self, request: Request, status_code: int, elapsed: float) -> None:
        self._emit(
            "api_access",
            "WARNING" if status_code >= 400 else "INFO",
            method=request.method,
            path=request.url.path,
            status=status_code,
            user_id=getattr(request.state, "user_id", None),
            ip_address=client_ip(request),
            duration_ms=round(elapsed * 1000, 2),
        )

    def request_failed(self, request: Request, error: Exception, elapsed: float) -> None:
        self._emit(
            "api_error",
            "ERROR",
            method=request.method,
            path=request.url.path,
            error=repr(error),
            user_id=getattr(request.state, "user_id", None),
            ip_address=client_ip(request),
            duration_ms=round(elapsed * 1000, 2),
        )

    def patient_status_change(
        self,
        user_id: str,
        patient_id: str,
        old_status: str,
        new_status: str,
        reason: Optional[str] = None,
    ) -> None:
        self._emit(
            "patient_status_change",
            "WARNING",
            user_id=user_id,
            patient_id=patient_id,
            old_status=old_status,
            new_status=new_status,
            reason=reason,
        )


security_logger = AuditLogger()
