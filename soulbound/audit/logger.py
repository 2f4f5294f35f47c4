"""Audit logging for registry mutations.

Records every issuance, revocation and grant change, along with every
denied mutation. Revocation reasons are only kept here; they are not part
of the credential record.
"""

import logging
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

log = logging.getLogger("audit")


@dataclass
class AuditEvent:
    """Structured audit event."""

    action: str  # e.g., "credential.issue", "issuer.grant"
    principal: str  # caller identity
    resource: str | None = None  # e.g., "credential:7", "grant:issuer/type"
    status: str = "success"  # "success", "denied", "revoked"
    details: dict[str, Any] | None = None  # Additional context
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class AuditLogger:
    """Audit logger for registry operations.

    Logs events through the "audit" logger with structured extras and keeps
    an in-memory ring buffer for recent event retrieval.
    """

    DEFAULT_BUFFER_SIZE = 1000

    def __init__(self, enabled: bool = True, max_buffer_size: int = DEFAULT_BUFFER_SIZE):
        """Initialize the audit logger.

        Args:
            enabled: Whether audit logging is enabled
            max_buffer_size: Number of recent events kept in memory
        """
        self.enabled = enabled
        self.max_buffer_size = max_buffer_size
        self._buffer: deque[dict] = deque(maxlen=max_buffer_size)

    def log(self, event: AuditEvent) -> None:
        """Write an audit event to the log and the ring buffer."""
        if not self.enabled:
            return

        self._buffer.append(asdict(event))

        extra = {
            "type": "audit",
            "principal": event.principal,
            "action": event.action,
            "status": event.status,
        }
        if event.resource:
            extra["resource"] = event.resource
        if event.details:
            extra["details"] = event.details

        if event.status in ("denied", "revoked", "error"):
            log.warning(f"audit: {event.action} {event.status}", extra=extra)
        else:
            log.info(f"audit: {event.action} {event.status}", extra=extra)

    def get_recent_events(
        self,
        limit: int = 100,
        action_filter: str | None = None,
        status_filter: str | None = None,
    ) -> list[dict]:
        """Get recent audit events from buffer.

        Args:
            limit: Max events to return
            action_filter: Filter by action prefix (e.g., "issuer.")
            status_filter: Filter by status (e.g., "denied")

        Returns:
            List of audit event dicts, newest first
        """
        events = list(self._buffer)
        events.reverse()

        if action_filter:
            events = [e for e in events if e["action"].startswith(action_filter)]
        if status_filter:
            events = [e for e in events if e["status"] == status_filter]

        return events[:limit]

    def get_buffer_stats(self) -> dict:
        """Get buffer statistics.

        Returns:
            Dict with buffer_size, max_buffer_size
        """
        return {
            "buffer_size": len(self._buffer),
            "max_buffer_size": self.max_buffer_size,
        }

    def log_issue(
        self,
        issuer: str,
        credential_id: int,
        holder: str,
        credential_type: str,
    ) -> None:
        """Log a successful credential issuance."""
        self.log(
            AuditEvent(
                action="credential.issue",
                principal=issuer,
                resource=f"credential:{credential_id}",
                details={"holder": holder, "credential_type": credential_type},
            )
        )

    def log_revoke(self, issuer: str, credential_id: int, reason: str) -> None:
        """Log a credential revocation together with its reason."""
        self.log(
            AuditEvent(
                action="credential.revoke",
                principal=issuer,
                resource=f"credential:{credential_id}",
                status="revoked",
                details={"reason": reason},
            )
        )

    def log_grant(self, admin: str, issuer: str, credential_type: str, revoked: bool = False) -> None:
        """Log an issuer grant or grant removal."""
        self.log(
            AuditEvent(
                action="issuer.revoke" if revoked else "issuer.grant",
                principal=admin,
                resource=f"grant:{issuer}/{credential_type}",
            )
        )

    def log_denied(
        self,
        action: str,
        principal: str,
        code: str,
        resource: str | None = None,
    ) -> None:
        """Log a mutation that was rejected.

        Args:
            action: Action name (e.g., "credential.issue")
            principal: The caller identity
            code: ErrorCode of the rejection
            resource: Optional resource identifier
        """
        self.log(
            AuditEvent(
                action=action,
                principal=principal,
                resource=resource,
                status="denied",
                details={"code": code},
            )
        )


# Global logger instance
_audit_logger: AuditLogger | None = None


def get_audit_logger() -> AuditLogger:
    """Get the global audit logger instance."""
    global _audit_logger

    if _audit_logger is None:
        from soulbound import config

        _audit_logger = AuditLogger(
            enabled=config.AUDIT_ENABLED,
            max_buffer_size=config.AUDIT_BUFFER_SIZE,
        )

    return _audit_logger


def reset_audit_logger() -> None:
    """Reset the global logger (for testing)."""
    global _audit_logger
    _audit_logger = None
