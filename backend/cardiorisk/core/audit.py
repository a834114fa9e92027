"""Audit logging for risk calculations.

Records which algorithm ran, whether it succeeded, and summary counts.
Patient values are never written to the audit log.
"""

import logging
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

# Separate audit logger so calculation events can be routed independently
audit_logger = logging.getLogger("audit")


class AuditAction(str, Enum):
    """Types of auditable actions."""

    CALCULATE = "calculate"
    COMPARE = "compare"
    SIMULATE = "simulate"
    SWITCH_ALGORITHM = "switch_algorithm"


class AuditEvent(BaseModel):
    """Audit event record."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    action: AuditAction = Field(..., description="Type of action performed")
    algorithm: str = Field(..., description="Algorithm involved")
    details: dict[str, Any] | None = Field(None, description="Additional context")
    success: bool = Field(True, description="Whether action succeeded")


def log_audit(
    action: AuditAction,
    algorithm: str,
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> AuditEvent:
    """Log an audit event.

    Args:
        action: Type of action being audited
        algorithm: Name of the algorithm involved
        details: Additional context (counts and flags only)
        success: Whether the action succeeded

    Returns:
        The created AuditEvent
    """
    event = AuditEvent(
        action=action,
        algorithm=algorithm,
        details=details,
        success=success,
    )

    log_level = logging.INFO if success else logging.WARNING
    audit_logger.log(
        log_level,
        f"AUDIT: {action.value} algorithm={algorithm} success={success}",
        extra={"audit_event": event.model_dump()},
    )

    return event


def log_calculation(
    algorithm: str,
    success: bool,
    defaults_count: int = 0,
    warnings_count: int = 0,
    compared: bool = False,
) -> AuditEvent:
    """Log a completed risk calculation.

    Args:
        algorithm: Algorithm that produced the primary result
        success: Whether the calculation succeeded
        defaults_count: Number of population defaults applied
        warnings_count: Number of soft warnings raised
        compared: Whether comparison mode ran the other models too

    Returns:
        The created AuditEvent
    """
    return log_audit(
        action=AuditAction.CALCULATE,
        algorithm=algorithm,
        details={
            "defaults_count": defaults_count,
            "warnings_count": warnings_count,
            "compared": compared,
        },
        success=success,
    )


def log_simulation(algorithm: str, requested: int, applied: int) -> AuditEvent:
    """Log an intervention simulation run."""
    return log_audit(
        action=AuditAction.SIMULATE,
        algorithm=algorithm,
        details={"requested": requested, "applied": applied},
    )


def log_algorithm_switch(previous: str, current: str) -> AuditEvent:
    """Log a change of the active algorithm."""
    return log_audit(
        action=AuditAction.SWITCH_ALGORITHM,
        algorithm=current,
        details={"previous": previous},
    )
