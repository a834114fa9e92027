"""Core configuration and utilities."""

from cardiorisk.core.audit import (
    AuditAction,
    AuditEvent,
    log_algorithm_switch,
    log_audit,
    log_calculation,
    log_simulation,
)
from cardiorisk.core.config import Settings, settings

__all__ = [
    # Config
    "Settings",
    "settings",
    # Audit
    "AuditAction",
    "AuditEvent",
    "log_algorithm_switch",
    "log_audit",
    "log_calculation",
    "log_simulation",
]
