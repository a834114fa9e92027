"""Tests for audit logging."""

import logging
from datetime import UTC, datetime

import pytest

from cardiorisk.core.audit import (
    AuditAction,
    AuditEvent,
    log_algorithm_switch,
    log_audit,
    log_calculation,
    log_simulation,
)


class TestAuditEvent:
    """Tests for AuditEvent model."""

    def test_audit_event_required_fields(self) -> None:
        """Test AuditEvent with required fields only."""
        event = AuditEvent(action=AuditAction.CALCULATE, algorithm="PCE")
        assert event.action == AuditAction.CALCULATE
        assert event.algorithm == "PCE"
        assert event.success is True
        assert event.details is None

    def test_audit_event_timestamp_auto_set(self) -> None:
        """Test that timestamp is automatically set."""
        before = datetime.now(UTC)
        event = AuditEvent(action=AuditAction.COMPARE, algorithm="PREVENT")
        after = datetime.now(UTC)
        assert before <= event.timestamp <= after


class TestAuditActions:
    """Tests for audit action types."""

    def test_audit_action_values(self) -> None:
        """Test action values."""
        assert AuditAction.CALCULATE == "calculate"
        assert AuditAction.COMPARE == "compare"
        assert AuditAction.SIMULATE == "simulate"
        assert AuditAction.SWITCH_ALGORITHM == "switch_algorithm"


class TestLogFunctions:
    """Tests for audit logging convenience functions."""

    def test_log_audit_returns_event(self) -> None:
        """Test log_audit returns the audit event."""
        event = log_audit(AuditAction.CALCULATE, "PCE", details={"defaults_count": 1})
        assert isinstance(event, AuditEvent)
        assert event.details == {"defaults_count": 1}

    def test_log_audit_writes_to_audit_logger(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test events go to the dedicated audit logger."""
        with caplog.at_level(logging.INFO, logger="audit"):
            log_audit(AuditAction.SIMULATE, "PREVENT")
        assert any(
            record.name == "audit" and "simulate" in record.getMessage()
            for record in caplog.records
        )

    def test_failed_event_logged_as_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test unsuccessful events are logged at WARNING."""
        with caplog.at_level(logging.INFO, logger="audit"):
            log_calculation("PCE", success=False)
        assert caplog.records[-1].levelno == logging.WARNING

    def test_log_calculation_counts_only(self) -> None:
        """Test calculation events carry counts and flags."""
        event = log_calculation("PREVENT", success=True, defaults_count=2, warnings_count=3, compared=True)
        assert event.action == AuditAction.CALCULATE
        assert event.details == {"defaults_count": 2, "warnings_count": 3, "compared": True}

    def test_log_simulation(self) -> None:
        """Test simulation events record requested and applied counts."""
        event = log_simulation("PCE", requested=3, applied=2)
        assert event.action == AuditAction.SIMULATE
        assert event.details == {"requested": 3, "applied": 2}

    def test_log_algorithm_switch(self) -> None:
        """Test switch events record the previous algorithm."""
        event = log_algorithm_switch("PCE", "PREVENT")
        assert event.action == AuditAction.SWITCH_ALGORITHM
        assert event.algorithm == "PREVENT"
        assert event.details == {"previous": "PCE"}
