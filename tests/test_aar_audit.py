"""
Unit tests for x402 AAR audit logging.
"""
import json
import tempfile
from pathlib import Path
from unittest.mock import patch

from x402_aar.protocol.audit import (
    AuditEvent,
    AuditEventType,
    audit_log_path,
    new_request_id,
    record,
    log_payment_required_sent,
    log_payment_received,
    log_payment_verified,
    log_payment_failed,
    log_error,
    read_audit_log,
)


class TestAuditEventType:
    """Test audit event type enumeration."""

    def test_event_types_exist(self):
        """All expected event types exist."""
        assert AuditEventType.PAYMENT_REQUIRED_SENT.value == "payment_required_sent"
        assert AuditEventType.PAYMENT_RECEIVED.value == "payment_received"
        assert AuditEventType.PAYMENT_VERIFIED.value == "payment_verified"
        assert AuditEventType.PAYMENT_FAILED.value == "payment_failed"
        assert AuditEventType.ERROR.value == "error"


class TestAuditEvent:
    """Test the audit event record."""

    def test_request_ids(self):
        """Request IDs are short and unique."""
        ids = [new_request_id() for _ in range(100)]
        assert all(len(request_id) == 8 for request_id in ids)
        assert len(set(ids)) == 100

    def test_line_structure(self):
        """An event serializes to one JSON line."""
        event = AuditEvent(
            event_type=AuditEventType.PAYMENT_FAILED,
            data={"reason": "BAD_TYPE"},
            client_ip="192.168.1.1",
            request_id="abc12345",
        )
        line = event.to_line()
        assert line.endswith("\n")

        parsed = json.loads(line)
        assert parsed["event_type"] == "payment_failed"
        assert parsed["request_id"] == "abc12345"
        assert parsed["client_ip"] == "192.168.1.1"
        assert parsed["data"] == {"reason": "BAD_TYPE"}

    def test_timestamp_is_iso_utc(self):
        """Timestamp is ISO format in UTC."""
        event = AuditEvent(event_type=AuditEventType.ERROR)
        assert "T" in event.timestamp
        assert event.timestamp.endswith("+00:00")
        assert event.data == {}


class TestRecord:
    """Test appending events to the audit file."""

    @patch("x402_aar.protocol.audit.settings")
    def test_writes_event_to_file(self, mock_settings):
        """Events are written as JSON lines."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_path = Path(tmpdir) / "audit.jsonl"
            mock_settings.X402_AUDIT_ENABLED = True
            mock_settings.X402_AUDIT_LOG_PATH = str(log_path)

            request_id = record(AuditEventType.PAYMENT_RECEIVED, "192.168.1.1", header_length=10)

            assert request_id is not None
            lines = log_path.read_text().splitlines()
            assert len(lines) == 1
            event = json.loads(lines[0])
            assert event["request_id"] == request_id
            assert event["data"] == {"header_length": 10}

    @patch("x402_aar.protocol.audit.settings")
    def test_explicit_request_id(self, mock_settings):
        """A caller-supplied request ID is kept."""
        with tempfile.TemporaryDirectory() as tmpdir:
            mock_settings.X402_AUDIT_ENABLED = True
            mock_settings.X402_AUDIT_LOG_PATH = str(Path(tmpdir) / "audit.jsonl")

            assert record(AuditEventType.ERROR, request_id="req00001") == "req00001"
            assert read_audit_log()[0]["request_id"] == "req00001"

    @patch("x402_aar.protocol.audit.settings")
    def test_disabled_returns_none(self, mock_settings):
        """Nothing is written when auditing is disabled."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_path = Path(tmpdir) / "audit.jsonl"
            mock_settings.X402_AUDIT_ENABLED = False
            mock_settings.X402_AUDIT_LOG_PATH = str(log_path)

            assert record(AuditEventType.ERROR) is None
            assert not log_path.exists()

    @patch("x402_aar.protocol.audit.settings")
    def test_creates_directory(self, mock_settings):
        """Missing parent directories are created."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_path = Path(tmpdir) / "nested" / "dir" / "audit.jsonl"
            mock_settings.X402_AUDIT_ENABLED = True
            mock_settings.X402_AUDIT_LOG_PATH = str(log_path)

            assert audit_log_path() == log_path
            assert record(AuditEventType.ERROR) is not None
            assert log_path.exists()

    @patch("x402_aar.protocol.audit.settings")
    def test_unwritable_path_returns_none(self, mock_settings):
        """A write failure is logged, not raised."""
        with tempfile.TemporaryDirectory() as tmpdir:
            # A directory cannot be opened for appending
            mock_settings.X402_AUDIT_ENABLED = True
            mock_settings.X402_AUDIT_LOG_PATH = tmpdir

            assert record(AuditEventType.ERROR) is None


class TestConvenienceFunctions:
    """Test event-specific helpers."""

    @patch("x402_aar.protocol.audit.settings")
    def test_helpers_write_expected_data(self, mock_settings):
        """Each helper writes its event type and data."""
        with tempfile.TemporaryDirectory() as tmpdir:
            mock_settings.X402_AUDIT_ENABLED = True
            mock_settings.X402_AUDIT_LOG_PATH = str(Path(tmpdir) / "audit.jsonl")

            log_payment_required_sent("10.0.0.1", "0xabc123", ["0xa", "0xb"], "0xMERCHANT")
            log_payment_received("10.0.0.1", header_length=120)
            log_payment_verified(
                "10.0.0.1",
                offer_id="0xabc123",
                quote_id="q1",
                chain="base",
                asset="0xa",
                amount_out="100",
                tx_hash="0xT",
                pay_to="0xMERCHANT",
            )
            log_payment_failed("10.0.0.2", reason="BAD_TYPE", stage="verify")
            log_error("10.0.0.2", "RuntimeError", "boom", context={"path": "/resource"})

            events = read_audit_log()
            assert [e["event_type"] for e in events] == [
                "error",
                "payment_failed",
                "payment_verified",
                "payment_received",
                "payment_required_sent",
            ]
            assert events[4]["data"]["accepted_assets"] == ["0xa", "0xb"]
            assert events[2]["data"]["amount_out"] == "100"
            assert events[0]["data"]["context"] == {"path": "/resource"}


class TestReadAuditLog:
    """Test reading and filtering the audit log."""

    @patch("x402_aar.protocol.audit.settings")
    def test_missing_file(self, mock_settings):
        """No log file means no events."""
        mock_settings.X402_AUDIT_LOG_PATH = "/nonexistent/path/audit.jsonl"
        assert read_audit_log() == []

    @patch("x402_aar.protocol.audit.settings")
    def test_filters_and_limits(self, mock_settings):
        """Filter by type and client IP, newest first, capped."""
        with tempfile.TemporaryDirectory() as tmpdir:
            mock_settings.X402_AUDIT_ENABLED = True
            mock_settings.X402_AUDIT_LOG_PATH = str(Path(tmpdir) / "audit.jsonl")

            for i in range(5):
                log_payment_failed(f"10.0.0.{i % 2}", reason=f"R{i}", stage="verify")
            log_error("10.0.0.0", "X", "y")

            failed = read_audit_log(event_type=AuditEventType.PAYMENT_FAILED)
            assert [e["data"]["reason"] for e in failed] == ["R4", "R3", "R2", "R1", "R0"]

            by_ip = read_audit_log(client_ip="10.0.0.1")
            assert [e["data"]["reason"] for e in by_ip] == ["R3", "R1"]

            assert len(read_audit_log(max_entries=2)) == 2

    @patch("x402_aar.protocol.audit.settings")
    def test_skips_corrupt_lines(self, mock_settings):
        """Lines that are not JSON are ignored."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_path = Path(tmpdir) / "audit.jsonl"
            log_path.write_text('not json\n\n{"event_type": "error", "timestamp": "t1"}\n')
            mock_settings.X402_AUDIT_LOG_PATH = str(log_path)

            assert read_audit_log() == [{"event_type": "error", "timestamp": "t1"}]
