# x402_aar/protocol/audit.py
"""
JSON-lines audit trail for the AAR payment flow.

Each line is one AuditEvent. Writing is controlled by X402_AUDIT_ENABLED
and goes to X402_AUDIT_LOG_PATH; a failed write is logged and dropped so
the payment flow itself never fails on auditing.
"""
import json
import logging
import uuid
from collections import deque
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from pydantic import BaseModel, Field

from x402_aar.core.config import settings

logger = logging.getLogger(__name__)


class AuditEventType(Enum):
    """Stages of the payment flow that leave an audit record."""
    PAYMENT_REQUIRED_SENT = "payment_required_sent"
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_VERIFIED = "payment_verified"
    PAYMENT_FAILED = "payment_failed"
    ERROR = "error"


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class AuditEvent(BaseModel):
    """One line of the audit trail."""
    event_type: AuditEventType
    data: Dict[str, Any] = Field(default_factory=dict)
    client_ip: Optional[str] = None
    request_id: str = Field(default_factory=new_request_id)
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_line(self) -> str:
        return json.dumps(self.model_dump(mode="json")) + "\n"


def audit_log_path() -> Path:
    return Path(settings.X402_AUDIT_LOG_PATH)


def record(
    event_type: AuditEventType,
    client_ip: Optional[str] = None,
    request_id: Optional[str] = None,
    **data: Any
) -> Optional[str]:
    """
    Append an event to the audit trail.

    Returns:
        The event's request id, or None if auditing is off or the write failed
    """
    if not settings.X402_AUDIT_ENABLED:
        return None

    event = AuditEvent(event_type=event_type, data=data, client_ip=client_ip)
    if request_id:
        event.request_id = request_id

    path = audit_log_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a") as f:
            f.write(event.to_line())
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"x402: Failed to write audit event to {path}: {e}")
        return None

    logger.debug(f"x402: Audit {event.event_type.value} [{event.request_id}]")
    return event.request_id


def log_payment_required_sent(
    client_ip: Optional[str],
    offer_id: str,
    accepted_assets: List[str],
    pay_to: Optional[str],
    request_id: Optional[str] = None
) -> Optional[str]:
    """A 402 with both offers went out."""
    return record(
        AuditEventType.PAYMENT_REQUIRED_SENT, client_ip, request_id,
        offer_id=offer_id, accepted_assets=accepted_assets, pay_to=pay_to,
    )


def log_payment_received(
    client_ip: Optional[str],
    header_length: int,
    request_id: Optional[str] = None
) -> Optional[str]:
    """An X-402-PAYMENT header arrived; recorded before decoding."""
    return record(AuditEventType.PAYMENT_RECEIVED, client_ip, request_id, header_length=header_length)


def log_payment_verified(
    client_ip: Optional[str],
    offer_id: str,
    quote_id: str,
    chain: str,
    asset: str,
    amount_out: str,
    tx_hash: str,
    pay_to: Optional[str] = None,
    request_id: Optional[str] = None
) -> Optional[str]:
    return record(
        AuditEventType.PAYMENT_VERIFIED, client_ip, request_id,
        offer_id=offer_id, quote_id=quote_id, chain=chain, asset=asset,
        amount_out=amount_out, tx_hash=tx_hash, pay_to=pay_to,
    )


def log_payment_failed(
    client_ip: Optional[str],
    reason: str,
    stage: str,
    request_id: Optional[str] = None
) -> Optional[str]:
    return record(AuditEventType.PAYMENT_FAILED, client_ip, request_id, reason=reason, stage=stage)


def log_error(
    client_ip: Optional[str],
    error_type: str,
    error_message: str,
    context: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None
) -> Optional[str]:
    return record(
        AuditEventType.ERROR, client_ip, request_id,
        error_type=error_type, error_message=error_message, context=context or {},
    )


def iter_audit_events(path: Path) -> Iterator[Dict[str, Any]]:
    """Yield events oldest first, skipping blank and corrupt lines."""
    with path.open() as f:
        for line in f:
            if not line.strip():
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                logger.debug(f"x402: Skipping corrupt audit line in {path}")


def read_audit_log(
    max_entries: int = 100,
    event_type: Optional[AuditEventType] = None,
    client_ip: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Most recent audit events first.

    Args:
        max_entries: Cap on the number of events returned
        event_type: Only events of this type
        client_ip: Only events from this client
    """
    path = audit_log_path()
    if not path.exists():
        return []

    latest: deque = deque(maxlen=max_entries)
    try:
        for event in iter_audit_events(path):
            if event_type and event.get("event_type") != event_type.value:
                continue
            if client_ip and event.get("client_ip") != client_ip:
                continue
            latest.append(event)
    except OSError as e:
        logger.error(f"x402: Failed to read audit log {path}: {e}")
        return []

    return list(reversed(latest))
