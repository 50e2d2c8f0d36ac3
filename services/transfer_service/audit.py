"""
Audit trail for download attempts.
Records which asset was requested and how the attempt ended. Tokens are never recorded.
"""
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List

from core.utils.logger import AUDIT_LOGGER_NAME, setup_logger

audit_logger = setup_logger(AUDIT_LOGGER_NAME)


class TransferOutcome(str, Enum):
    COMPLETED = "completed"
    BAD_REQUEST = "bad_request"
    ABORTED = "aborted"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


_OUTCOME_LEVELS = {
    TransferOutcome.COMPLETED: logging.INFO,
    TransferOutcome.BAD_REQUEST: logging.WARNING,
    TransferOutcome.ABORTED: logging.ERROR,
    TransferOutcome.FORBIDDEN: logging.WARNING,
    TransferOutcome.NOT_FOUND: logging.WARNING,
    TransferOutcome.UNAVAILABLE: logging.ERROR,
}


@dataclass(frozen=True)
class AuditEvent:
    asset_id: str
    outcome: TransferOutcome
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AuditRecorder:
    """Keeps the most recent audit events in memory and writes each to the audit log."""

    def __init__(self, max_events: int = 1000):
        self._events = deque(maxlen=max_events)

    def record(self, asset_id: str, outcome: TransferOutcome) -> AuditEvent:
        event = AuditEvent(asset_id=asset_id, outcome=outcome)
        self._events.append(event)
        audit_logger.log(
            _OUTCOME_LEVELS[outcome],
            f"download asset_id={asset_id} outcome={outcome.value}"
        )
        return event

    @property
    def events(self) -> List[AuditEvent]:
        return list(self._events)

    def events_for(self, asset_id: str) -> List[AuditEvent]:
        return [e for e in self._events if e.asset_id == asset_id]
