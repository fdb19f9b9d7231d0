from __future__ import annotations

import logging
from typing import List, Optional

from .models import ErrorKind, ErrorRecord

logger = logging.getLogger(__name__)


class AuditEngineError(Exception):
    pass


class ValidationError(AuditEngineError, ValueError):
    """Raised when a rule cannot be registered."""


class ContextResolutionError(AuditEngineError, ValueError):
    """Raised when a run target is not a document, an element or a page."""


class DeadlineExceeded(AuditEngineError):
    pass


class RecordableError(AuditEngineError):
    """Non-fatal failure that degrades one rule or element instead of the run."""

    kind: ErrorKind = ErrorKind.RULE_ERROR

    def __init__(self, message: str, *, rule_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.rule_id = rule_id

    def to_record(self) -> ErrorRecord:
        return ErrorRecord(kind=self.kind, rule_id=self.rule_id, message=self.message)


class SelectorError(RecordableError):
    kind = ErrorKind.SELECTOR_ERROR


class ElementEvaluationError(RecordableError):
    kind = ErrorKind.ELEMENT_ERROR


class ElementLimitExceeded(RecordableError):
    kind = ErrorKind.ELEMENT_LIMIT


class RuleTimeoutError(RecordableError):
    kind = ErrorKind.TIMEOUT


class GlobalTimeoutError(RecordableError):
    kind = ErrorKind.TIMEOUT


class RuleExecutionError(RecordableError):
    kind = ErrorKind.RULE_ERROR


class ErrorLog:
    """Append-only collector for the non-fatal errors of one run."""

    def __init__(self):
        self._records: List[ErrorRecord] = []

    def capture(self, error: RecordableError) -> ErrorRecord:
        record = error.to_record()
        logger.warning("%s%s: %s", record.kind.value, f" [{record.rule_id}]" if record.rule_id else "", record.message)
        self._records.append(record)
        return record

    def records(self) -> List[ErrorRecord]:
        return list(self._records)

    def of_kind(self, kind: ErrorKind) -> List[ErrorRecord]:
        return [r for r in self._records if r.kind == kind]

    def __len__(self) -> int:
        return len(self._records)
