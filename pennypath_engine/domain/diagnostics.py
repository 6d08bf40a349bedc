"""Degraded-result notices.

Components never fail on malformed records; they skip or clamp the record and
note what happened here so callers can tell a partial answer from a full one.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


class DiagnosticKind(str, Enum):
    DANGLING_REFERENCE = "dangling_reference"
    INVALID_NUMERIC = "invalid_numeric"
    CALENDAR_FALLBACK = "calendar_fallback"
    MALFORMED_RECURRENCE = "malformed_recurrence"
    DUPLICATE_BUDGET = "duplicate_budget"
    BALANCE_SIGN = "balance_sign"
    RECURRENCE_LIMIT = "recurrence_limit"


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    record_id: Optional[str]
    detail: str


class Diagnostics:
    """Collector passed through a computation"""

    def __init__(self) -> None:
        self._items: List[Diagnostic] = []

    def record(self, kind: DiagnosticKind, record_id: Optional[str], detail: str) -> None:
        self._items.append(Diagnostic(kind=kind, record_id=record_id, detail=detail))
        logger.warning(detail, extra={"diagnostic": kind.value, "record_id": record_id})

    def extend(self, other: "Diagnostics") -> None:
        self._items.extend(other._items)

    @property
    def items(self) -> Tuple[Diagnostic, ...]:
        return tuple(self._items)

    @property
    def is_degraded(self) -> bool:
        return bool(self._items)

    def count(self, kind: DiagnosticKind) -> int:
        return sum(1 for d in self._items if d.kind is kind)

    def __len__(self) -> int:
        return len(self._items)


def note(diagnostics: Optional[Diagnostics], kind: DiagnosticKind, record_id: Optional[str], detail: str) -> None:
    """Record on ``diagnostics`` when given; otherwise only log"""
    if diagnostics is not None:
        diagnostics.record(kind, record_id, detail)
    else:
        logger.warning(detail, extra={"diagnostic": kind.value, "record_id": record_id})
