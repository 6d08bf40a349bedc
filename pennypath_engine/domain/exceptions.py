"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class CalendarArithmeticError(DomainException):
    """Calendar-aware date addition produced no representable date"""

    pass


class MalformedRecurrenceError(DomainException):
    """Recurrence value does not name a supported rule"""

    pass


class InvalidPlanError(DomainException):
    """BNPL plan numbers cannot produce a schedule"""

    pass


class InvalidTransferError(DomainException):
    """Transfer cannot be expressed as a pair of ledger entries"""

    pass


class RecordNotFoundError(DomainException):
    """Requested record id is not present in the snapshot"""

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id
