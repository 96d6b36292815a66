"""Domain-specific exceptions

Every condition here is correctable by the user. Validators collect them into a
ValidationOutcome instead of raising, so callers can re-render the offending
inputs; raise_for_errors() is available where an exception is more convenient.
"""

from decimal import Decimal
from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    code = "domain_error"

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": str(self)}


class InvalidRecordError(DomainException):
    """Input record is malformed (unknown entry type, negative contract total, ...)"""

    code = "invalid_record"


class UnbalancedAllocationError(DomainException):
    """A service's percentage or amount split does not add up"""

    code = "unbalanced_allocation"

    def __init__(self, service: str, mode: str, expected: Decimal, actual: Decimal):
        self.service = service
        self.mode = mode
        self.expected = expected
        self.actual = actual
        self.delta = actual - expected
        unit = "%" if mode == "percentage" else ""
        super().__init__(
            f"{service} allocation is unbalanced: total {actual}{unit} != {expected}{unit} (delta {self.delta})"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            **super().to_dict(),
            "service": self.service,
            "mode": self.mode,
            "expected": str(self.expected),
            "actual": str(self.actual),
            "delta": str(self.delta),
        }


class IncompleteDistributionError(DomainException):
    """Distributed payment lines do not account for the payment amount"""

    code = "incomplete_distribution"

    def __init__(
        self,
        message: str,
        reason: str,
        total_amount: Decimal,
        allocated: Decimal,
        item_id: Optional[str] = None,
    ):
        self.reason = reason
        self.total_amount = total_amount
        self.allocated = allocated
        self.delta = total_amount - allocated
        self.item_id = item_id
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            **super().to_dict(),
            "reason": self.reason,
            "total_amount": str(self.total_amount),
            "allocated": str(self.allocated),
            "delta": str(self.delta),
        }
        if self.item_id is not None:
            data["item_id"] = self.item_id
        return data


class MissingPriceError(DomainException):
    """Billboard size has no price table entry and no parseable dimensions"""

    code = "missing_price"

    def __init__(self, size: str, billboard_id: Any = None, detail: str = "no price table entry"):
        self.size = size
        self.billboard_id = billboard_id
        self.detail = detail
        target = f"billboard {billboard_id} " if billboard_id is not None else ""
        super().__init__(f"Missing pricing for {target}size '{size}': {detail}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            **super().to_dict(),
            "size": self.size,
            "detail": self.detail,
            "billboard_id": None if self.billboard_id is None else str(self.billboard_id),
        }


class DuplicateBeneficiaryError(DomainException):
    """The same beneficiary appears more than once in one distribution"""

    code = "duplicate_beneficiary"

    def __init__(self, beneficiary_id: Any):
        self.beneficiary_id = beneficiary_id
        super().__init__(f"Beneficiary {beneficiary_id} appears more than once")

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "beneficiary_id": str(self.beneficiary_id)}


class InvalidScheduleError(DomainException):
    """Installment schedule parameters cannot produce a valid plan"""

    code = "invalid_schedule"
