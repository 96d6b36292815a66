"""Installment schedule generation for contract payments"""

from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from billboard_ledger.domain.exceptions import InvalidScheduleError
from billboard_ledger.domain.models import ContractInstallment, InstallmentGroup
from billboard_ledger.utils.date_utils import add_months
from billboard_ledger.utils.money import CENT, HUNDRED, ZERO, clamp, floor2, round2, to_decimal

MAX_INSTALLMENTS = 12
DEFAULT_SCHEDULE_MONTHS = 6

ON_SIGNING = "on_signing"
MONTHLY = "monthly"


def _interval_label(interval_months: int) -> str:
    return MONTHLY if interval_months == 1 else f"every_{interval_months}_months"


def distribute_evenly(
    total: Decimal,
    count: int,
    start_date: Optional[date] = None,
) -> List[ContractInstallment]:
    """
    Split a contract total into equal monthly installments.

    Requirements:
    - count clamped to 1..12
    - each installment floored to cents
    - last installment absorbs rounding remainder
    - first installment due at signing (start_date), the rest monthly after it

    Example:
        1000.00 over 3 -> [333.33, 333.33, 333.34]
    """
    total = to_decimal(total)
    if total <= 0:
        raise InvalidScheduleError(f"Cannot schedule a non-positive total {total}")

    if start_date is None:
        start_date = date.today()

    count = max(1, min(MAX_INSTALLMENTS, int(count)))
    even = floor2(total / count)

    installments = []
    for i in range(count):
        # Last installment absorbs remainder to ensure exact total
        amount = round2(total - even * (count - 1)) if i == count - 1 else even
        installments.append(
            ContractInstallment(
                due_date=add_months(start_date, i),
                amount=amount,
                description="First payment at signing" if i == 0 else f"Installment {i + 1}",
                payment_type=ON_SIGNING if i == 0 else MONTHLY,
            )
        )

    return installments


def distribute_with_interval(
    total: Decimal,
    first_payment: Decimal = ZERO,
    first_payment_type: str = "amount",
    interval_months: int = 1,
    num_payments: Optional[int] = None,
    last_payment_date: Optional[date] = None,
    start_date: Optional[date] = None,
) -> List[ContractInstallment]:
    """
    Optional up-front payment followed by recurring payments every N months.

    Requirements:
    - first_payment is an amount, or a percentage of the total when first_payment_type == "percent"
    - recurring count: num_payments (1..12), else derived from last_payment_date
      (30-day months), else enough to cover six months
    - recurring payments floored to cents (at least one cent each), last one absorbs the remainder
    - without a first payment the recurring schedule starts on start_date
    """
    total = to_decimal(total)
    if total <= 0:
        raise InvalidScheduleError(f"Cannot schedule a non-positive total {total}")
    if interval_months < 1:
        raise InvalidScheduleError(f"Interval must be at least one month, got {interval_months}")
    if first_payment_type not in ("amount", "percent"):
        raise InvalidScheduleError(f"Unknown first payment type '{first_payment_type}'")

    if start_date is None:
        start_date = date.today()

    first = to_decimal(first_payment)
    if first_payment_type == "percent":
        first = round2(total * clamp(first, ZERO, HUNDRED) / HUNDRED)
    if first < 0:
        raise InvalidScheduleError("First payment cannot be negative")
    if first > total:
        raise InvalidScheduleError(f"First payment {first} exceeds total {total}")

    installments: List[ContractInstallment] = []
    has_first_payment = first > 0
    if has_first_payment:
        installments.append(
            ContractInstallment(
                due_date=start_date,
                amount=round2(first),
                description="First payment",
                payment_type=ON_SIGNING,
            )
        )

    remaining = total - first
    if remaining <= 0:
        return installments

    if num_payments:
        count = max(1, min(MAX_INSTALLMENTS, int(num_payments)))
    elif last_payment_date is not None:
        months = max(1, round((last_payment_date - start_date).days / 30))
        count = max(1, months // interval_months)
    else:
        count = max(1, DEFAULT_SCHEDULE_MONTHS // interval_months)

    # Recurring payments are at least one cent; the last one absorbs the remainder
    count = max(1, min(count, int(remaining / CENT)))
    recurring = floor2(remaining / count)
    running = first
    label = _interval_label(interval_months)
    for i in range(count):
        amount = total - running if i == count - 1 else recurring
        offset = i + 1 if has_first_payment else i
        number = i + 2 if has_first_payment else i + 1
        installments.append(
            ContractInstallment(
                due_date=add_months(start_date, offset * interval_months),
                amount=round2(amount),
                description=f"Installment {number}",
                payment_type=label,
            )
        )
        running += amount

    return installments


def unscheduled_amount(installments: Sequence[ContractInstallment], total: Decimal) -> Decimal:
    """Part of the total not yet covered by installments (negative when over-scheduled)"""
    return to_decimal(total) - sum((inst.amount for inst in installments), ZERO)


def group_repeating_installments(installments: Sequence[ContractInstallment]) -> List[InstallmentGroup]:
    """
    Collapse runs of consecutive installments with the same amount (within a cent).

    Used for compact schedule display, e.g. "5 payments x 1,000".
    """
    groups: List[InstallmentGroup] = []
    i = 0
    while i < len(installments):
        current = installments[i]
        count = 1
        while i + count < len(installments) and abs(current.amount - installments[i + count].amount) < CENT:
            count += 1
        run = list(installments[i : i + count])
        groups.append(
            InstallmentGroup(
                amount=current.amount,
                count=count,
                payment_type=current.payment_type,
                start_date=current.due_date,
                end_date=run[-1].due_date,
                installments=run,
            )
        )
        i += count
    return groups
