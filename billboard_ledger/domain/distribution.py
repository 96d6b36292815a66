"""Payment distribution - splitting one payment over several contracts and replaying balances"""

import uuid
from collections import Counter
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from billboard_ledger.domain.exceptions import DuplicateBeneficiaryError, IncompleteDistributionError
from billboard_ledger.domain.models import (
    PAYMENT_ENTRY_TYPES,
    CommitResult,
    Contract,
    CustodyShare,
    DistributableItem,
    DistributionLine,
    DistributionPlan,
    EntryType,
    LedgerEntry,
    PrintedInvoice,
    RecordId,
    SalesInvoice,
    ValidationOutcome,
)
from billboard_ledger.utils.date_utils import as_utc_datetime, effective_timestamp
from billboard_ledger.utils.money import ZERO, clamp, money_sum, to_decimal

DISTRIBUTION_EPSILON = Decimal("0.01")

# Balances at or below this are treated as settled when listing open items
SETTLED_THRESHOLD = Decimal("0.01")


def _id_sort_key(item_id: RecordId) -> Tuple[int, Union[Decimal, str]]:
    # Numeric ids (contract numbers) ascending first, then everything else by text
    try:
        number = Decimal(str(item_id))
    except ArithmeticError:
        return 1, str(item_id)
    if not number.is_finite():
        return 1, str(item_id)
    return 0, number


def order_by_contract_number(items: Sequence[DistributableItem]) -> List[DistributableItem]:
    """Ascending contract number, the order auto-fill settles contracts in"""
    return sorted(items, key=lambda item: _id_sort_key(item.id))


def build_distributable_items(
    contracts: Sequence[Contract],
    printed_invoices: Sequence[PrintedInvoice],
    sales_invoices: Sequence[SalesInvoice],
    entries: Sequence[LedgerEntry],
) -> List[DistributableItem]:
    """
    Everything a payment can still be applied to, with its open balance.

    Payments (receipt, payment, account_payment) are matched to contracts by
    contract number and to invoices by their link. Locked printed invoices and
    settled items are left out. Ordered by id, contracts ascending.
    """
    paid_by_contract: Dict[str, Decimal] = {}
    paid_by_printed: Dict[str, Decimal] = {}
    paid_by_sales: Dict[str, Decimal] = {}

    for entry in entries:
        if entry.entry_type not in PAYMENT_ENTRY_TYPES:
            continue
        if entry.contract_number is not None:
            key = str(entry.contract_number)
            paid_by_contract[key] = paid_by_contract.get(key, ZERO) + entry.amount
        if entry.printed_invoice_id:
            key = str(entry.printed_invoice_id)
            paid_by_printed[key] = paid_by_printed.get(key, ZERO) + entry.amount
        if entry.sales_invoice_id:
            key = str(entry.sales_invoice_id)
            paid_by_sales[key] = paid_by_sales.get(key, ZERO) + entry.amount

    items: List[DistributableItem] = []

    def add(item_id: RecordId, kind: str, total: Decimal, paid: Decimal) -> None:
        remaining = max(ZERO, total - paid)
        if remaining > SETTLED_THRESHOLD:
            items.append(
                DistributableItem(
                    id=item_id, remaining_balance=remaining, kind=kind, total_amount=total, paid_amount=paid
                )
            )

    for contract in contracts:
        add(contract.id, "contract", contract.total_amount, paid_by_contract.get(str(contract.id), ZERO))
    for invoice in printed_invoices:
        if not invoice.locked:
            add(invoice.id, "printed_invoice", invoice.total_amount, paid_by_printed.get(str(invoice.id), ZERO))
    for invoice in sales_invoices:
        add(invoice.id, "sales_invoice", invoice.total_amount, paid_by_sales.get(str(invoice.id), ZERO))

    return order_by_contract_number(items)


def auto_fill(total_amount: Decimal, items: Sequence[DistributableItem]) -> DistributionPlan:
    """
    Greedy split of one payment over the selected items, in the order given.

    Each item takes min(pool, its remaining balance) until the pool is empty.
    Items reached after the pool runs out get no line. Any amount left over
    stays in plan.unallocated and fails validation until the user adjusts it.
    """
    total_amount = to_decimal(total_amount)
    pool = total_amount
    lines: List[DistributionLine] = []

    for item in items:
        if pool <= 0:
            break
        share = min(pool, item.remaining_balance)
        if share <= 0:
            continue
        lines.append(
            DistributionLine(item_id=item.id, kind=item.kind, amount=share, remaining_before=item.remaining_balance)
        )
        pool -= share

    return DistributionPlan(total_amount=total_amount, lines=lines, strategy="auto")


def manual_plan(
    total_amount: Decimal,
    allocations: Mapping[RecordId, Decimal],
    items: Sequence[DistributableItem],
) -> DistributionPlan:
    """
    Plan from amounts typed in per item.

    Amounts are clamped to [0, remaining balance] as they would be on entry.
    Selected ids missing from items are kept in plan.unmatched_ids.
    """
    by_id = {str(item.id): item for item in items}
    requested = {str(item_id): to_decimal(amount) for item_id, amount in allocations.items()}

    lines: List[DistributionLine] = []
    for item in items:
        key = str(item.id)
        if key not in requested:
            continue
        amount = clamp(requested[key], ZERO, item.remaining_balance)
        lines.append(
            DistributionLine(item_id=item.id, kind=item.kind, amount=amount, remaining_before=item.remaining_balance)
        )

    return DistributionPlan(
        total_amount=to_decimal(total_amount),
        lines=lines,
        strategy="manual",
        unmatched_ids=[key for key in requested if key not in by_id],
    )


def validate_distribution(plan: DistributionPlan, epsilon: Decimal = DISTRIBUTION_EPSILON) -> ValidationOutcome:
    """
    A plan can be saved only if every selected line is positive and the lines
    add up to the payment amount within epsilon.
    """
    outcome = ValidationOutcome()
    allocated = plan.allocated_total

    def fail(message: str, reason: str, item_id: Optional[RecordId] = None) -> None:
        outcome.errors.append(
            IncompleteDistributionError(
                message,
                reason=reason,
                total_amount=plan.total_amount,
                allocated=allocated,
                item_id=None if item_id is None else str(item_id),
            )
        )

    if plan.total_amount <= 0:
        fail(f"Payment amount must be positive, got {plan.total_amount}", "invalid_total")
    if not plan.lines:
        fail("Select at least one item and allocate an amount to it", "no_selection")
    for item_id in plan.unmatched_ids:
        fail(f"Item {item_id} is not open for distribution", "unknown_item", item_id)
    for line in plan.lines:
        if line.amount <= 0:
            fail(f"Allocation for {line.item_id} must be positive", "non_positive_allocation", line.item_id)
    if abs(plan.total_amount - allocated) > epsilon:
        fail(f"Allocated {allocated} does not equal payment amount {plan.total_amount}", "sum_mismatch")

    return outcome


def commit_distribution(
    plan: DistributionPlan,
    paid_at: Union[date, datetime],
    group_id: Optional[str] = None,
    entry_type: EntryType = EntryType.RECEIPT,
    created_at: Optional[datetime] = None,
    epsilon: Decimal = DISTRIBUTION_EPSILON,
) -> CommitResult:
    """
    Turn a valid plan into ledger entries sharing one distributed_group_id.

    A fresh group id is generated unless one is passed (re-saving an edited
    distribution keeps its id). Invalid plans produce no entries.
    """
    outcome = validate_distribution(plan, epsilon=epsilon)
    if not outcome.ok:
        return CommitResult(outcome=outcome)

    group_id = group_id or str(uuid.uuid4())
    created_at = created_at or datetime.now(timezone.utc)

    entries = []
    for line in plan.lines:
        links = {}
        if line.kind == "contract":
            links["contract_number"] = line.item_id
        elif line.kind == "printed_invoice":
            links["printed_invoice_id"] = str(line.item_id)
        elif line.kind == "sales_invoice":
            links["sales_invoice_id"] = str(line.item_id)
        entries.append(
            LedgerEntry(
                id=str(uuid.uuid4()),
                amount=line.amount,
                entry_type=entry_type,
                created_at=created_at,
                paid_at=paid_at,
                distributed_group_id=group_id,
                **links,
            )
        )

    return CommitResult(outcome=outcome, group_id=group_id, entries=entries)


def _chronological(entries: Sequence[LedgerEntry]) -> List[LedgerEntry]:
    return sorted(
        entries,
        key=lambda e: (effective_timestamp(e.paid_at, e.created_at), as_utc_datetime(e.created_at)),
    )


def balance_after_payment(
    payment_id: RecordId,
    entries: Sequence[LedgerEntry],
    total_debits: Decimal,
) -> Decimal:
    """
    Balance remaining right after a given payment posted, as printed on its receipt.

    Entries are replayed in order of paid_at (created_at when missing, and as
    tiebreak). A payment that is part of a distributed group counts up to the
    group's last member, since the balance is only meaningful once the whole
    group has posted. Pure function of the snapshot; an unknown payment id
    returns total_debits.
    """
    total_debits = to_decimal(total_debits)
    ordered = _chronological(entries)

    cursor = next((i for i, e in enumerate(ordered) if str(e.id) == str(payment_id)), None)
    if cursor is None:
        return total_debits

    group_id = ordered[cursor].distributed_group_id
    if group_id:
        cursor = max(i for i, e in enumerate(ordered) if e.distributed_group_id == group_id)

    credits = money_sum(e.amount for e in ordered[: cursor + 1] if e.entry_type in PAYMENT_ENTRY_TYPES)
    return max(ZERO, total_debits - credits)


def split_custody(
    total_amount: Decimal,
    shares: Sequence[CustodyShare],
    epsilon: Decimal = DISTRIBUTION_EPSILON,
) -> ValidationOutcome:
    """Check a custody amount split among beneficiaries: each once, each positive, summing to the total"""
    total_amount = to_decimal(total_amount)
    allocated = money_sum(share.amount for share in shares)
    outcome = ValidationOutcome()

    counts = Counter(str(share.beneficiary_id) for share in shares)
    for beneficiary_id, count in counts.items():
        if count > 1:
            outcome.errors.append(DuplicateBeneficiaryError(beneficiary_id))

    for share in shares:
        if share.amount <= 0:
            outcome.errors.append(
                IncompleteDistributionError(
                    f"Share for {share.beneficiary_id} must be positive",
                    reason="non_positive_allocation",
                    total_amount=total_amount,
                    allocated=allocated,
                    item_id=str(share.beneficiary_id),
                )
            )

    if abs(total_amount - allocated) > epsilon:
        outcome.errors.append(
            IncompleteDistributionError(
                f"Shares total {allocated} does not equal custody amount {total_amount}",
                reason="sum_mismatch",
                total_amount=total_amount,
                allocated=allocated,
            )
        )

    return outcome
