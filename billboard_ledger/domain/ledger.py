"""Ledger aggregation - what a customer (or one contract) still owes"""

from decimal import Decimal
from typing import List, Optional, Sequence

from billboard_ledger.domain.models import (
    CompositeTask,
    Contract,
    ContractDetails,
    DebtSummary,
    EntryType,
    LedgerEntry,
    PrintedInvoice,
    PurchaseInvoice,
    RecordId,
    SalesInvoice,
)
from billboard_ledger.utils.money import ZERO, money_sum, to_decimal


def compute_debt_summary(
    contracts: Sequence[Contract],
    entries: Sequence[LedgerEntry],
    sales_invoices: Sequence[SalesInvoice],
    printed_invoices: Sequence[PrintedInvoice],
    purchase_invoices: Sequence[PurchaseInvoice],
    discounts: Decimal = ZERO,
    composite_tasks: Sequence[CompositeTask] = (),
    extra_purchases: Decimal = ZERO,
    friend_rentals_to_exclude: Decimal = ZERO,
) -> DebtSummary:
    """
    Aggregate every debit and credit source into one remaining balance.

    Exclusions avoid double counting:
    - printed invoices generated for a composite task, or already folded into a
      contract, are skipped (the task or contract carries the amount)
    - composite tasks that produced an invoice are counted through that invoice
    - debt entries linked to an invoice are skipped (the invoice carries the amount)

    friend_rentals_to_exclude removes pass-through rentals bundled into contract
    totals; extra_purchases adds purchases recorded outside the invoice table.

    The remaining balance is not floored: a negative value is a credit surplus.
    """
    total_contracts = money_sum(c.total_amount for c in contracts) - to_decimal(friend_rentals_to_exclude)

    total_sales_invoices = money_sum(inv.total_amount for inv in sales_invoices)

    task_invoice_ids = {str(t.combined_invoice_id) for t in composite_tasks if t.combined_invoice_id}
    total_printed_invoices = money_sum(
        inv.total_amount
        for inv in printed_invoices
        if str(inv.id) not in task_invoice_ids and not inv.included_in_contract
    )

    total_composite_tasks = money_sum(t.customer_total for t in composite_tasks if not t.combined_invoice_id)

    total_other_debts = money_sum(e.amount for e in entries if e.entry_type.is_debt and not e.is_linked)

    total_debits = (
        total_contracts + total_sales_invoices + total_printed_invoices + total_other_debts + total_composite_tasks
    )

    total_credits = money_sum(e.amount for e in entries if e.entry_type.is_credit)

    # Purchases from the customer offset their debt unless already applied as a payment
    total_purchases = money_sum(
        max(ZERO, inv.total_amount - inv.used_as_payment) for inv in purchase_invoices
    ) + to_decimal(extra_purchases)

    discounts = to_decimal(discounts)

    return DebtSummary(
        total_contracts=total_contracts,
        total_sales_invoices=total_sales_invoices,
        total_printed_invoices=total_printed_invoices,
        total_composite_tasks=total_composite_tasks,
        total_other_debts=total_other_debts,
        total_debits=total_debits,
        total_credits=total_credits,
        total_purchases=total_purchases,
        discounts=discounts,
        remaining=total_debits - total_credits - discounts - total_purchases,
    )


def compute_remaining_debt(
    contracts: Sequence[Contract],
    entries: Sequence[LedgerEntry],
    sales_invoices: Sequence[SalesInvoice],
    printed_invoices: Sequence[PrintedInvoice],
    purchase_invoices: Sequence[PurchaseInvoice],
    discounts: Decimal = ZERO,
    composite_tasks: Sequence[CompositeTask] = (),
    extra_purchases: Decimal = ZERO,
    friend_rentals_to_exclude: Decimal = ZERO,
) -> Decimal:
    """Remaining balance only; see compute_debt_summary"""
    return compute_debt_summary(
        contracts,
        entries,
        sales_invoices,
        printed_invoices,
        purchase_invoices,
        discounts=discounts,
        composite_tasks=composite_tasks,
        extra_purchases=extra_purchases,
        friend_rentals_to_exclude=friend_rentals_to_exclude,
    ).remaining


def _contract_details(contract: Contract, entries: Sequence[LedgerEntry]) -> ContractDetails:
    # Only receipts posted to this contract count; account-level credits are not
    # attributed to a contract unless they were distributed to it.
    paid = money_sum(
        e.amount
        for e in entries
        if e.entry_type == EntryType.RECEIPT
        and e.contract_number is not None
        and str(e.contract_number) == str(contract.id)
    )
    return ContractDetails(
        contract_id=contract.id,
        total=contract.total_amount,
        paid=paid,
        remaining=max(ZERO, contract.total_amount - paid),
    )


def get_contract_details(
    contract_id: RecordId,
    contracts: Sequence[Contract],
    entries: Sequence[LedgerEntry],
) -> Optional[ContractDetails]:
    """Total, paid and remaining for one contract; None if the contract is not in the snapshot"""
    contract = next((c for c in contracts if str(c.id) == str(contract_id)), None)
    if contract is None:
        return None
    return _contract_details(contract, entries)


def summarize_contracts(contracts: Sequence[Contract], entries: Sequence[LedgerEntry]) -> List[ContractDetails]:
    """Details for every contract, in snapshot order"""
    return [_contract_details(contract, entries) for contract in contracts]
