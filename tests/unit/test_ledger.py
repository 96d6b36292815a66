"""Unit tests for debt aggregation and per-contract balances"""

from decimal import Decimal

import pytest

from billboard_ledger.domain.exceptions import InvalidRecordError
from billboard_ledger.domain.ledger import (
    compute_debt_summary,
    compute_remaining_debt,
    get_contract_details,
    summarize_contracts,
)
from billboard_ledger.domain.models import (
    CompositeTask,
    Contract,
    EntryType,
    PrintedInvoice,
    PurchaseInvoice,
    SalesInvoice,
)


def test_contract_remaining_after_two_receipts(make_entry):
    """Test contract of 10,000 with receipts of 4,000 and 3,000 leaves 3,000"""
    contracts = [Contract(id=1, total_amount=Decimal("10000"))]
    entries = [
        make_entry("r1", 4000, contract_number=1, day=1),
        make_entry("r2", 3000, contract_number=1, day=2),
    ]

    details = get_contract_details(1, contracts, entries)

    assert details.total == Decimal("10000")
    assert details.paid == Decimal("7000")
    assert details.remaining == Decimal("3000")
    assert compute_remaining_debt(contracts, entries, [], [], []) == Decimal("3000")


def test_contract_details_counts_only_receipts(make_entry):
    """Test account-level payments and credits are not attributed to a contract"""
    contracts = [Contract(id=7, total_amount=Decimal("1000"))]
    entries = [
        make_entry("r1", 200, contract_number=7),
        make_entry("p1", 300, entry_type=EntryType.PAYMENT, contract_number=7),
        make_entry("c1", 100, entry_type=EntryType.GENERAL_CREDIT, contract_number=7),
        make_entry("r2", 50, contract_number=8),
    ]

    details = get_contract_details(7, contracts, entries)

    assert details.paid == Decimal("200")
    assert details.remaining == Decimal("800")


def test_contract_details_matches_ids_as_text(make_entry):
    """Test contract number stored as text still matches a numeric contract id"""
    contracts = [Contract(id=1001, total_amount=Decimal("500"))]
    entries = [make_entry("r1", 150, contract_number="1001")]

    assert get_contract_details("1001", contracts, entries).paid == Decimal("150")


def test_contract_details_never_negative(make_entry):
    """Test overpaid contract reports zero remaining"""
    contracts = [Contract(id=1, total_amount=Decimal("1000"))]
    entries = [make_entry("r1", 1500, contract_number=1)]

    details = get_contract_details(1, contracts, entries)

    assert details.paid == Decimal("1500")
    assert details.remaining == Decimal("0")


def test_contract_details_unknown_contract():
    """Test unknown contract id returns None"""
    assert get_contract_details(99, [Contract(id=1, total_amount=Decimal("10"))], []) is None


def test_summarize_contracts(make_entry, contracts):
    """Test details are returned for every contract in order"""
    entries = [make_entry("r1", 2500, contract_number=1002)]

    summaries = summarize_contracts(contracts, entries)

    assert [s.contract_id for s in summaries] == [1001, 1002]
    assert [s.remaining for s in summaries] == [Decimal("10000"), Decimal("1500")]


def test_printed_invoice_included_in_contract_is_excluded():
    """Test printed invoice folded into a contract is not counted again"""
    printed = [
        PrintedInvoice(id="p1", total_amount=Decimal("1500"), included_in_contract=True),
        PrintedInvoice(id="p2", total_amount=Decimal("400")),
    ]

    summary = compute_debt_summary([], [], [], printed, [])

    assert summary.total_printed_invoices == Decimal("400")
    assert summary.total_debits == Decimal("400")


def test_composite_task_invoice_counted_once():
    """Test task with a combined invoice is counted through the invoice only"""
    printed = [PrintedInvoice(id="inv-9", total_amount=Decimal("900"))]
    tasks = [
        CompositeTask(id="t1", contract_id=1, customer_id=1, customer_total=Decimal("900"), combined_invoice_id="inv-9"),
        CompositeTask(id="t2", contract_id=1, customer_id=1, customer_total=Decimal("250")),
    ]

    summary = compute_debt_summary([], [], [], printed, [], composite_tasks=tasks)

    # inv-9 belongs to t1, so it is excluded from printed totals and t1 is excluded from task totals
    assert summary.total_printed_invoices == Decimal("0")
    assert summary.total_composite_tasks == Decimal("250")


def test_linked_debt_entries_are_not_double_counted(make_entry):
    """Test debt entries pointing at an invoice are carried by the invoice"""
    entries = [
        make_entry("d1", 300, entry_type=EntryType.DEBT),
        make_entry("d2", 700, entry_type=EntryType.INVOICE, sales_invoice_id="s1"),
        make_entry("d3", 50, entry_type=EntryType.GENERAL_DEBIT),
    ]
    sales = [SalesInvoice(id="s1", total_amount=Decimal("700"))]

    summary = compute_debt_summary([], entries, sales, [], [])

    assert summary.total_other_debts == Decimal("350")
    assert summary.total_sales_invoices == Decimal("700")
    assert summary.total_debits == Decimal("1050")


def test_full_debt_summary(make_entry, contracts):
    """Test every debit and credit source in one aggregation"""
    entries = [
        make_entry("r1", 5000, contract_number=1001),
        make_entry("a1", 1000, entry_type=EntryType.ACCOUNT_PAYMENT),
        make_entry("g1", 200, entry_type=EntryType.GENERAL_CREDIT),
        make_entry("d1", 300, entry_type=EntryType.DEBT),
    ]
    sales = [SalesInvoice(id="s1", total_amount=Decimal("800"))]
    purchases = [PurchaseInvoice(id="pu1", total_amount=Decimal("600"), used_as_payment=Decimal("100"))]

    summary = compute_debt_summary(
        contracts,
        entries,
        sales,
        [],
        purchases,
        discounts=Decimal("150"),
        extra_purchases=Decimal("50"),
    )

    assert summary.total_contracts == Decimal("14000")
    assert summary.total_debits == Decimal("15100")
    assert summary.total_credits == Decimal("6200")
    assert summary.total_purchases == Decimal("550")
    # 15100 - 6200 - 150 - 550
    assert summary.remaining == Decimal("8200")
    assert summary.has_surplus is False


def test_purchase_invoice_fully_used_as_payment_offsets_nothing():
    """Test purchase used as payment beyond its total does not go negative"""
    purchases = [PurchaseInvoice(id="pu1", total_amount=Decimal("100"), used_as_payment=Decimal("250"))]

    assert compute_debt_summary([], [], [], [], purchases).total_purchases == Decimal("0")


def test_remaining_is_not_floored(make_entry):
    """Test overpayment yields a negative remaining balance (credit surplus)"""
    contracts = [Contract(id=1, total_amount=Decimal("1000"))]
    entries = [make_entry("r1", 1200, contract_number=1)]

    summary = compute_debt_summary(contracts, entries, [], [], [])

    assert summary.remaining == Decimal("-200")
    assert summary.has_surplus is True


def test_friend_rentals_excluded_from_contracts(contracts):
    """Test pass-through rentals are removed from the contract total"""
    remaining = compute_remaining_debt(contracts, [], [], [], [], friend_rentals_to_exclude=Decimal("1500"))

    assert remaining == Decimal("12500")


def test_decimal_sums_do_not_drift(make_entry):
    """Test repeated cent amounts sum exactly"""
    contracts = [Contract(id=1, total_amount=Decimal("1"))]
    entries = [make_entry(f"r{i}", "0.1", contract_number=1) for i in range(10)]

    assert compute_remaining_debt(contracts, entries, [], [], []) == Decimal("0")


def test_negative_contract_total_rejected():
    """Test contract totals cannot be negative"""
    with pytest.raises(InvalidRecordError):
        Contract(id=1, total_amount=Decimal("-5"))


def test_unknown_entry_type_rejected(make_entry):
    """Test entry types outside the closed set are rejected"""
    with pytest.raises(InvalidRecordError):
        make_entry("x", 10, entry_type="refund")


@pytest.mark.parametrize(
    "entry_type, is_debt, is_credit",
    [
        (EntryType.INVOICE, True, False),
        (EntryType.GENERAL_DEBIT, True, False),
        (EntryType.RECEIPT, False, True),
        (EntryType.GENERAL_CREDIT, False, True),
        (EntryType.SALES_INVOICE, False, False),
        (EntryType.PURCHASE_INVOICE, False, False),
    ],
)
def test_entry_type_classification(entry_type, is_debt, is_credit):
    """Test which entry types raise or reduce the balance on their own"""
    assert entry_type.is_debt is is_debt
    assert entry_type.is_credit is is_credit
