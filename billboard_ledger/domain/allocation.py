"""Cost allocation - splitting a service's cost among customer, company and printer"""

from dataclasses import replace
from decimal import Decimal
from typing import Mapping, Optional

from billboard_ledger.domain.exceptions import InvalidRecordError, UnbalancedAllocationError
from billboard_ledger.domain.models import (
    PARTIES,
    AllocationCheck,
    AllocationMode,
    CompositeSummary,
    CompositeTask,
    CostAllocationData,
    ServiceAllocation,
    ServiceCosts,
    TaskType,
    ValidationOutcome,
)
from billboard_ledger.utils.money import HUNDRED, ZERO, clamp, round1, round2, to_decimal

ALLOCATION_TOLERANCE = Decimal("0.1")


def _check_party(party: str) -> None:
    if party not in PARTIES:
        raise InvalidRecordError(f"Unknown party '{party}'")


def percentages_to_amounts(alloc: ServiceAllocation, service_total: Decimal) -> ServiceAllocation:
    """amount = pct/100 x service total, to cents, for every party"""
    service_total = to_decimal(service_total)
    return replace(
        alloc,
        **{f"{party}_amount": round2(alloc.pct(party) / HUNDRED * service_total) for party in PARTIES},
    )


def amounts_to_percentages(alloc: ServiceAllocation, service_total: Decimal) -> ServiceAllocation:
    """pct = amount / service total x 100, to one decimal; unchanged when the total is zero"""
    service_total = to_decimal(service_total)
    if service_total == 0:
        return alloc
    return replace(
        alloc,
        **{f"{party}_pct": round1(alloc.amount(party) / service_total * HUNDRED) for party in PARTIES},
    )


def set_percentage(
    alloc: ServiceAllocation, party: str, value: Decimal, service_total: Decimal
) -> ServiceAllocation:
    """
    Update one party's percentage and its derived amount.

    The value is clamped to 0..100. Other parties are left untouched, so the
    split may become unbalanced until they are corrected.
    """
    _check_party(party)
    pct = clamp(to_decimal(value), ZERO, HUNDRED)
    amount = round2(pct / HUNDRED * to_decimal(service_total))
    return replace(alloc, **{f"{party}_pct": pct, f"{party}_amount": amount})


def set_amount(alloc: ServiceAllocation, party: str, value: Decimal, service_total: Decimal) -> ServiceAllocation:
    """
    Update one party's fixed amount and, when the total is known, its percentage.

    Negative amounts are clamped to zero.
    """
    _check_party(party)
    amount = clamp(to_decimal(value), ZERO)
    service_total = to_decimal(service_total)
    changes = {f"{party}_amount": amount}
    if service_total > 0:
        changes[f"{party}_pct"] = round1(amount / service_total * HUNDRED)
    return replace(alloc, **changes)


def check_allocation(
    alloc: ServiceAllocation,
    service_total: Decimal,
    service: str = "",
    tolerance: Decimal = ALLOCATION_TOLERANCE,
) -> AllocationCheck:
    """
    Whether a split adds up.

    percentage mode: |sum of pct - 100| < tolerance
    amount mode:     |sum of amounts - service total| < tolerance

    delta is actual minus expected in the mode's unit.
    """
    service_total = to_decimal(service_total)
    if alloc.mode == AllocationMode.PERCENTAGE:
        delta = alloc.total_pct - HUNDRED
    else:
        delta = alloc.total_amount - service_total

    return AllocationCheck(
        service=service,
        mode=alloc.mode,
        balanced=abs(delta) < tolerance,
        total_pct=alloc.total_pct,
        total_allocated=alloc.total_amount,
        service_total=service_total,
        delta=delta,
    )


def validate_cost_allocation(
    data: CostAllocationData,
    service_totals: Mapping[str, Decimal],
    tolerance: Decimal = ALLOCATION_TOLERANCE,
) -> ValidationOutcome:
    """One UnbalancedAllocationError per enabled service whose split does not add up"""
    outcome = ValidationOutcome()
    for service, alloc in data.enabled_services().items():
        check = check_allocation(alloc, service_totals.get(service, ZERO), service=service, tolerance=tolerance)
        if check.balanced:
            continue
        if alloc.mode == AllocationMode.PERCENTAGE:
            expected, actual = HUNDRED, check.total_pct
        else:
            expected, actual = check.service_total, check.total_allocated
        outcome.errors.append(UnbalancedAllocationError(service, alloc.mode.value, expected, actual))
    return outcome


def total_service_discounts(data: Optional[CostAllocationData]) -> Decimal:
    """Per-service discounts of enabled services, folded into the task discount at save time"""
    if data is None:
        return ZERO
    return sum((alloc.discount for alloc in data.enabled_services().values()), ZERO)


def _profit_percentage(net_profit: Decimal, customer_total: Decimal) -> Decimal:
    if customer_total <= 0:
        return ZERO
    return net_profit / customer_total * HUNDRED


def summarize_costs(
    installation: ServiceCosts,
    print: ServiceCosts,
    cutout: ServiceCosts,
    general_discount: Decimal = ZERO,
    service_discounts: Decimal = ZERO,
    task_type: TaskType = TaskType.REINSTALLATION,
) -> CompositeSummary:
    """
    Roll up a composite task's three services.

    For a new installation the installation company cost is already part of the
    contract price, so the adjusted figures leave it out of profit.
    """
    services = (installation, print, cutout)
    customer_subtotal = sum((s.customer_cost for s in services), ZERO)
    discount_total = to_decimal(general_discount) + to_decimal(service_discounts)
    customer_total = customer_subtotal - discount_total
    company_total = sum((s.company_cost for s in services), ZERO)
    net_profit = customer_total - company_total

    adjusted_company_total = company_total
    if TaskType(task_type) == TaskType.NEW_INSTALLATION:
        adjusted_company_total = company_total - installation.company_cost
    adjusted_net_profit = customer_total - adjusted_company_total

    return CompositeSummary(
        customer_subtotal=customer_subtotal,
        discount_total=discount_total,
        customer_total=customer_total,
        company_total=company_total,
        net_profit=net_profit,
        profit_percentage=_profit_percentage(net_profit, customer_total),
        adjusted_company_total=adjusted_company_total,
        adjusted_net_profit=adjusted_net_profit,
        adjusted_profit_percentage=_profit_percentage(adjusted_net_profit, customer_total),
    )


def apply_costs(
    task: CompositeTask,
    installation: ServiceCosts,
    print: ServiceCosts,
    cutout: ServiceCosts,
    general_discount: Decimal = ZERO,
    discount_reason: Optional[str] = None,
    cost_allocation: Optional[CostAllocationData] = None,
) -> CompositeTask:
    """
    Copy of the task with new service costs and recomputed totals.

    discount_reason=None keeps the task's current reason; an empty string clears it.
    """
    cost_allocation = cost_allocation if cost_allocation is not None else task.cost_allocation
    service_discounts = total_service_discounts(cost_allocation)
    summary = summarize_costs(
        installation,
        print,
        cutout,
        general_discount=general_discount,
        service_discounts=service_discounts,
        task_type=task.task_type,
    )
    return replace(
        task,
        installation=installation,
        print=print,
        cutout=cutout,
        discount_amount=summary.discount_total,
        discount_reason=task.discount_reason if discount_reason is None else discount_reason,
        cost_allocation=cost_allocation,
        customer_total=summary.customer_total,
        company_total=summary.company_total,
        net_profit=summary.net_profit,
        profit_percentage=summary.profit_percentage,
    )
