"""Composite task costing - rolling line items, print area and cutouts up into service costs"""

from decimal import Decimal
from typing import List, Mapping, Optional, Sequence, Tuple

from billboard_ledger.domain.allocation import ALLOCATION_TOLERANCE, apply_costs, validate_cost_allocation
from billboard_ledger.domain.models import (
    CompositeTask,
    CostAllocationData,
    CutoutItem,
    LineCost,
    PricingPolicy,
    SaveResult,
    ServiceCosts,
    SizeInfo,
    TaskLineItem,
    ValidationOutcome,
)
from billboard_ledger.domain.pricing import compute_install_costs
from billboard_ledger.utils.money import ZERO, round2, to_decimal


def installation_costs(
    items: Sequence[TaskLineItem],
    size_table: Mapping[str, SizeInfo],
    policy: PricingPolicy = PricingPolicy(),
) -> Tuple[ServiceCosts, List[LineCost], ValidationOutcome]:
    """Installation service totals over all billboards in the task"""
    lines, outcome = compute_install_costs(items, size_table, policy)
    costs = ServiceCosts(
        customer_cost=sum((line.customer_cost for line in lines), ZERO),
        company_cost=sum((line.company_cost for line in lines), ZERO),
    )
    return costs, lines, outcome


def cutout_costs(cutout_items: Sequence[CutoutItem]) -> ServiceCosts:
    """
    Cutout service totals.

    The customer is charged the item's total_cost when one was entered,
    otherwise unit cost x quantity. The company always pays unit cost x quantity.
    """
    customer = ZERO
    company = ZERO
    for item in cutout_items:
        base = item.unit_cost * item.quantity
        customer += item.total_cost if item.total_cost is not None else base
        company += base
    return ServiceCosts(customer_cost=customer, company_cost=company)


def print_costs(area: Decimal, customer_per_meter: Decimal, company_per_meter: Decimal) -> ServiceCosts:
    area = to_decimal(area)
    return ServiceCosts(
        customer_cost=round2(area * to_decimal(customer_per_meter)),
        company_cost=round2(area * to_decimal(company_per_meter)),
    )


def save_composite_costs(
    task: CompositeTask,
    installation: ServiceCosts,
    print: ServiceCosts,
    cutout: ServiceCosts,
    cost_allocation: Optional[CostAllocationData] = None,
    general_discount: Decimal = ZERO,
    discount_reason: Optional[str] = None,
    tolerance: Decimal = ALLOCATION_TOLERANCE,
) -> SaveResult:
    """
    Validate the cost split and produce the task to persist.

    Requirements:
    - every enabled service allocation must balance against that service's customer cost
    - discount_amount saved = general discount + enabled per-service discounts
    - net_profit = customer_total - company_total exactly

    An unbalanced allocation returns the errors and no task; nothing is normalized.
    """
    allocation = cost_allocation if cost_allocation is not None else task.cost_allocation
    outcome = ValidationOutcome()
    if allocation is not None:
        service_totals = {
            "installation": installation.customer_cost,
            "print": print.customer_cost,
            "cutout": cutout.customer_cost,
        }
        outcome = validate_cost_allocation(allocation, service_totals, tolerance=tolerance)
    if not outcome.ok:
        return SaveResult(outcome=outcome)

    updated = apply_costs(
        task,
        installation,
        print,
        cutout,
        general_discount=to_decimal(general_discount),
        discount_reason=discount_reason,
        cost_allocation=allocation,
    )
    return SaveResult(outcome=outcome, task=updated)
