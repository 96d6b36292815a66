"""POST /v1/allocations/check and /v1/composite-tasks/summary - cost split and profit"""

from fastapi import APIRouter, HTTPException, Request

from billboard_ledger.api.dependencies import get_request_id
from billboard_ledger.api.v1.schemas import (
    AllocationCheckRequest,
    AllocationCheckResponse,
    CompositeCostsRequest,
    CompositeCostsResponse,
    ServiceAllocationSchema,
)
from billboard_ledger.config import settings
from billboard_ledger.domain.allocation import (
    amounts_to_percentages,
    check_allocation,
    percentages_to_amounts,
    summarize_costs,
)
from billboard_ledger.domain.composite import save_composite_costs
from billboard_ledger.domain.models import CompositeTask
from billboard_ledger.infrastructure.observability.logging import log_validation_failure
from billboard_ledger.infrastructure.observability.metrics import record_validation_failures

router = APIRouter()


@router.post("/allocations/check", response_model=AllocationCheckResponse)
def check_service_allocation(request_body: AllocationCheckRequest):
    """Balance flag and exact delta for one service's split"""
    alloc = request_body.allocation.to_domain()
    if request_body.derive == "amounts":
        alloc = percentages_to_amounts(alloc, request_body.service_total)
    elif request_body.derive == "percentages":
        alloc = amounts_to_percentages(alloc, request_body.service_total)

    check = check_allocation(
        alloc,
        request_body.service_total,
        service=request_body.service,
        tolerance=settings.allocation_tolerance,
    )
    return AllocationCheckResponse(
        service=check.service,
        mode=check.mode,
        balanced=check.balanced,
        total_pct=check.total_pct,
        total_allocated=check.total_allocated,
        service_total=check.service_total,
        delta=check.delta,
        allocation=ServiceAllocationSchema.from_domain(alloc),
    )


@router.post("/composite-tasks/summary", response_model=CompositeCostsResponse)
def composite_summary(request_body: CompositeCostsRequest, request: Request):
    """
    Validate a composite task's cost split and compute what would be saved.

    Unbalanced enabled services are rejected with 422 and the per-service delta.
    """
    task = CompositeTask(
        id=request_body.task_id,
        contract_id=request_body.contract_id,
        customer_id=request_body.customer_id,
        task_type=request_body.task_type,
    )
    installation = request_body.installation.to_domain()
    print_costs = request_body.print.to_domain()
    cutout = request_body.cutout.to_domain()

    result = save_composite_costs(
        task,
        installation,
        print_costs,
        cutout,
        cost_allocation=request_body.cost_allocation.to_domain() if request_body.cost_allocation else None,
        general_discount=request_body.general_discount,
        discount_reason=request_body.discount_reason,
        tolerance=settings.allocation_tolerance,
    )

    if not result.outcome.ok:
        errors = result.outcome.to_list()
        record_validation_failures(error["code"] for error in errors)
        log_validation_failure(get_request_id(request), "composite_costs", errors)
        raise HTTPException(status_code=422, detail=errors)

    saved = result.task
    summary = summarize_costs(
        installation,
        print_costs,
        cutout,
        general_discount=saved.discount_amount,
        task_type=saved.task_type,
    )

    return CompositeCostsResponse(
        task_id=saved.id,
        task_type=saved.task_type,
        discount_amount=saved.discount_amount,
        customer_total=saved.customer_total,
        company_total=saved.company_total,
        net_profit=saved.net_profit,
        profit_percentage=saved.profit_percentage,
        adjusted_company_total=summary.adjusted_company_total,
        adjusted_net_profit=summary.adjusted_net_profit,
        adjusted_profit_percentage=summary.adjusted_profit_percentage,
    )
