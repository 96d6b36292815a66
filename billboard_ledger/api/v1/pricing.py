"""POST /v1/pricing/install-cost - installation cost per billboard"""

from fastapi import APIRouter, Depends, Request

from billboard_ledger.api.dependencies import get_pricing_policy, get_request_id
from billboard_ledger.api.v1.schemas import InstallCostRequest, InstallCostResponse, LineCostSchema
from billboard_ledger.domain.models import PricingPolicy
from billboard_ledger.domain.pricing import build_size_table, compute_install_costs
from billboard_ledger.infrastructure.observability.logging import log_missing_price
from billboard_ledger.infrastructure.observability.metrics import record_validation_failures

router = APIRouter()


@router.post("/pricing/install-cost", response_model=InstallCostResponse)
def install_cost(
    request_body: InstallCostRequest,
    request: Request,
    policy: PricingPolicy = Depends(get_pricing_policy),
):
    """
    Price each line item by piece or by area.

    Items whose price cannot be derived come back with cost 0, missing_price=true
    and an entry in warnings; the request itself still succeeds.
    """
    size_table = build_size_table(s.to_domain() for s in request_body.sizes)
    lines, outcome = compute_install_costs([item.to_domain() for item in request_body.items], size_table, policy)

    warnings = outcome.to_list()
    if warnings:
        record_validation_failures(warning["code"] for warning in warnings)
        log_missing_price(get_request_id(request), warnings)

    return InstallCostResponse(
        lines=[LineCostSchema.from_domain(line) for line in lines],
        customer_total=sum((line.customer_cost for line in lines), 0),
        company_total=sum((line.company_cost for line in lines), 0),
        warnings=warnings,
    )
