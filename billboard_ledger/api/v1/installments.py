"""POST /v1/installments/plan - contract payment schedule"""

from fastapi import APIRouter

from billboard_ledger.api.v1.schemas import (
    InstallmentGroupSchema,
    InstallmentPlanRequest,
    InstallmentPlanResponse,
    InstallmentSchema,
)
from billboard_ledger.domain.installments import (
    distribute_evenly,
    distribute_with_interval,
    group_repeating_installments,
)

router = APIRouter()


@router.post("/installments/plan", response_model=InstallmentPlanResponse)
def plan_installments(request_body: InstallmentPlanRequest):
    """
    Generate an installment schedule.

    Returns:
        Installments with due dates, plus runs of equal amounts grouped for display
    """
    if request_body.mode == "even":
        installments = distribute_evenly(request_body.total, request_body.count, request_body.start_date)
    else:
        installments = distribute_with_interval(
            request_body.total,
            first_payment=request_body.first_payment,
            first_payment_type=request_body.first_payment_type,
            interval_months=request_body.interval_months,
            num_payments=request_body.num_payments,
            last_payment_date=request_body.last_payment_date,
            start_date=request_body.start_date,
        )

    return InstallmentPlanResponse(
        total=request_body.total,
        installments=[InstallmentSchema.from_domain(inst) for inst in installments],
        groups=[InstallmentGroupSchema.from_domain(group) for group in group_repeating_installments(installments)],
    )
