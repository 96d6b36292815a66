"""POST /v1/debt/summary and /v1/contracts/details - remaining balances"""

import logging

from fastapi import APIRouter, HTTPException, Request

from billboard_ledger.api.dependencies import get_request_id
from billboard_ledger.api.v1.schemas import (
    ContractDetailsRequest,
    ContractDetailsResponse,
    DebtSummaryRequest,
    DebtSummaryResponse,
)
from billboard_ledger.domain.ledger import compute_debt_summary, get_contract_details

router = APIRouter()


@router.post("/debt/summary", response_model=DebtSummaryResponse)
def debt_summary(request_body: DebtSummaryRequest, request: Request):
    """
    Aggregate a customer's snapshot into total debits, credits and remaining debt.

    A negative remaining balance is returned as-is (customer has a credit surplus).
    """
    summary = compute_debt_summary(
        contracts=[c.to_domain() for c in request_body.contracts],
        entries=[e.to_domain() for e in request_body.entries],
        sales_invoices=[inv.to_domain() for inv in request_body.sales_invoices],
        printed_invoices=[inv.to_domain() for inv in request_body.printed_invoices],
        purchase_invoices=[inv.to_domain() for inv in request_body.purchase_invoices],
        discounts=request_body.discounts,
        composite_tasks=[t.to_domain() for t in request_body.composite_tasks],
        extra_purchases=request_body.extra_purchases,
        friend_rentals_to_exclude=request_body.friend_rentals_to_exclude,
    )

    logging.info(
        "Debt summary computed",
        extra={
            "request_id": get_request_id(request),
            "step": "debt_summary",
            "contract_count": len(request_body.contracts),
            "entry_count": len(request_body.entries),
            "has_surplus": summary.has_surplus,
        },
    )

    return DebtSummaryResponse(
        total_contracts=summary.total_contracts,
        total_sales_invoices=summary.total_sales_invoices,
        total_printed_invoices=summary.total_printed_invoices,
        total_composite_tasks=summary.total_composite_tasks,
        total_other_debts=summary.total_other_debts,
        total_debits=summary.total_debits,
        total_credits=summary.total_credits,
        total_purchases=summary.total_purchases,
        discounts=summary.discounts,
        remaining=summary.remaining,
        has_surplus=summary.has_surplus,
    )


@router.post("/contracts/details", response_model=ContractDetailsResponse)
def contract_details(request_body: ContractDetailsRequest):
    """Total, paid (receipts posted to the contract) and remaining, never negative"""
    details = get_contract_details(
        request_body.contract_id,
        [c.to_domain() for c in request_body.contracts],
        [e.to_domain() for e in request_body.entries],
    )
    if details is None:
        raise HTTPException(status_code=404, detail="Contract not found")

    return ContractDetailsResponse(
        contract_id=details.contract_id,
        total=details.total,
        paid=details.paid,
        remaining=details.remaining,
    )
