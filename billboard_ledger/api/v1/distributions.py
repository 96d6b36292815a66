"""POST /v1/distributions - split one payment across contracts and invoices"""

import logging
import time

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request

from billboard_ledger.api.dependencies import get_ledger_client, get_request_id
from billboard_ledger.api.v1.schemas import (
    AutoFillRequest,
    BalanceAfterRequest,
    BalanceAfterResponse,
    CommitDistributionRequest,
    CommitDistributionResponse,
    DistributableItemSchema,
    DistributionPlanResponse,
    LedgerEntrySchema,
    OpenItemsRequest,
    OpenItemsResponse,
)
from billboard_ledger.config import settings
from billboard_ledger.domain.distribution import (
    auto_fill,
    balance_after_payment,
    build_distributable_items,
    commit_distribution,
    manual_plan,
    order_by_contract_number,
    validate_distribution,
)
from billboard_ledger.domain.exceptions import DomainException
from billboard_ledger.infrastructure.clients.ledger import LedgerClient
from billboard_ledger.infrastructure.observability.logging import log_distribution, log_validation_failure
from billboard_ledger.infrastructure.observability.metrics import record_distribution, record_validation_failures

router = APIRouter()


@router.post("/distributions/open-items", response_model=OpenItemsResponse)
def open_items(request_body: OpenItemsRequest):
    """Contracts and unlocked invoices that still have a balance, ordered by id"""
    items = build_distributable_items(
        contracts=[c.to_domain() for c in request_body.contracts],
        printed_invoices=[inv.to_domain() for inv in request_body.printed_invoices],
        sales_invoices=[inv.to_domain() for inv in request_body.sales_invoices],
        entries=[e.to_domain() for e in request_body.entries],
    )
    return OpenItemsResponse(items=[DistributableItemSchema.from_domain(item) for item in items])


@router.post("/distributions/auto-fill", response_model=DistributionPlanResponse)
def propose_auto_fill(request_body: AutoFillRequest):
    """
    Greedy proposal: each item in order takes as much of the payment as its balance allows.

    Leftover amount is reported in `unallocated` with the errors that would block a save.
    """
    items = [item.to_domain() for item in request_body.items]
    if request_body.order_by_contract_number:
        items = order_by_contract_number(items)

    plan = auto_fill(request_body.total_amount, items)
    outcome = validate_distribution(plan, epsilon=settings.distribution_epsilon)
    return DistributionPlanResponse.from_domain(plan, outcome.to_list())


@router.post("/distributions", response_model=CommitDistributionResponse, status_code=201)
async def create_distribution(
    request_body: CommitDistributionRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    ledger_client: LedgerClient = Depends(get_ledger_client),
):
    """
    Commit a distributed payment.

    Flow:
    1. Build the plan (auto-fill or manual amounts)
    2. Validate: positive lines summing to the payment within 0.01
    3. Create one receipt entry per line sharing a group id
    4. Send async webhook to ledger
    5. Return the entries
    """
    start_time = time.perf_counter()
    request_id = get_request_id(request)

    try:
        items = [item.to_domain() for item in request_body.items]
        if request_body.strategy == "auto":
            plan = auto_fill(request_body.total_amount, items)
        else:
            plan = manual_plan(request_body.total_amount, request_body.allocations, items)

        result = commit_distribution(
            plan,
            paid_at=request_body.paid_at,
            group_id=request_body.group_id,
            entry_type=request_body.entry_type,
            epsilon=settings.distribution_epsilon,
        )

    except DomainException:
        raise

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    if not result.outcome.ok:
        errors = result.outcome.to_list()
        record_distribution(committed=False, total_amount=plan.total_amount)
        record_validation_failures(error["code"] for error in errors)
        log_validation_failure(request_id, "distribution_commit", errors)
        raise HTTPException(status_code=422, detail=errors)

    entries = [LedgerEntrySchema.from_domain(entry) for entry in result.entries]

    background_tasks.add_task(
        ledger_client.post_distribution,
        {
            "event": "DISTRIBUTION_COMMITTED",
            "group_id": result.group_id,
            "total_amount": str(plan.total_amount),
            "entries": [entry.model_dump(mode="json") for entry in entries],
        },
    )

    duration_ms = (time.perf_counter() - start_time) * 1000
    record_distribution(committed=True, total_amount=plan.total_amount)
    log_distribution(request_id, result.group_id, plan.total_amount, len(entries), plan.strategy, duration_ms)

    return CommitDistributionResponse(group_id=result.group_id, total_amount=plan.total_amount, entries=entries)


@router.post("/distributions/balance-after", response_model=BalanceAfterResponse)
def balance_after(request_body: BalanceAfterRequest, request: Request):
    """Balance as printed on a historical receipt; a distributed group counts as one payment"""
    entries = [e.to_domain() for e in request_body.entries]
    balance = balance_after_payment(request_body.payment_id, entries, request_body.total_debits)

    if not any(str(e.id) == str(request_body.payment_id) for e in entries):
        logging.warning(
            "Payment not found in ledger snapshot",
            extra={"request_id": get_request_id(request), "payment_id": str(request_body.payment_id)},
        )

    return BalanceAfterResponse(payment_id=request_body.payment_id, balance=balance)
