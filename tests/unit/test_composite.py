"""Unit tests for composite task costing"""

from decimal import Decimal

from billboard_ledger.domain.composite import cutout_costs, installation_costs, print_costs, save_composite_costs
from billboard_ledger.domain.exceptions import UnbalancedAllocationError
from billboard_ledger.domain.models import (
    AllocationMode,
    CompositeTask,
    CostAllocationData,
    CutoutItem,
    ServiceAllocation,
    ServiceCosts,
    TaskLineItem,
    TaskType,
)


def _task(**kwargs) -> CompositeTask:
    return CompositeTask(id="task-1", contract_id=1001, customer_id=42, **kwargs)


def test_installation_costs_roll_up(size_table, policy):
    """Test installation service totals are the sum of line costs"""
    items = [
        TaskLineItem(billboard_id=1, size="3x4", face_count=1),
        TaskLineItem(billboard_id=2, size="4x12"),
        TaskLineItem(billboard_id=3, size="Mupi"),
    ]

    costs, lines, outcome = installation_costs(items, size_table, policy)

    assert costs.customer_cost == Decimal("700.00")
    assert costs.company_cost == Decimal("700.00")
    assert len(lines) == 3
    assert len(outcome.errors) == 1


def test_cutout_costs():
    """Test customer pays entered totals, company pays unit cost x quantity"""
    items = [
        CutoutItem(billboard_id=1, quantity=2, unit_cost=Decimal("40"), total_cost=Decimal("120")),
        CutoutItem(billboard_id=2, quantity=1, unit_cost=Decimal("35")),
    ]

    costs = cutout_costs(items)

    assert costs.customer_cost == Decimal("155")
    assert costs.company_cost == Decimal("115")


def test_print_costs():
    """Test print costs are area x price per meter, to cents"""
    costs = print_costs(Decimal("72"), Decimal("12.5"), Decimal("7.333"))

    assert costs.customer_cost == Decimal("900.00")
    assert costs.company_cost == Decimal("527.98")


def test_save_composite_costs_balanced():
    """Test a balanced allocation saves the task with discounts folded in"""
    allocation = CostAllocationData(
        installation=ServiceAllocation(
            enabled=True,
            customer_pct=Decimal("70"),
            company_pct=Decimal("30"),
            discount=Decimal("20"),
        ),
    )

    result = save_composite_costs(
        _task(task_type=TaskType.NEW_INSTALLATION),
        installation=ServiceCosts(Decimal("1000"), Decimal("600")),
        print=ServiceCosts(Decimal("900"), Decimal("500")),
        cutout=ServiceCosts(),
        cost_allocation=allocation,
        general_discount=Decimal("30"),
        discount_reason="campaign",
    )

    assert result.outcome.ok
    task = result.task
    assert task.discount_amount == Decimal("50")
    assert task.customer_total == Decimal("1850")
    assert task.company_total == Decimal("1100")
    assert task.net_profit == Decimal("750")
    assert task.cost_allocation == allocation


def test_save_composite_costs_unbalanced_blocks_save():
    """Test an unbalanced split returns errors and no task"""
    allocation = CostAllocationData(
        print=ServiceAllocation(
            enabled=True,
            mode=AllocationMode.AMOUNT,
            customer_amount=Decimal("400"),
            company_amount=Decimal("400"),
        ),
    )

    result = save_composite_costs(
        _task(),
        installation=ServiceCosts(),
        print=ServiceCosts(Decimal("900"), Decimal("500")),
        cutout=ServiceCosts(),
        cost_allocation=allocation,
    )

    assert result.task is None
    assert len(result.outcome.errors) == 1
    error = result.outcome.errors[0]
    assert isinstance(error, UnbalancedAllocationError)
    assert error.service == "print"
    assert error.delta == Decimal("-100")


def test_save_composite_costs_uses_task_allocation():
    """Test the task's stored allocation is validated when none is passed"""
    stored = CostAllocationData(cutout=ServiceAllocation(enabled=True, customer_pct=Decimal("50")))

    result = save_composite_costs(
        _task(cost_allocation=stored),
        installation=ServiceCosts(),
        print=ServiceCosts(),
        cutout=ServiceCosts(Decimal("200"), Decimal("100")),
    )

    assert not result.outcome.ok


def test_save_composite_costs_without_allocation():
    """Test tasks without a cost split save directly"""
    result = save_composite_costs(
        _task(),
        installation=ServiceCosts(Decimal("100"), Decimal("60")),
        print=ServiceCosts(),
        cutout=ServiceCosts(),
    )

    assert result.outcome.ok
    assert result.task.net_profit == Decimal("40")
    assert result.task.profit_percentage == Decimal("40.00")
