"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from billboard_ledger.domain.models import (
    AllocationMode,
    CompositeTask,
    Contract,
    ContractInstallment,
    CostAllocationData,
    CutoutItem,
    DistributableItem,
    DistributionPlan,
    EntryType,
    InstallmentGroup,
    LedgerEntry,
    LineCost,
    PricingType,
    PrintedInvoice,
    PurchaseInvoice,
    SalesInvoice,
    ServiceAllocation,
    ServiceCosts,
    SizeInfo,
    TaskLineItem,
    TaskType,
)

RecordIdField = Union[int, str]
ItemKind = Literal["contract", "printed_invoice", "sales_invoice"]
ServiceName = Literal["print", "cutout", "installation"]


# ---- Ledger snapshot records ----


class ContractSchema(BaseModel):
    id: RecordIdField
    total_amount: Decimal = Field(..., ge=0)
    ad_type: str = ""
    customer_category: str = ""
    billboard_count: int = Field(0, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def to_domain(self) -> Contract:
        return Contract(**self.model_dump())


class LedgerEntrySchema(BaseModel):
    """Single row of a customer's account"""

    id: RecordIdField
    amount: Decimal
    entry_type: EntryType
    created_at: datetime
    paid_at: Optional[datetime] = None
    contract_number: Optional[RecordIdField] = None
    distributed_group_id: Optional[str] = None
    sales_invoice_id: Optional[str] = None
    printed_invoice_id: Optional[str] = None
    purchase_invoice_id: Optional[str] = None

    def to_domain(self) -> LedgerEntry:
        return LedgerEntry(**self.model_dump())

    @classmethod
    def from_domain(cls, entry: LedgerEntry) -> "LedgerEntrySchema":
        return cls(
            id=entry.id,
            amount=entry.amount,
            entry_type=entry.entry_type,
            created_at=entry.created_at,
            paid_at=entry.paid_at,
            contract_number=entry.contract_number,
            distributed_group_id=entry.distributed_group_id,
            sales_invoice_id=entry.sales_invoice_id,
            printed_invoice_id=entry.printed_invoice_id,
            purchase_invoice_id=entry.purchase_invoice_id,
        )


class SalesInvoiceSchema(BaseModel):
    id: str
    total_amount: Decimal

    def to_domain(self) -> SalesInvoice:
        return SalesInvoice(**self.model_dump())


class PrintedInvoiceSchema(BaseModel):
    id: str
    total_amount: Decimal
    included_in_contract: bool = False
    locked: bool = False

    def to_domain(self) -> PrintedInvoice:
        return PrintedInvoice(**self.model_dump())


class PurchaseInvoiceSchema(BaseModel):
    id: str
    total_amount: Decimal
    used_as_payment: Decimal = Decimal("0")

    def to_domain(self) -> PurchaseInvoice:
        return PurchaseInvoice(**self.model_dump())


# ---- Composite tasks and allocation ----


class ServiceCostsSchema(BaseModel):
    customer_cost: Decimal = Decimal("0")
    company_cost: Decimal = Decimal("0")

    def to_domain(self) -> ServiceCosts:
        return ServiceCosts(**self.model_dump())


class ServiceAllocationSchema(BaseModel):
    """Split of one service among customer, company and printer"""

    enabled: bool = False
    mode: AllocationMode = AllocationMode.PERCENTAGE
    customer_pct: Decimal = Decimal("100")
    company_pct: Decimal = Decimal("0")
    printer_pct: Decimal = Decimal("0")
    customer_amount: Decimal = Decimal("0")
    company_amount: Decimal = Decimal("0")
    printer_amount: Decimal = Decimal("0")
    reason: str = ""
    discount: Decimal = Decimal("0")
    discount_reason: str = ""

    def to_domain(self) -> ServiceAllocation:
        return ServiceAllocation(**self.model_dump())

    @classmethod
    def from_domain(cls, alloc: ServiceAllocation) -> "ServiceAllocationSchema":
        return cls(
            enabled=alloc.enabled,
            mode=alloc.mode,
            customer_pct=alloc.customer_pct,
            company_pct=alloc.company_pct,
            printer_pct=alloc.printer_pct,
            customer_amount=alloc.customer_amount,
            company_amount=alloc.company_amount,
            printer_amount=alloc.printer_amount,
            reason=alloc.reason,
            discount=alloc.discount,
            discount_reason=alloc.discount_reason,
        )


class CostAllocationSchema(BaseModel):
    print: ServiceAllocationSchema = Field(default_factory=ServiceAllocationSchema)
    cutout: ServiceAllocationSchema = Field(default_factory=ServiceAllocationSchema)
    installation: ServiceAllocationSchema = Field(default_factory=ServiceAllocationSchema)

    def to_domain(self) -> CostAllocationData:
        return CostAllocationData(
            print=self.print.to_domain(),
            cutout=self.cutout.to_domain(),
            installation=self.installation.to_domain(),
        )


class CompositeTaskSchema(BaseModel):
    """Composite task as stored; only totals matter for debt aggregation"""

    id: RecordIdField
    contract_id: Optional[RecordIdField] = None
    customer_id: Optional[RecordIdField] = None
    task_type: TaskType = TaskType.REINSTALLATION
    installation: ServiceCostsSchema = Field(default_factory=ServiceCostsSchema)
    print: ServiceCostsSchema = Field(default_factory=ServiceCostsSchema)
    cutout: ServiceCostsSchema = Field(default_factory=ServiceCostsSchema)
    discount_amount: Decimal = Decimal("0")
    discount_reason: str = ""
    customer_total: Decimal = Decimal("0")
    company_total: Decimal = Decimal("0")
    net_profit: Decimal = Decimal("0")
    profit_percentage: Decimal = Decimal("0")
    combined_invoice_id: Optional[str] = None

    def to_domain(self) -> CompositeTask:
        return CompositeTask(
            id=self.id,
            contract_id=self.contract_id,
            customer_id=self.customer_id,
            task_type=self.task_type,
            installation=self.installation.to_domain(),
            print=self.print.to_domain(),
            cutout=self.cutout.to_domain(),
            discount_amount=self.discount_amount,
            discount_reason=self.discount_reason,
            customer_total=self.customer_total,
            company_total=self.company_total,
            net_profit=self.net_profit,
            profit_percentage=self.profit_percentage,
            combined_invoice_id=self.combined_invoice_id,
        )


# ---- Debt ----


class DebtSummaryRequest(BaseModel):
    """Request body for POST /v1/debt/summary"""

    contracts: List[ContractSchema] = Field(default_factory=list)
    entries: List[LedgerEntrySchema] = Field(default_factory=list)
    sales_invoices: List[SalesInvoiceSchema] = Field(default_factory=list)
    printed_invoices: List[PrintedInvoiceSchema] = Field(default_factory=list)
    purchase_invoices: List[PurchaseInvoiceSchema] = Field(default_factory=list)
    composite_tasks: List[CompositeTaskSchema] = Field(default_factory=list)
    discounts: Decimal = Decimal("0")
    extra_purchases: Decimal = Decimal("0")
    friend_rentals_to_exclude: Decimal = Decimal("0")


class DebtSummaryResponse(BaseModel):
    """Response for POST /v1/debt/summary"""

    total_contracts: Decimal
    total_sales_invoices: Decimal
    total_printed_invoices: Decimal
    total_composite_tasks: Decimal
    total_other_debts: Decimal
    total_debits: Decimal
    total_credits: Decimal
    total_purchases: Decimal
    discounts: Decimal
    remaining: Decimal
    has_surplus: bool


class ContractDetailsRequest(BaseModel):
    """Request body for POST /v1/contracts/details"""

    contract_id: RecordIdField
    contracts: List[ContractSchema]
    entries: List[LedgerEntrySchema] = Field(default_factory=list)


class ContractDetailsResponse(BaseModel):
    contract_id: RecordIdField
    total: Decimal
    paid: Decimal
    remaining: Decimal


# ---- Distributions ----


class DistributableItemSchema(BaseModel):
    id: RecordIdField
    remaining_balance: Decimal = Field(..., ge=0)
    kind: ItemKind = "contract"
    total_amount: Optional[Decimal] = None
    paid_amount: Optional[Decimal] = None

    def to_domain(self) -> DistributableItem:
        return DistributableItem(**self.model_dump())

    @classmethod
    def from_domain(cls, item: DistributableItem) -> "DistributableItemSchema":
        return cls(
            id=item.id,
            remaining_balance=item.remaining_balance,
            kind=item.kind,
            total_amount=item.total_amount,
            paid_amount=item.paid_amount,
        )


class OpenItemsRequest(BaseModel):
    """Request body for POST /v1/distributions/open-items"""

    contracts: List[ContractSchema] = Field(default_factory=list)
    printed_invoices: List[PrintedInvoiceSchema] = Field(default_factory=list)
    sales_invoices: List[SalesInvoiceSchema] = Field(default_factory=list)
    entries: List[LedgerEntrySchema] = Field(default_factory=list)


class OpenItemsResponse(BaseModel):
    items: List[DistributableItemSchema]


class AutoFillRequest(BaseModel):
    """Request body for POST /v1/distributions/auto-fill"""

    total_amount: Decimal
    items: List[DistributableItemSchema]
    order_by_contract_number: bool = Field(False, description="Sort items by ascending id before filling")


class DistributionLineSchema(BaseModel):
    item_id: RecordIdField
    kind: ItemKind
    amount: Decimal
    remaining_before: Optional[Decimal] = None
    remaining_after: Optional[Decimal] = None


class DistributionPlanResponse(BaseModel):
    """Proposed split of a payment; errors list why it cannot be saved yet"""

    total_amount: Decimal
    allocated_total: Decimal
    unallocated: Decimal
    strategy: str
    lines: List[DistributionLineSchema]
    errors: List[Dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, plan: DistributionPlan, errors: List[Dict[str, Any]]) -> "DistributionPlanResponse":
        return cls(
            total_amount=plan.total_amount,
            allocated_total=plan.allocated_total,
            unallocated=plan.unallocated,
            strategy=plan.strategy,
            lines=[
                DistributionLineSchema(
                    item_id=line.item_id,
                    kind=line.kind,
                    amount=line.amount,
                    remaining_before=line.remaining_before,
                    remaining_after=line.remaining_after,
                )
                for line in plan.lines
            ],
            errors=errors,
        )


class CommitDistributionRequest(BaseModel):
    """Request body for POST /v1/distributions"""

    total_amount: Decimal
    paid_at: datetime
    items: List[DistributableItemSchema]
    strategy: Literal["auto", "manual"] = "manual"
    allocations: Dict[str, Decimal] = Field(default_factory=dict, description="item id -> amount, manual only")
    group_id: Optional[str] = None
    entry_type: EntryType = EntryType.RECEIPT


class CommitDistributionResponse(BaseModel):
    group_id: str
    total_amount: Decimal
    entries: List[LedgerEntrySchema]


class BalanceAfterRequest(BaseModel):
    """Request body for POST /v1/distributions/balance-after"""

    payment_id: RecordIdField
    entries: List[LedgerEntrySchema]
    total_debits: Decimal


class BalanceAfterResponse(BaseModel):
    payment_id: RecordIdField
    balance: Decimal


# ---- Pricing ----


class SizeInfoSchema(BaseModel):
    name: str
    width: Optional[Decimal] = None
    height: Optional[Decimal] = None
    installation_price: Optional[Decimal] = None

    def to_domain(self) -> SizeInfo:
        return SizeInfo(**self.model_dump())


class TaskLineItemSchema(BaseModel):
    billboard_id: RecordIdField
    size: str
    face_count: Optional[int] = Field(None, ge=1)
    native_face_count: Optional[int] = Field(None, ge=1)
    area_per_face: Optional[Decimal] = None
    has_cutout: bool = False
    pricing_type: PricingType = PricingType.PIECE
    price_per_meter: Decimal = Decimal("0")
    customer_install_cost: Optional[Decimal] = None
    company_install_cost: Optional[Decimal] = None
    additional_customer_cost: Decimal = Decimal("0")
    additional_company_cost: Decimal = Decimal("0")

    def to_domain(self) -> TaskLineItem:
        return TaskLineItem(**self.model_dump())


class CutoutItemSchema(BaseModel):
    billboard_id: Optional[RecordIdField] = None
    quantity: int = Field(1, ge=0)
    unit_cost: Decimal = Decimal("0")
    total_cost: Optional[Decimal] = None

    def to_domain(self) -> CutoutItem:
        return CutoutItem(**self.model_dump())


class InstallCostRequest(BaseModel):
    """Request body for POST /v1/pricing/install-cost"""

    items: List[TaskLineItemSchema]
    sizes: List[SizeInfoSchema] = Field(default_factory=list)


class LineCostSchema(BaseModel):
    billboard_id: RecordIdField
    size: str
    faces: int
    area_per_face: Optional[Decimal] = None
    customer_cost: Decimal
    company_cost: Decimal
    missing_price: bool = False

    @classmethod
    def from_domain(cls, line: LineCost) -> "LineCostSchema":
        return cls(
            billboard_id=line.billboard_id,
            size=line.size,
            faces=line.faces,
            area_per_face=line.area_per_face,
            customer_cost=line.customer_cost,
            company_cost=line.company_cost,
            missing_price=line.missing_price,
        )


class InstallCostResponse(BaseModel):
    lines: List[LineCostSchema]
    customer_total: Decimal
    company_total: Decimal
    warnings: List[Dict[str, Any]] = Field(default_factory=list)


# ---- Allocation ----


class AllocationCheckRequest(BaseModel):
    """Request body for POST /v1/allocations/check"""

    service: ServiceName
    allocation: ServiceAllocationSchema
    service_total: Decimal
    derive: Optional[Literal["amounts", "percentages"]] = Field(
        None, description="Recompute amounts from percentages, or percentages from amounts, before checking"
    )


class AllocationCheckResponse(BaseModel):
    service: str
    mode: AllocationMode
    balanced: bool
    total_pct: Decimal
    total_allocated: Decimal
    service_total: Decimal
    delta: Decimal
    allocation: ServiceAllocationSchema


class CompositeCostsRequest(BaseModel):
    """Request body for POST /v1/composite-tasks/summary"""

    task_id: RecordIdField
    contract_id: Optional[RecordIdField] = None
    customer_id: Optional[RecordIdField] = None
    task_type: TaskType = TaskType.REINSTALLATION
    installation: ServiceCostsSchema = Field(default_factory=ServiceCostsSchema)
    print: ServiceCostsSchema = Field(default_factory=ServiceCostsSchema)
    cutout: ServiceCostsSchema = Field(default_factory=ServiceCostsSchema)
    cost_allocation: Optional[CostAllocationSchema] = None
    general_discount: Decimal = Decimal("0")
    discount_reason: str = ""


class CompositeCostsResponse(BaseModel):
    task_id: RecordIdField
    task_type: TaskType
    discount_amount: Decimal
    customer_total: Decimal
    company_total: Decimal
    net_profit: Decimal
    profit_percentage: Decimal
    adjusted_company_total: Decimal
    adjusted_net_profit: Decimal
    adjusted_profit_percentage: Decimal


# ---- Installments ----


class InstallmentPlanRequest(BaseModel):
    """Request body for POST /v1/installments/plan"""

    total: Decimal = Field(..., gt=0)
    mode: Literal["even", "interval"] = "even"
    count: int = Field(1, ge=1)
    first_payment: Decimal = Decimal("0")
    first_payment_type: Literal["amount", "percent"] = "amount"
    interval_months: int = Field(1, ge=1, le=12)
    num_payments: Optional[int] = Field(None, ge=1)
    last_payment_date: Optional[date] = None
    start_date: Optional[date] = None


class InstallmentSchema(BaseModel):
    """Single installment in a contract payment schedule"""

    due_date: date
    amount: Decimal
    description: str
    payment_type: str

    @classmethod
    def from_domain(cls, inst: ContractInstallment) -> "InstallmentSchema":
        return cls(
            due_date=inst.due_date,
            amount=inst.amount,
            description=inst.description,
            payment_type=inst.payment_type,
        )


class InstallmentGroupSchema(BaseModel):
    amount: Decimal
    count: int
    payment_type: str
    start_date: date
    end_date: date
    is_grouped: bool

    @classmethod
    def from_domain(cls, group: InstallmentGroup) -> "InstallmentGroupSchema":
        return cls(
            amount=group.amount,
            count=group.count,
            payment_type=group.payment_type,
            start_date=group.start_date,
            end_date=group.end_date,
            is_grouped=group.is_grouped,
        )


class InstallmentPlanResponse(BaseModel):
    total: Decimal
    installments: List[InstallmentSchema]
    groups: List[InstallmentGroupSchema]
