"""Domain models - immutable snapshots of contracts, ledger entries, invoices and tasks"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from billboard_ledger.domain.exceptions import DomainException, InvalidRecordError
from billboard_ledger.utils.money import ZERO, to_decimal

RecordId = Union[int, str]

SERVICES = ("print", "cutout", "installation")
PARTIES = ("customer", "company", "printer")


def _coerce_money(record: Any, *names: str) -> None:
    for name in names:
        object.__setattr__(record, name, to_decimal(getattr(record, name)))


def _coerce_optional_money(record: Any, *names: str) -> None:
    for name in names:
        value = getattr(record, name)
        if value is not None and value != "":
            object.__setattr__(record, name, to_decimal(value))
        else:
            object.__setattr__(record, name, None)


def _coerce_enum(record: Any, name: str, enum_type: type) -> None:
    value = getattr(record, name)
    try:
        object.__setattr__(record, name, enum_type(value))
    except ValueError as e:
        raise InvalidRecordError(f"Unknown {enum_type.__name__} '{value}'") from e


class EntryType(str, Enum):
    """Closed set of ledger entry categories"""

    RECEIPT = "receipt"
    INVOICE = "invoice"
    DEBT = "debt"
    ACCOUNT_PAYMENT = "account_payment"
    PAYMENT = "payment"
    SALES_INVOICE = "sales_invoice"
    PURCHASE_INVOICE = "purchase_invoice"
    PRINTED_INVOICE = "printed_invoice"
    GENERAL_DEBIT = "general_debit"
    GENERAL_CREDIT = "general_credit"

    @property
    def is_debt(self) -> bool:
        return self in DEBT_ENTRY_TYPES

    @property
    def is_credit(self) -> bool:
        return self in CREDIT_ENTRY_TYPES


# Standalone charges counted as "other debts" when not linked to an invoice
DEBT_ENTRY_TYPES = frozenset({EntryType.INVOICE, EntryType.DEBT, EntryType.GENERAL_DEBIT})

# Everything that reduces what the customer owes
CREDIT_ENTRY_TYPES = frozenset(
    {EntryType.RECEIPT, EntryType.ACCOUNT_PAYMENT, EntryType.PAYMENT, EntryType.GENERAL_CREDIT}
)

# Actual money received; general credits (write-offs) are not payments
PAYMENT_ENTRY_TYPES = frozenset({EntryType.RECEIPT, EntryType.ACCOUNT_PAYMENT, EntryType.PAYMENT})


class TaskType(str, Enum):
    NEW_INSTALLATION = "new_installation"
    REINSTALLATION = "reinstallation"


class AllocationMode(str, Enum):
    PERCENTAGE = "percentage"
    AMOUNT = "amount"


class PricingType(str, Enum):
    PIECE = "piece"
    METER = "meter"


@dataclass(frozen=True)
class Contract:
    """Advertising contract; total_amount is what the customer owes for it"""

    id: RecordId
    total_amount: Decimal
    ad_type: str = ""
    customer_category: str = ""
    billboard_count: int = 0
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def __post_init__(self) -> None:
        _coerce_money(self, "total_amount")
        if self.total_amount < 0:
            raise InvalidRecordError(f"Contract {self.id} has negative total {self.total_amount}")


@dataclass(frozen=True)
class LedgerEntry:
    """One row of the customer's account (payment, receipt, standalone debt, ...)"""

    id: RecordId
    amount: Decimal
    entry_type: EntryType
    created_at: datetime
    paid_at: Optional[Union[date, datetime]] = None
    contract_number: Optional[RecordId] = None
    distributed_group_id: Optional[str] = None
    sales_invoice_id: Optional[str] = None
    printed_invoice_id: Optional[str] = None
    purchase_invoice_id: Optional[str] = None

    def __post_init__(self) -> None:
        _coerce_money(self, "amount")
        _coerce_enum(self, "entry_type", EntryType)

    @property
    def linked_invoice_id(self) -> Optional[str]:
        return self.sales_invoice_id or self.printed_invoice_id or self.purchase_invoice_id

    @property
    def is_linked(self) -> bool:
        return self.linked_invoice_id is not None


@dataclass(frozen=True)
class SalesInvoice:
    id: str
    total_amount: Decimal

    def __post_init__(self) -> None:
        _coerce_money(self, "total_amount")


@dataclass(frozen=True)
class PrintedInvoice:
    id: str
    total_amount: Decimal
    included_in_contract: bool = False
    locked: bool = False

    def __post_init__(self) -> None:
        _coerce_money(self, "total_amount")


@dataclass(frozen=True)
class PurchaseInvoice:
    """Something the company bought from the customer; offsets their debt unless used as payment"""

    id: str
    total_amount: Decimal
    used_as_payment: Decimal = ZERO

    def __post_init__(self) -> None:
        _coerce_money(self, "total_amount", "used_as_payment")


@dataclass(frozen=True)
class ServiceCosts:
    """Customer-facing price and company cost of one service"""

    customer_cost: Decimal = ZERO
    company_cost: Decimal = ZERO

    def __post_init__(self) -> None:
        _coerce_money(self, "customer_cost", "company_cost")


@dataclass(frozen=True)
class ServiceAllocation:
    """How one service's cost is split among customer, company and printer"""

    enabled: bool = False
    mode: AllocationMode = AllocationMode.PERCENTAGE
    customer_pct: Decimal = Decimal("100")
    company_pct: Decimal = ZERO
    printer_pct: Decimal = ZERO
    customer_amount: Decimal = ZERO
    company_amount: Decimal = ZERO
    printer_amount: Decimal = ZERO
    reason: str = ""
    discount: Decimal = ZERO
    discount_reason: str = ""

    def __post_init__(self) -> None:
        _coerce_money(
            self,
            "customer_pct",
            "company_pct",
            "printer_pct",
            "customer_amount",
            "company_amount",
            "printer_amount",
            "discount",
        )
        _coerce_enum(self, "mode", AllocationMode)

    def pct(self, party: str) -> Decimal:
        return getattr(self, f"{party}_pct")

    def amount(self, party: str) -> Decimal:
        return getattr(self, f"{party}_amount")

    @property
    def total_pct(self) -> Decimal:
        return self.customer_pct + self.company_pct + self.printer_pct

    @property
    def total_amount(self) -> Decimal:
        return self.customer_amount + self.company_amount + self.printer_amount


@dataclass(frozen=True)
class CostAllocationData:
    print: ServiceAllocation = field(default_factory=ServiceAllocation)
    cutout: ServiceAllocation = field(default_factory=ServiceAllocation)
    installation: ServiceAllocation = field(default_factory=ServiceAllocation)

    def get(self, service: str) -> ServiceAllocation:
        if service not in SERVICES:
            raise InvalidRecordError(f"Unknown service '{service}'")
        return getattr(self, service)

    def enabled_services(self) -> Dict[str, ServiceAllocation]:
        return {name: self.get(name) for name in SERVICES if self.get(name).enabled}


@dataclass(frozen=True)
class CompositeTask:
    """Bundled job of installation, print and cutout with customer/company accounting"""

    id: RecordId
    contract_id: Optional[RecordId]
    customer_id: Optional[RecordId]
    task_type: TaskType = TaskType.REINSTALLATION
    installation: ServiceCosts = field(default_factory=ServiceCosts)
    print: ServiceCosts = field(default_factory=ServiceCosts)
    cutout: ServiceCosts = field(default_factory=ServiceCosts)
    discount_amount: Decimal = ZERO
    discount_reason: str = ""
    cost_allocation: Optional[CostAllocationData] = None
    customer_total: Decimal = ZERO
    company_total: Decimal = ZERO
    net_profit: Decimal = ZERO
    profit_percentage: Decimal = ZERO
    combined_invoice_id: Optional[str] = None

    def __post_init__(self) -> None:
        _coerce_money(
            self, "discount_amount", "customer_total", "company_total", "net_profit", "profit_percentage"
        )
        _coerce_enum(self, "task_type", TaskType)


@dataclass(frozen=True)
class SizeInfo:
    """Row of the billboard size table; dimensions in meters"""

    name: str
    width: Optional[Decimal] = None
    height: Optional[Decimal] = None
    installation_price: Optional[Decimal] = None

    def __post_init__(self) -> None:
        _coerce_optional_money(self, "width", "height", "installation_price")


@dataclass(frozen=True)
class PriceRow:
    """Contract pricing row for a size at a given level and customer category"""

    size: str
    level: str
    category: str
    print_price: Optional[Decimal] = None
    installation_price: Optional[Decimal] = None

    def __post_init__(self) -> None:
        _coerce_optional_money(self, "print_price", "installation_price")


@dataclass(frozen=True)
class TaskLineItem:
    """One billboard inside an installation task"""

    billboard_id: RecordId
    size: str
    face_count: Optional[int] = None
    native_face_count: Optional[int] = None
    area_per_face: Optional[Decimal] = None
    has_cutout: bool = False
    pricing_type: PricingType = PricingType.PIECE
    price_per_meter: Decimal = ZERO
    customer_install_cost: Optional[Decimal] = None
    company_install_cost: Optional[Decimal] = None
    additional_customer_cost: Decimal = ZERO
    additional_company_cost: Decimal = ZERO

    def __post_init__(self) -> None:
        _coerce_money(self, "price_per_meter", "additional_customer_cost", "additional_company_cost")
        _coerce_optional_money(self, "area_per_face", "customer_install_cost", "company_install_cost")
        _coerce_enum(self, "pricing_type", PricingType)


@dataclass(frozen=True)
class CutoutItem:
    """Cutout (freeform cut) work on one billboard"""

    billboard_id: Optional[RecordId]
    quantity: int = 1
    unit_cost: Decimal = ZERO
    total_cost: Optional[Decimal] = None

    def __post_init__(self) -> None:
        _coerce_money(self, "unit_cost")
        _coerce_optional_money(self, "total_cost")


@dataclass(frozen=True)
class PricingPolicy:
    """
    Explicit pricing defaults.

    Fallback prices are None unless the operator configures them, so a size
    without pricing is reported as missing instead of silently priced.
    """

    default_faces: int = 2
    fallback_install_price: Optional[Decimal] = None
    fallback_print_price: Optional[Decimal] = None

    def __post_init__(self) -> None:
        _coerce_optional_money(self, "fallback_install_price", "fallback_print_price")
        if self.default_faces < 1:
            raise InvalidRecordError("default_faces must be at least 1")


# ---- Computation results -------------------------------------------------


@dataclass
class ValidationOutcome:
    """Structured result of a validation: empty errors means the input can be saved"""

    errors: List[DomainException] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise self.errors[0]

    def to_list(self) -> List[Dict[str, Any]]:
        return [error.to_dict() for error in self.errors]


@dataclass
class LineCost:
    billboard_id: RecordId
    size: str
    faces: int
    area_per_face: Optional[Decimal]
    customer_cost: Decimal
    company_cost: Decimal
    error: Optional[DomainException] = None

    @property
    def missing_price(self) -> bool:
        return self.error is not None


@dataclass
class SizePricing:
    size: str
    level: str
    print_price: Decimal
    install_price: Decimal
    error: Optional[DomainException] = None

    @property
    def missing_price(self) -> bool:
        return self.error is not None


@dataclass
class ContractDetails:
    contract_id: RecordId
    total: Decimal
    paid: Decimal
    remaining: Decimal


@dataclass
class DebtSummary:
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

    @property
    def has_surplus(self) -> bool:
        return self.remaining < 0


@dataclass(frozen=True)
class DistributableItem:
    """Something a payment can be applied to: a contract or an open invoice"""

    id: RecordId
    remaining_balance: Decimal
    kind: str = "contract"  # contract | printed_invoice | sales_invoice
    total_amount: Optional[Decimal] = None
    paid_amount: Optional[Decimal] = None

    def __post_init__(self) -> None:
        _coerce_money(self, "remaining_balance")
        _coerce_optional_money(self, "total_amount", "paid_amount")


@dataclass
class DistributionLine:
    item_id: RecordId
    kind: str
    amount: Decimal
    remaining_before: Optional[Decimal] = None

    @property
    def remaining_after(self) -> Optional[Decimal]:
        if self.remaining_before is None:
            return None
        return self.remaining_before - self.amount


@dataclass
class DistributionPlan:
    total_amount: Decimal
    lines: List[DistributionLine] = field(default_factory=list)
    strategy: str = "auto"  # auto | manual
    unmatched_ids: List[str] = field(default_factory=list)

    @property
    def allocated_total(self) -> Decimal:
        return sum((line.amount for line in self.lines), ZERO)

    @property
    def unallocated(self) -> Decimal:
        return self.total_amount - self.allocated_total

    def as_map(self) -> Dict[RecordId, Decimal]:
        return {line.item_id: line.amount for line in self.lines}


@dataclass
class CommitResult:
    outcome: ValidationOutcome
    group_id: Optional[str] = None
    entries: List[LedgerEntry] = field(default_factory=list)


@dataclass(frozen=True)
class CustodyShare:
    beneficiary_id: RecordId
    amount: Decimal

    def __post_init__(self) -> None:
        _coerce_money(self, "amount")


@dataclass
class AllocationCheck:
    service: str
    mode: AllocationMode
    balanced: bool
    total_pct: Decimal
    total_allocated: Decimal
    service_total: Decimal
    delta: Decimal


@dataclass
class CompositeSummary:
    customer_subtotal: Decimal
    discount_total: Decimal
    customer_total: Decimal
    company_total: Decimal
    net_profit: Decimal
    profit_percentage: Decimal
    adjusted_company_total: Decimal
    adjusted_net_profit: Decimal
    adjusted_profit_percentage: Decimal


@dataclass
class SaveResult:
    outcome: ValidationOutcome
    task: Optional[CompositeTask] = None


@dataclass(frozen=True)
class ContractInstallment:
    """Single payment in a contract's installment schedule"""

    due_date: date
    amount: Decimal
    description: str
    payment_type: str


@dataclass
class InstallmentGroup:
    amount: Decimal
    count: int
    payment_type: str
    start_date: date
    end_date: date
    installments: List[ContractInstallment] = field(default_factory=list)

    @property
    def is_grouped(self) -> bool:
        return self.count >= 2

    @property
    def total(self) -> Decimal:
        return sum((inst.amount for inst in self.installments), ZERO)
