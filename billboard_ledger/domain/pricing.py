"""Installation pricing - per-billboard cost from the size table, by piece or by area"""

import logging
import re
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from billboard_ledger.domain.exceptions import MissingPriceError
from billboard_ledger.domain.models import (
    CutoutItem,
    LineCost,
    PriceRow,
    PricingPolicy,
    PricingType,
    RecordId,
    SizeInfo,
    SizePricing,
    TaskLineItem,
    ValidationOutcome,
)
from billboard_ledger.utils.money import ZERO, floor2, round2, to_decimal

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_SEPARATORS = re.compile(r"[×*]")
_DIMENSIONS = re.compile(r"^(\d+(?:\.\d+)?)x(\d+(?:\.\d+)?)$")


def normalize_size(size: str) -> str:
    """'3 X 4', '3×4' and '3*4' all become '3x4'"""
    return _SEPARATORS.sub("x", _WHITESPACE.sub("", size or "").lower())


def parse_size(size: str) -> Optional[Tuple[Decimal, Decimal]]:
    """Read literal 'WxH' dimensions from a size name"""
    match = _DIMENSIONS.match(normalize_size(size))
    if not match:
        return None
    return Decimal(match.group(1)), Decimal(match.group(2))


def build_size_table(sizes: Iterable[SizeInfo]) -> Dict[str, SizeInfo]:
    """Index size rows by normalized name"""
    return {normalize_size(s.name): s for s in sizes}


def lookup_size(size: str, size_table: Mapping[str, SizeInfo]) -> Optional[SizeInfo]:
    if size in size_table:
        return size_table[size]
    key = normalize_size(size)
    if key in size_table:
        return size_table[key]
    for name, info in size_table.items():
        if normalize_size(name) == key:
            return info
    return None


def area_per_face(size: str, size_table: Mapping[str, SizeInfo]) -> Optional[Decimal]:
    """
    Area of one face in square meters.

    Table dimensions win; otherwise the size name itself is parsed.
    Returns None when neither source yields dimensions.
    """
    info = lookup_size(size, size_table)
    if info is not None and info.width and info.height:
        return info.width * info.height

    dimensions = parse_size(size)
    if dimensions is None:
        return None
    width, height = dimensions
    return width * height


def effective_faces(item: TaskLineItem, policy: PricingPolicy) -> int:
    """Faces being installed: the task's choice, then the billboard's own count, then the policy default"""
    return item.face_count or item.native_face_count or policy.default_faces


def piece_install_price(base_price: Decimal, faces: int) -> Decimal:
    """
    Piece price for a billboard whose size table price covers two faces.

    A single face costs half; more than two faces scale proportionally.
    """
    base_price = to_decimal(base_price)
    if faces == 1:
        return round2(base_price / 2)
    return round2(base_price * faces / 2)


def compute_install_cost(
    item: TaskLineItem,
    size_table: Mapping[str, SizeInfo],
    policy: PricingPolicy = PricingPolicy(),
) -> LineCost:
    """
    Customer price and company cost of installing one billboard.

    - piece: explicit customer price if entered, else the size table price (halved for one face)
    - meter: price_per_meter x area x faces, rounded to cents
    - company cost: stored value if positive, else size table price by faces
    - additional customer/company costs are added verbatim

    A cost that cannot be derived is reported as 0 with a MissingPriceError on the
    returned line; it is never filled in with a guessed price.
    """
    faces = effective_faces(item, policy)
    info = lookup_size(item.size, size_table)
    area = item.area_per_face if item.area_per_face is not None else area_per_face(item.size, size_table)

    base_price = info.installation_price if info is not None else None
    if base_price is None:
        base_price = policy.fallback_install_price

    error: Optional[MissingPriceError] = None

    if item.company_install_cost is not None and item.company_install_cost > 0:
        company_cost = item.company_install_cost
    elif base_price is not None:
        company_cost = piece_install_price(base_price, faces)
    else:
        company_cost = ZERO
        error = MissingPriceError(
            item.size, item.billboard_id, "no company installation cost: no stored cost and no size table price"
        )

    if item.pricing_type == PricingType.METER:
        if area is None:
            customer_cost = ZERO
            error = MissingPriceError(item.size, item.billboard_id, "no dimensions to compute area")
        else:
            customer_cost = round2(item.price_per_meter * area * faces)
    elif item.customer_install_cost is not None:
        customer_cost = item.customer_install_cost
    elif base_price is not None:
        customer_cost = piece_install_price(base_price, faces)
    else:
        customer_cost = ZERO
        error = MissingPriceError(item.size, item.billboard_id, "no customer installation price")

    if error is not None:
        logger.warning(
            "Missing pricing for line item",
            extra={"billboard_id": str(item.billboard_id), "size": item.size, "detail": error.detail},
        )

    return LineCost(
        billboard_id=item.billboard_id,
        size=item.size,
        faces=faces,
        area_per_face=area,
        customer_cost=customer_cost + item.additional_customer_cost,
        company_cost=company_cost + item.additional_company_cost,
        error=error,
    )


def compute_install_costs(
    items: Sequence[TaskLineItem],
    size_table: Mapping[str, SizeInfo],
    policy: PricingPolicy = PricingPolicy(),
) -> Tuple[List[LineCost], ValidationOutcome]:
    """Price every line item, collecting missing-price warnings"""
    lines = [compute_install_cost(item, size_table, policy) for item in items]
    outcome = ValidationOutcome(errors=[line.error for line in lines if line.error is not None])
    return lines, outcome


def total_print_area(
    items: Sequence[TaskLineItem],
    size_table: Mapping[str, SizeInfo],
    policy: PricingPolicy = PricingPolicy(),
) -> Tuple[Decimal, ValidationOutcome]:
    """Printable area over all installed faces"""
    total = ZERO
    outcome = ValidationOutcome()
    for item in items:
        area = item.area_per_face if item.area_per_face is not None else area_per_face(item.size, size_table)
        if area is None:
            outcome.errors.append(MissingPriceError(item.size, item.billboard_id, "no dimensions to compute area"))
            continue
        total += area * effective_faces(item, policy)
    return total, outcome


def cutout_billboard_ids(
    cutout_items: Sequence[CutoutItem],
    line_items: Sequence[TaskLineItem] = (),
) -> List[RecordId]:
    """Billboards carrying a cutout: those in the cutout task, else those flagged on the installation items"""
    ids: List[RecordId] = []
    for cutout in cutout_items:
        if cutout.billboard_id is not None and cutout.billboard_id not in ids:
            ids.append(cutout.billboard_id)
    if ids:
        return ids
    for item in line_items:
        if item.has_cutout and item.billboard_id not in ids:
            ids.append(item.billboard_id)
    return ids


def _split_evenly(amount: Decimal, parts: int) -> List[Decimal]:
    # Last part absorbs the rounding remainder so the parts sum to the amount exactly
    base = floor2(amount / parts)
    return [base] * (parts - 1) + [amount - base * (parts - 1)]


def allocate_cutout_cost(total: Decimal, billboard_ids: Sequence[RecordId]) -> Dict[RecordId, Decimal]:
    """Spread a cutout task's total evenly over the billboards that have a cutout"""
    if not billboard_ids:
        return {}
    shares = _split_evenly(to_decimal(total), len(billboard_ids))
    return dict(zip(billboard_ids, shares))


def split_across_faces(amount: Decimal, faces: int) -> List[Decimal]:
    """
    Per-face share of a billboard cost for face-level invoice lines.

    Example:
        100.01 over 2 faces -> [50.00, 50.01]
    """
    if faces < 1:
        faces = 1
    return _split_evenly(to_decimal(amount), faces)


def resolve_size_pricing(
    size: str,
    level: str,
    category: str,
    price_rows: Sequence[PriceRow],
    policy: PricingPolicy = PricingPolicy(),
) -> SizePricing:
    """
    Print and installation price of a contract billboard for a customer category.

    Policy fallback prices apply only when configured; otherwise the missing
    price is reported on the result.
    """
    key = normalize_size(size)
    row = next(
        (r for r in price_rows if normalize_size(r.size) == key and r.level == level and r.category == category),
        None,
    )

    print_price = row.print_price if row is not None else None
    install_price = row.installation_price if row is not None else None
    if print_price is None:
        print_price = policy.fallback_print_price
    if install_price is None:
        install_price = policy.fallback_install_price

    error = None
    if print_price is None or install_price is None:
        error = MissingPriceError(key, detail=f"no pricing for level '{level}' and category '{category}'")

    return SizePricing(
        size=key,
        level=level,
        print_price=print_price if print_price is not None else ZERO,
        install_price=install_price if install_price is not None else ZERO,
        error=error,
    )
