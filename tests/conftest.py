"""Pytest fixtures for testing"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from billboard_ledger.api.dependencies import get_ledger_client
from billboard_ledger.api.main import create_app
from billboard_ledger.domain.models import (
    Contract,
    EntryType,
    LedgerEntry,
    PricingPolicy,
    SizeInfo,
)
from billboard_ledger.domain.pricing import build_size_table


class RecordingLedgerClient:
    """Stands in for the ledger webhook; keeps every payload it was given"""

    def __init__(self):
        self.payloads = []

    async def post_distribution(self, payload):
        self.payloads.append(payload)


@pytest.fixture
def ledger_client() -> RecordingLedgerClient:
    return RecordingLedgerClient()


@pytest.fixture
def client(ledger_client: RecordingLedgerClient) -> TestClient:
    """Create FastAPI test client with the ledger webhook captured in memory"""
    app = create_app()
    app.dependency_overrides[get_ledger_client] = lambda: ledger_client
    return TestClient(app)


def _entry(
    entry_id,
    amount,
    entry_type=EntryType.RECEIPT,
    day=1,
    hour=12,
    paid_day=None,
    **links,
) -> LedgerEntry:
    """Ledger entry created on 2024-03-<day>, optionally paid on another day"""
    created_at = datetime(2024, 3, day, hour, tzinfo=timezone.utc)
    paid_at = datetime(2024, 3, paid_day, tzinfo=timezone.utc) if paid_day else None
    return LedgerEntry(
        id=entry_id,
        amount=Decimal(str(amount)),
        entry_type=entry_type,
        created_at=created_at,
        paid_at=paid_at,
        **links,
    )


@pytest.fixture
def make_entry():
    """Factory for ledger entries on fixed March 2024 dates"""
    return _entry


@pytest.fixture
def contracts() -> list[Contract]:
    return [
        Contract(id=1001, total_amount=Decimal("10000"), ad_type="billboard", customer_category="company"),
        Contract(id=1002, total_amount=Decimal("4000"), ad_type="billboard", customer_category="company"),
    ]


@pytest.fixture
def size_table():
    return build_size_table(
        [
            SizeInfo(name="3x4", width=Decimal("3"), height=Decimal("4"), installation_price=Decimal("200")),
            SizeInfo(name="4x12", width=Decimal("4"), height=Decimal("12"), installation_price=Decimal("600")),
            SizeInfo(name="Mupi", width=Decimal("1.2"), height=Decimal("1.8"), installation_price=None),
        ]
    )


@pytest.fixture
def policy() -> PricingPolicy:
    return PricingPolicy()
