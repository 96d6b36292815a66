"""Dependency injection for FastAPI endpoints"""

from fastapi import Request

from billboard_ledger.config import settings
from billboard_ledger.domain.models import PricingPolicy
from billboard_ledger.infrastructure.clients.ledger import LedgerClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_ledger_client() -> LedgerClient:
    """Provide Ledger webhook client instance"""
    return LedgerClient()


def get_pricing_policy() -> PricingPolicy:
    """Pricing defaults from configuration"""
    return PricingPolicy(
        default_faces=settings.default_faces,
        fallback_install_price=settings.fallback_install_price,
        fallback_print_price=settings.fallback_print_price,
    )
