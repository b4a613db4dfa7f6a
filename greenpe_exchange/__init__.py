"""
GreenPe Exchange

Renewable-energy tokenization and credit trading simulator: metered energy is
minted into credits and carbon offsets, credits are traded on a small order
book with delayed settlement, and balances can be bundled into certificates.
"""

from .models import (
    Account,
    AccountBalance,
    Certificate,
    ComplianceInfo,
    MeterReading,
    Order,
    OrderStatus,
    Trade,
)
from .exceptions import ExchangeError, ValidationError
from .scheduler import SimulatedScheduler
from .ledger import LedgerState
from .identity import IdentityRegistrar
from .metering import MeteringFeed
from .tokenization import TokenizationEngine, mint
from .scoring import compute_score, is_eligible
from .marketplace import Marketplace
from .certificates import CertificateExporter, CertificateIssuer
from .session import ExchangeSession

__version__ = "1.0.0"
__all__ = [
    "Account",
    "AccountBalance",
    "Certificate",
    "ComplianceInfo",
    "MeterReading",
    "Order",
    "OrderStatus",
    "Trade",
    "ExchangeError",
    "ValidationError",
    "SimulatedScheduler",
    "LedgerState",
    "IdentityRegistrar",
    "MeteringFeed",
    "TokenizationEngine",
    "mint",
    "compute_score",
    "is_eligible",
    "Marketplace",
    "CertificateExporter",
    "CertificateIssuer",
    "ExchangeSession",
]
