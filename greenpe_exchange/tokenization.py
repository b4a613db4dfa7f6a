"""
Tokenization Engine

Converts metered kWh into tradable credits and carbon offsets.
"""

from typing import Tuple

from greenpe_exchange.exceptions import ValidationError
from greenpe_exchange.ledger import CARBON_PLACES, CREDIT_PLACES, LedgerState
from greenpe_exchange.settings import settings


def mint(kwh: float) -> Tuple[float, float]:
    """
    Compute the credit and carbon deltas for an amount of energy.

    Args:
        kwh: Energy generated

    Returns:
        (credit_delta, carbon_delta) rounded to 6 and 3 decimals
    """
    if kwh < 0:
        raise ValidationError(f"kWh must be >= 0, got {kwh}", field="kwh", value=kwh)

    credit_delta = round(kwh * settings.CREDITS_PER_KWH, CREDIT_PLACES)
    carbon_delta = round(kwh * settings.CARBON_KG_PER_KWH, CARBON_PLACES)
    return credit_delta, carbon_delta


class TokenizationEngine:
    """Applies minted deltas to ledger rows"""

    def __init__(self, ledger: LedgerState):
        self.ledger = ledger

    def apply(self, account_id: str, kwh: float) -> Tuple[float, float]:
        """Mint for ``kwh`` and credit the account. Returns the deltas."""
        credit_delta, carbon_delta = mint(kwh)
        self.ledger.add_credits(account_id, credit_delta)
        self.ledger.add_carbon(account_id, carbon_delta)
        return credit_delta, carbon_delta
