"""
Score Engine

GreenScore is derived from cumulative generation and the credit balance. It
is never stored, so it always reflects the current ledger row.
"""

import math

from greenpe_exchange.models import AccountBalance
from greenpe_exchange.settings import settings


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def compute_score(energy_total_kwh: float, credit_balance: float) -> int:
    raw = math.log(1 + energy_total_kwh) * 200 + credit_balance * 50
    return min(settings.SCORE_CAP, _round_half_up(raw))


def score_for(balance: AccountBalance) -> int:
    return compute_score(balance.energy_total_kwh, balance.credit_balance)


def is_eligible(score: int) -> bool:
    """Loan eligibility predicate"""
    return score > settings.ELIGIBILITY_THRESHOLD
