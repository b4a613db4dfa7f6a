"""
Ledger State

Per-account balance rows, the order book, trade history and certificate
history. Every other component reads and writes through this object; amounts
are re-rounded after every mutation to bound floating-point drift.
"""

from typing import Dict, List, Optional

from greenpe_exchange.exceptions import InsufficientCredits, ValidationError
from greenpe_exchange.logging_config import logger
from greenpe_exchange.models import AccountBalance, Certificate, Order, Trade

ENERGY_PLACES = 3
CREDIT_PLACES = 6
CARBON_PLACES = 3
CASH_PLACES = 2


class LedgerState:
    """Shared mutable state of one exchange session"""

    def __init__(self):
        """Initialize an empty ledger"""
        self.balances: Dict[str, AccountBalance] = {}
        # Most recent first
        self.orders: List[Order] = []
        self.trades: List[Trade] = []
        self.certificates: List[Certificate] = []

    # -- balance rows --------------------------------------------------

    def open_account(self, account_id: str) -> AccountBalance:
        """
        Create a balance row for an account.

        Existing rows are returned untouched, so re-onboarding keeps balances.
        """
        if account_id not in self.balances:
            self.balances[account_id] = AccountBalance(account_id=account_id)
            logger.info(f"Opened ledger row for {account_id}")
        return self.balances[account_id]

    def has_account(self, account_id: Optional[str]) -> bool:
        return account_id is not None and account_id in self.balances

    def get_balance(self, account_id: str) -> Optional[AccountBalance]:
        """Get a balance row by account ID"""
        return self.balances.get(account_id)

    def get_credit_balance(self, account_id: str) -> float:
        return self._row(account_id).credit_balance

    def _row(self, account_id: str) -> AccountBalance:
        row = self.balances.get(account_id)
        if row is None:
            raise ValidationError(
                f"No ledger row for account {account_id}",
                field="account_id",
                value=account_id,
            )
        return row

    def record_reading(self, account_id: str, kwh: float) -> AccountBalance:
        row = self._row(account_id)
        row.last_reading_kwh = kwh
        row.energy_total_kwh = round(row.energy_total_kwh + kwh, ENERGY_PLACES)
        return row

    def add_credits(self, account_id: str, amount: float) -> AccountBalance:
        row = self._row(account_id)
        row.credit_balance = round(row.credit_balance + amount, CREDIT_PLACES)
        return row

    def debit_credits(self, account_id: str, amount: float) -> AccountBalance:
        """
        Remove credits from an account.

        Raises:
            InsufficientCredits: If the row holds less than ``amount``
        """
        row = self._row(account_id)
        if amount > row.credit_balance:
            raise InsufficientCredits(account_id, amount, row.credit_balance)
        row.credit_balance = round(row.credit_balance - amount, CREDIT_PLACES)
        return row

    def add_carbon(self, account_id: str, amount: float) -> AccountBalance:
        row = self._row(account_id)
        row.carbon_offset_kg = round(row.carbon_offset_kg + amount, CARBON_PLACES)
        return row

    def add_cash(self, account_id: str, amount: float) -> AccountBalance:
        row = self._row(account_id)
        row.cash_balance = round(row.cash_balance + amount, CASH_PLACES)
        return row

    def reset_generation(self, account_id: str) -> AccountBalance:
        """Zero energy, credits and carbon. Cash is left alone."""
        row = self._row(account_id)
        row.energy_total_kwh = 0.0
        row.last_reading_kwh = 0.0
        row.credit_balance = 0.0
        row.carbon_offset_kg = 0.0
        return row

    # -- order book ----------------------------------------------------

    def add_order(self, order: Order) -> None:
        self.orders.insert(0, order)

    def get_order(self, order_id: str) -> Optional[Order]:
        """Get an open order by ID"""
        return next((o for o in self.orders if o.order_id == order_id), None)

    def remove_order(self, order_id: str) -> Optional[Order]:
        """Take an order out of the book. Returns None if it is not there."""
        for idx, order in enumerate(self.orders):
            if order.order_id == order_id:
                return self.orders.pop(idx)
        return None

    # -- histories -----------------------------------------------------

    def add_trade(self, trade: Trade) -> None:
        self.trades.insert(0, trade)

    def get_trade(self, trade_id: str) -> Optional[Trade]:
        return next((t for t in self.trades if t.trade_id == trade_id), None)

    def get_trades_by_account(self, account_id: str) -> List[Trade]:
        """Get all trades an account took part in"""
        return [
            trade for trade in self.trades
            if trade.buyer_account_id == account_id
            or trade.seller_account_id == account_id
        ]

    def add_certificate(self, certificate: Certificate) -> None:
        self.certificates.insert(0, certificate)

    def get_certificate(self, certificate_id: str) -> Optional[Certificate]:
        return next(
            (c for c in self.certificates if c.certificate_id == certificate_id),
            None,
        )

    def clear_certificates(self) -> int:
        cleared = len(self.certificates)
        self.certificates.clear()
        return cleared

    def get_statistics(self) -> Dict[str, int]:
        """Get ledger statistics"""
        return {
            'accounts': len(self.balances),
            'open_orders': len(self.orders),
            'trades': len(self.trades),
            'certificates': len(self.certificates),
        }
