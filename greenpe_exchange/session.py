"""
Exchange Session

Owns one ledger, one scheduler and every engine, and is the single writer
for all of them. One session corresponds to one household using the
simulator; the most recently onboarded account is the active one.
"""

from datetime import datetime
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar

from greenpe_exchange.certificates import CertificateExporter, CertificateIssuer
from greenpe_exchange.exceptions import AccountRequired, ValidationError
from greenpe_exchange.identity import IdentityRegistrar
from greenpe_exchange.ledger import LedgerState
from greenpe_exchange.logging_config import logger
from greenpe_exchange.marketplace import Marketplace, demo_orders
from greenpe_exchange.metering import MeteringFeed
from greenpe_exchange.models import (
    Account,
    AccountBalance,
    Certificate,
    MeterReading,
    Order,
    Trade,
)
from greenpe_exchange.notifications import LoggingNotifier, Notifier
from greenpe_exchange.scheduler import SimulatedScheduler
from greenpe_exchange.scoring import is_eligible, score_for
from greenpe_exchange.settings import settings
from greenpe_exchange.tokenization import TokenizationEngine

F = TypeVar("F", bound=Callable[..., Any])


def user_action(func: F) -> F:
    """Surface validation failures as a notice, then re-raise them."""

    @wraps(func)
    def wrapper(self: "ExchangeSession", *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except ValidationError as e:
            logger.warning(f"{func.__name__} rejected: {e.message}")
            self.notifier.notify(e.message)
            raise

    return wrapper  # type: ignore[return-value]


class ExchangeSession:
    """Service object wiring identity, metering, tokenization, market and certificates"""

    def __init__(
        self,
        notifier: Optional[Notifier] = None,
        exporter: Optional[CertificateExporter] = None,
        epoch: Optional[datetime] = None,
        meter_seed: Optional[int] = None,
        seed_demo_orders: Optional[bool] = None,
    ):
        self.notifier = notifier or LoggingNotifier()
        self.scheduler = SimulatedScheduler(epoch)
        self.ledger = LedgerState()
        self.registrar = IdentityRegistrar()
        self.tokenizer = TokenizationEngine(self.ledger)
        self.marketplace = Marketplace(self.ledger, self.scheduler, self.notifier)
        self.issuer = CertificateIssuer(self.ledger, self.scheduler, exporter)
        self.meter = MeteringFeed(self.scheduler, self._on_reading, seed=meter_seed)
        self.active_account: Optional[Account] = None

        if seed_demo_orders is None:
            seed_demo_orders = settings.SEED_DEMO_ORDERS
        if seed_demo_orders:
            self.marketplace.seed_orders(demo_orders(self.scheduler))

    # -- identity ------------------------------------------------------

    def onboard(
        self,
        display_name: Optional[str],
        identity_number: Optional[str] = None,
        tax_id: Optional[str] = None,
    ) -> Account:
        account = self.registrar.register(display_name, identity_number, tax_id)
        self.ledger.open_account(account.account_id)
        self.active_account = account
        self.notifier.notify(f"Welcome! Your Energy ID: {account.account_id}")
        return account

    def _require_account(self, action: str) -> Account:
        if self.active_account is None:
            raise AccountRequired(action)
        return self.active_account

    # -- metering ------------------------------------------------------

    def _on_reading(self, reading: MeterReading) -> None:
        account = self.active_account
        if account is None:
            # Only reachable if the feed is ticked by hand before onboarding
            logger.warning(f"Dropped meter reading {reading.kwh} kWh: no active account")
            return
        self.ledger.record_reading(account.account_id, reading.kwh)
        self.tokenizer.apply(account.account_id, reading.kwh)

    @user_action
    def start_meter(self) -> None:
        self._require_account("start the meter")
        self.meter.start()

    def stop_meter(self) -> None:
        self.meter.stop()

    @user_action
    def toggle_meter(self) -> bool:
        if not self.meter.is_running:
            self._require_account("start the meter")
        return self.meter.toggle()

    @user_action
    def reset_generation(self) -> AccountBalance:
        account = self._require_account("reset generation")
        return self.ledger.reset_generation(account.account_id)

    @user_action
    def credit_subsidy(self, amount: Optional[float] = None) -> AccountBalance:
        account = self._require_account("receive a subsidy")
        amount = settings.SUBSIDY_AMOUNT if amount is None else amount
        if amount <= 0:
            raise ValidationError(f"Invalid subsidy amount: {amount}", field="amount", value=amount)
        row = self.ledger.add_cash(account.account_id, amount)
        self.notifier.notify(f"Mock: {amount} credited via government subsidy")
        return row

    # -- marketplace ---------------------------------------------------

    @user_action
    def place_sell_order(self, credit_amount: float, price_per_credit: float) -> Order:
        return self.marketplace.place_sell_order(
            self.active_account, credit_amount, price_per_credit
        )

    @user_action
    def buy_order(self, order_id: str) -> Trade:
        return self.marketplace.buy_order(order_id, self.active_account)

    # -- certificates --------------------------------------------------

    @user_action
    def issue_certificate(self) -> Certificate:
        return self.issuer.issue(self.active_account)

    def clear_certificates(self) -> int:
        return self.issuer.clear()

    # -- reads ---------------------------------------------------------

    def balances(self) -> Optional[AccountBalance]:
        if self.active_account is None:
            return None
        return self.ledger.get_balance(self.active_account.account_id)

    def score(self) -> int:
        row = self.balances()
        return score_for(row) if row else 0

    def is_eligible(self) -> bool:
        return is_eligible(self.score())

    def snapshot(self) -> Dict[str, Any]:
        """Dashboard view of the active account and the market"""
        row = self.balances()
        score = self.score()
        return {
            'account': self.active_account.model_dump(by_alias=True) if self.active_account else None,
            'balances': row.model_dump(by_alias=True) if row else None,
            'score': score,
            'eligible': is_eligible(score),
            'meter_running': self.meter.is_running,
            'ledger': self.ledger.get_statistics(),
            'clock': self.scheduler.current_time().isoformat(),
        }

    # -- clock ---------------------------------------------------------

    def advance(self, seconds: float) -> int:
        """Move simulated time forward, running due ticks and settlements"""
        return self.scheduler.advance(seconds)

    def shutdown(self) -> None:
        """Stop the meter and drop every pending timer"""
        self.meter.stop()
        dropped = self.scheduler.cancel_all()
        logger.info(f"Session shut down, {dropped} pending task(s) dropped")
