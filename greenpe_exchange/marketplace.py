"""
Credit Marketplace

Sell-order placement, direct purchase and delayed settlement.

An order is removed from the book in the same step that creates its trade,
before settlement is even scheduled. "Order is in the book" therefore means
"order is not sold yet", which is what stops an order being bought twice.
"""

import itertools
import math
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from greenpe_exchange.exceptions import (
    AccountRequired,
    InsufficientCredits,
    OrderNotFound,
    ValidationError,
)
from greenpe_exchange.ledger import CASH_PLACES, CREDIT_PLACES, LedgerState
from greenpe_exchange.logging_config import logger
from greenpe_exchange.models import Account, Order, OrderStatus, Trade
from greenpe_exchange.notifications import LoggingNotifier, Notifier
from greenpe_exchange.scheduler import SimulatedScheduler
from greenpe_exchange.settings import settings


def demo_orders(scheduler: SimulatedScheduler) -> List[Order]:
    """Two example orders the demo order book starts with"""
    created_at = scheduler.current_time()
    return [
        Order(
            order_id="ORD-1",
            seller_account_id=f"weaver_tirupur@{settings.ACCOUNT_DOMAIN}",
            credit_amount=0.5,
            price_per_credit=5200,
            created_at=created_at,
        ),
        Order(
            order_id="ORD-2",
            seller_account_id=f"farmer_nashik@{settings.ACCOUNT_DOMAIN}",
            credit_amount=0.2,
            price_per_credit=4800,
            created_at=created_at,
        ),
    ]


class Marketplace:
    """Order book operations over a ledger"""

    def __init__(
        self,
        ledger: LedgerState,
        scheduler: SimulatedScheduler,
        notifier: Optional[Notifier] = None,
    ):
        """
        Initialize the marketplace.

        Args:
            ledger: Ledger holding balances, orders and trades
            scheduler: Scheduler settlements are queued on
            notifier: Receives settlement notices
        """
        self.ledger = ledger
        self.scheduler = scheduler
        self.notifier = notifier or LoggingNotifier()
        self._seq = itertools.count(1)

    def _next_id(self, prefix: str) -> str:
        millis = int(self.scheduler.current_time().timestamp() * 1000)
        return f"{prefix}-{millis}-{next(self._seq)}"

    def seed_orders(self, orders: Iterable[Order]) -> int:
        """
        Inject an initial order set.

        Seeded orders are not reserved against any balance row.
        """
        seeded = 0
        for order in reversed(list(orders)):
            self.ledger.add_order(order)
            seeded += 1
        logger.info(f"Seeded {seeded} order(s)")
        return seeded

    def place_sell_order(
        self,
        account: Optional[Account],
        credit_amount: float,
        price_per_credit: float,
    ) -> Order:
        """
        List credits for sale.

        The amount is debited from the seller straight away, so two orders
        can never spend the same credits.

        Args:
            account: Seller
            credit_amount: Credits to sell
            price_per_credit: Asking price per credit

        Returns:
            The new open order, also placed at the head of the book

        Raises:
            ValidationError: If there is no account or an amount is out of range
        """
        if account is None:
            raise AccountRequired("place a sell order")

        if not math.isfinite(credit_amount) or round(credit_amount, CREDIT_PLACES) <= 0:
            raise ValidationError(
                f"Invalid credit amount: {credit_amount}",
                field="credit_amount",
                value=credit_amount,
            )
        if not math.isfinite(price_per_credit) or price_per_credit <= 0:
            raise ValidationError(
                f"Invalid price per credit: {price_per_credit}",
                field="price_per_credit",
                value=price_per_credit,
            )

        # Checked against the requested amount, not the rounded one
        available = self.ledger.get_credit_balance(account.account_id)
        if credit_amount > available:
            raise InsufficientCredits(account.account_id, credit_amount, available)

        amount = round(credit_amount, CREDIT_PLACES)
        order = Order(
            order_id=self._next_id("ORD"),
            seller_account_id=account.account_id,
            credit_amount=amount,
            price_per_credit=price_per_credit,
            created_at=self.scheduler.current_time(),
        )
        self.ledger.debit_credits(account.account_id, amount)
        self.ledger.add_order(order)
        logger.info(
            f"Order {order.order_id}: {account.account_id} sells "
            f"{amount} @ {price_per_credit}"
        )
        return order

    def buy_order(self, order_id: str, buyer: Optional[Account] = None) -> Trade:
        """
        Buy an open order outright.

        The buyer's cash is neither checked nor debited: payment is simulated.
        The trade is recorded and the order removed now; cash and credits
        move when the settlement runs ``SETTLEMENT_DELAY_SECONDS`` later.

        Args:
            order_id: Order to buy
            buyer: Buying account, or None for an anonymous buyer

        Returns:
            The trade record

        Raises:
            OrderNotFound: If the order is not (or no longer) in the book
        """
        order = self.ledger.remove_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)

        total_price = round(order.credit_amount * order.price_per_credit, CASH_PLACES)
        buyer_id = buyer.account_id if buyer else settings.anonymous_account_id

        trade = Trade(
            trade_id=self._next_id("TRADE"),
            order_id=order.order_id,
            buyer_account_id=buyer_id,
            seller_account_id=order.seller_account_id,
            credit_amount=order.credit_amount,
            price_per_credit=order.price_per_credit,
            total_price=total_price,
            payment_ref=self._next_id("UPI"),
            created_at=self.scheduler.current_time(),
        )
        order.status = OrderStatus.MATCHED
        self.ledger.add_trade(trade)
        logger.info(
            f"Trade {trade.trade_id}: {buyer_id} buys order {order.order_id} "
            f"for {total_price}"
        )

        self.scheduler.call_later(
            settings.SETTLEMENT_DELAY_SECONDS,
            lambda: self.settle(trade),
            name=f"settle-{trade.trade_id}",
        )
        return trade

    def settle(self, trade: Trade) -> None:
        """
        Apply a trade to the ledger.

        The seller row receives the proceeds less the marketplace fee and the
        buyer row receives the credits. Parties without a ledger row (demo
        sellers, anonymous buyers) are skipped. On a self-trade both apply.
        """
        if trade.settled:
            logger.warning(f"Trade {trade.trade_id} already settled, skipping")
            return

        if self.ledger.has_account(trade.seller_account_id):
            proceeds = round(
                trade.total_price * (1 - settings.MARKETPLACE_FEE_RATE), CASH_PLACES
            )
            self.ledger.add_cash(trade.seller_account_id, proceeds)
            logger.info(f"Credited {proceeds} to seller {trade.seller_account_id}")
        else:
            logger.debug(f"Seller {trade.seller_account_id} has no ledger row")

        if self.ledger.has_account(trade.buyer_account_id):
            self.ledger.add_credits(trade.buyer_account_id, trade.credit_amount)
            logger.info(
                f"Delivered {trade.credit_amount} credits to {trade.buyer_account_id}"
            )
        else:
            logger.debug(f"Buyer {trade.buyer_account_id} has no ledger row")

        trade.settled = True
        self.notifier.notify(f"Payment {trade.payment_ref} settled: {trade.total_price}")

    def pending_settlements(self) -> List[Trade]:
        return [trade for trade in self.ledger.trades if not trade.settled]

    def get_trading_statistics(self) -> Dict[str, Any]:
        """Get trading statistics"""
        trades = pd.DataFrame(
            [trade.model_dump() for trade in self.ledger.trades],
            columns=['credit_amount', 'total_price', 'settled'],
        )
        total_credits = float(trades['credit_amount'].sum()) if not trades.empty else 0.0
        total_value = float(trades['total_price'].sum()) if not trades.empty else 0.0

        return {
            'total_trades': len(trades),
            'total_credits_traded': round(total_credits, CREDIT_PLACES),
            'total_value': round(total_value, CASH_PLACES),
            'average_price_per_credit': (
                round(total_value / total_credits, CASH_PLACES)
                if total_credits > 0 else None
            ),
            'open_orders': len(self.ledger.orders),
            'pending_settlements': (
                int((~trades['settled'].astype(bool)).sum()) if not trades.empty else 0
            ),
        }
