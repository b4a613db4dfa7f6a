import datetime
from typing import Generator

import pytest
from starlette.testclient import TestClient

from greenpe_exchange.api import create_app
from greenpe_exchange.ledger import LedgerState
from greenpe_exchange.marketplace import Marketplace
from greenpe_exchange.models import Account
from greenpe_exchange.notifications import RecordingNotifier
from greenpe_exchange.scheduler import SimulatedScheduler
from greenpe_exchange.session import ExchangeSession

EPOCH = datetime.datetime(2024, 6, 1, 12, 0, 0, tzinfo=datetime.timezone.utc)


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def scheduler() -> SimulatedScheduler:
    return SimulatedScheduler(epoch=EPOCH)


@pytest.fixture()
def ledger() -> LedgerState:
    return LedgerState()


@pytest.fixture()
def marketplace(ledger, scheduler, notifier) -> Marketplace:
    return Marketplace(ledger, scheduler, notifier)


@pytest.fixture()
def seller(ledger) -> Account:
    """Account with a ledger row holding 0.5 credits"""
    account = Account(account_id="asha@greenpe", display_name="Asha", identity_hash="hash_1234")
    ledger.open_account(account.account_id)
    ledger.add_credits(account.account_id, 0.5)
    return account


@pytest.fixture()
def buyer(ledger) -> Account:
    account = Account(account_id="ravi@greenpe", display_name="Ravi", identity_hash="hash_9876")
    ledger.open_account(account.account_id)
    return account


@pytest.fixture()
def session(notifier) -> ExchangeSession:
    """Session with an empty order book and a deterministic meter"""
    return ExchangeSession(
        notifier=notifier, epoch=EPOCH, meter_seed=42, seed_demo_orders=False
    )


@pytest.fixture()
def onboarded_session(session) -> ExchangeSession:
    session.onboard("Asha Devi", "123456789012", "22AAAAA0000A1Z5")
    return session


@pytest.fixture()
def api_client(notifier) -> Generator[TestClient, None, None]:
    """API client over a session with the demo order book"""
    session = ExchangeSession(notifier=notifier, epoch=EPOCH, meter_seed=7, seed_demo_orders=True)
    app = create_app(session, drive_clock_in_real_time=False)
    with TestClient(app) as client:
        yield client
