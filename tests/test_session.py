import pytest

from greenpe_exchange.exceptions import AccountRequired, ValidationError
from greenpe_exchange.scoring import compute_score


class TestOnboarding:
    def test_onboard_opens_row_and_notifies(self, session, notifier):
        account = session.onboard("Asha Devi", "123456789012", None)

        assert session.active_account == account
        assert session.ledger.has_account("ashadevi@greenpe")
        assert notifier.last == "Welcome! Your Energy ID: ashadevi@greenpe"

    def test_reonboarding_keeps_balances(self, onboarded_session):
        session = onboarded_session
        session.meter.tick(2.0)
        account = session.onboard("Asha Devi", "999988887777", "NEWTAX")

        assert account.identity_hash == "hash_7777"
        assert session.balances().energy_total_kwh == 2.0


class TestMeter:
    def test_meter_requires_account(self, session, notifier):
        with pytest.raises(AccountRequired):
            session.start_meter()
        assert not session.meter.is_running
        assert notifier.last == "Please onboard to start the meter"

    def test_ticks_credit_active_account(self, onboarded_session):
        session = onboarded_session
        for kwh in (0.5, 0.7, 1.111):
            session.meter.tick(kwh)

        row = session.balances()
        assert row.energy_total_kwh == 2.311
        assert row.last_reading_kwh == 1.111
        assert row.credit_balance == 0.002311
        assert row.carbon_offset_kg == 1.849

    def test_running_meter_over_simulated_time(self, onboarded_session):
        session = onboarded_session
        session.start_meter()
        session.advance(30)

        row = session.balances()
        assert 1.0 <= row.energy_total_kwh <= 12.0
        assert row.credit_balance > 0
        assert session.score() == compute_score(row.energy_total_kwh, row.credit_balance)

        session.stop_meter()
        total = row.energy_total_kwh
        session.advance(30)
        assert session.balances().energy_total_kwh == total

    def test_toggle(self, onboarded_session):
        assert onboarded_session.toggle_meter() is True
        assert onboarded_session.toggle_meter() is False

    def test_reset_generation_keeps_cash(self, onboarded_session):
        session = onboarded_session
        session.meter.tick(1.0)
        session.credit_subsidy()
        row = session.reset_generation()

        assert (row.energy_total_kwh, row.credit_balance, row.carbon_offset_kg) == (0, 0, 0)
        assert row.cash_balance == 500.0

    def test_ticks_before_onboarding_are_dropped(self, session):
        session.meter.tick(1.0)
        assert session.balances() is None


class TestScore:
    def test_score_and_eligibility(self, onboarded_session):
        session = onboarded_session
        assert session.score() == 0
        assert not session.is_eligible()

        session.meter.tick(1.2)
        session.meter.tick(1.2)
        session.meter.tick(1.2)
        assert session.score() == compute_score(3.6, 0.0036)
        assert session.is_eligible()


class TestTradingFlow:
    def test_sell_buy_settle(self, onboarded_session, notifier):
        session = onboarded_session
        session.ledger.add_credits("ashadevi@greenpe", 0.5)

        order = session.place_sell_order(0.3, 5000)
        assert session.balances().credit_balance == pytest.approx(0.2)

        trade = session.buy_order(order.order_id)
        assert session.ledger.trades[0] == trade
        assert session.ledger.get_order(order.order_id) is None

        session.advance(3)
        row = session.balances()
        assert row.credit_balance == pytest.approx(0.5)
        assert row.cash_balance == 1485.0
        assert notifier.last == f"Payment {trade.payment_ref} settled: 1500.0"

    def test_rejections_are_notified_without_mutation(self, onboarded_session, notifier):
        session = onboarded_session
        with pytest.raises(ValidationError):
            session.place_sell_order(1.0, 5000)

        assert notifier.last.startswith("Invalid credit amount")
        assert session.ledger.orders == []
        assert session.balances().credit_balance == 0

    def test_place_without_account(self, session, notifier):
        with pytest.raises(AccountRequired):
            session.place_sell_order(0.1, 5000)
        assert notifier.last == "Please onboard to place a sell order"

    def test_subsidy_requires_positive_amount(self, onboarded_session):
        with pytest.raises(ValidationError):
            onboarded_session.credit_subsidy(0)
        assert onboarded_session.balances().cash_balance == 0

    def test_shutdown_drops_pending_settlements(self, onboarded_session):
        session = onboarded_session
        session.ledger.add_credits("ashadevi@greenpe", 0.5)
        order = session.place_sell_order(0.3, 5000)
        trade = session.buy_order(order.order_id)
        session.start_meter()

        session.shutdown()
        session.advance(60)

        assert not trade.settled
        assert not session.meter.is_running
        assert session.balances().cash_balance == 0
        assert session.balances().energy_total_kwh == 0


class TestCertificates:
    def test_issue_without_account(self, session, notifier):
        with pytest.raises(AccountRequired):
            session.issue_certificate()
        assert notifier.last == "Please onboard to generate a certificate"

    def test_issue_and_clear(self, onboarded_session):
        session = onboarded_session
        session.meter.tick(1.0)
        certificate = session.issue_certificate()

        assert certificate.total_credits == 0.001
        assert certificate.total_carbon_offset_kg == 0.8
        assert certificate.tax_id == "22AAAAA0000A1Z5"
        assert certificate.identity_hash == "hash_9012"
        assert session.clear_certificates() == 1

    def test_snapshot(self, onboarded_session):
        snapshot = onboarded_session.snapshot()
        assert snapshot['account']['accountId'] == "ashadevi@greenpe"
        assert snapshot['balances']['creditBalance'] == 0
        assert snapshot['score'] == 0
        assert snapshot['eligible'] is False
        assert snapshot['meter_running'] is False
