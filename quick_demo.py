#!/usr/bin/env python3
"""
Quick Demo - walk through one simulated household session.
"""

from greenpe_exchange import ExchangeSession
from greenpe_exchange.notifications import RecordingNotifier

print("=" * 70)
print("🌱 GREENPE EXCHANGE - QUICK DEMO 🌱")
print("=" * 70)
print()

notifier = RecordingNotifier()
session = ExchangeSession(notifier=notifier, meter_seed=42)

# Step 1: Onboard
print("📝 Step 1: Onboarding...")
account = session.onboard("Asha Devi", "123456789012", "22AAAAA0000A1Z5")
print(f"   ✅ Energy ID: {account.account_id}")
print(f"   🔒 Identity hash (mock): {account.identity_hash}")
print()

# Step 2: Run the meter for a simulated minute
print("⚡ Step 2: Running the meter for 60 simulated seconds...")
session.start_meter()
session.advance(60)
session.stop_meter()
row = session.balances()
print(f"   📊 Generated: {row.energy_total_kwh} kWh (last +{row.last_reading_kwh})")
print(f"   🪙 Credits: {row.credit_balance}")
print(f"   🌍 Carbon offset: {row.carbon_offset_kg} kg")
print(f"   ⭐ GreenScore: {session.score()} ({'Eligible' if session.is_eligible() else 'Not Eligible'})")
print()

# Step 3: Buy a seeded order
print("🛒 Step 3: Buying ORD-2 from the demo order book...")
trade = session.buy_order("ORD-2")
print(f"   ✅ Trade {trade.trade_id}: {trade.credit_amount} credits for {trade.total_price}")
session.advance(3)
print(f"   💸 {notifier.last}")
print()

# Step 4: List part of the balance
print("📤 Step 4: Listing half the credit balance at 5000 per credit...")
amount = round(session.balances().credit_balance / 2, 6)
order = session.place_sell_order(amount, 5000)
print(f"   ✅ {order.order_id}: {order.credit_amount} @ {order.price_per_credit}")
print(f"   🪙 Credits left: {session.balances().credit_balance}")
print()

# Step 5: Certificate
print("📜 Step 5: Issuing a green impact certificate...")
certificate = session.issue_certificate()
print(f"   ✅ {certificate.certificate_id}")
print(f"   🪙 Credits: {certificate.total_credits}")
print(f"   🌍 Carbon: {certificate.total_carbon_offset_kg} kg")
print()

stats = session.marketplace.get_trading_statistics()
print("📊 Marketplace:")
print(f"   Trades: {stats['total_trades']}  Open orders: {stats['open_orders']}")
print()

session.shutdown()
print("=" * 70)
print("🎉 DEMO COMPLETE! 🎉")
print("=" * 70)
print()
print("💡 Next steps:")
print("   1. Start API: 'greenpe-api'")
print("   2. Visit http://localhost:8000/docs for API documentation")
print()
