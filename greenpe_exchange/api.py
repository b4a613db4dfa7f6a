"""
API Interface for the GreenPe exchange

RESTful API over a single exchange session. The simulated clock is driven in
real time by a background task for as long as the app is running.
"""

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from greenpe_exchange.certificates import CertificateExporter
from greenpe_exchange.error_handling import (
    exchange_validation_handler,
    general_exception_handler,
    http_exception_handler,
    request_validation_handler,
)
from greenpe_exchange.exceptions import ValidationError
from greenpe_exchange.logging_config import logger, set_logger_and_children_level
from greenpe_exchange.notifications import RecordingNotifier
from greenpe_exchange.session import ExchangeSession
from greenpe_exchange.settings import settings


# Request models
class OnboardRequest(BaseModel):
    name: str = ""
    identity_number: str = ""
    tax_id: str = ""


class SellOrderRequest(BaseModel):
    credit_amount: float
    price_per_credit: float


class SubsidyRequest(BaseModel):
    amount: Optional[float] = None


class AdvanceRequest(BaseModel):
    seconds: float = Field(..., ge=0)


def _dump(model: BaseModel) -> dict:
    return model.model_dump(mode="json", by_alias=True)


async def drive_clock(session: ExchangeSession, tick_seconds: float) -> None:
    """Advance the session clock by the real time elapsed, forever"""
    loop = asyncio.get_running_loop()
    last = loop.time()
    while True:
        await asyncio.sleep(tick_seconds)
        now = loop.time()
        session.advance(now - last)
        last = now


def get_session(request: Request) -> ExchangeSession:
    return request.app.state.session


def create_app(
    session: Optional[ExchangeSession] = None, drive_clock_in_real_time: bool = True
) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        session: Session to serve; a fresh one is created if omitted
        drive_clock_in_real_time: Run the background clock task in the lifespan
    """
    session = session or ExchangeSession(notifier=RecordingNotifier())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        set_logger_and_children_level(settings.LOG_LEVEL)
        logger.info("Starting up exchange...")
        clock_task = None
        if drive_clock_in_real_time:
            clock_task = asyncio.create_task(
                drive_clock(session, settings.CLOCK_TICK_SECONDS)
            )
        try:
            yield
        finally:
            logger.info("Shutting down exchange...")
            if clock_task is not None:
                clock_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await clock_task
            session.shutdown()

    app = FastAPI(
        title="GreenPe Exchange API",
        description="Energy tokenization, credit marketplace and green impact certificates",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.session = session

    app.add_exception_handler(ValidationError, exchange_validation_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    @app.get("/")
    async def root(session: ExchangeSession = Depends(get_session)):
        """Root endpoint"""
        return {
            "message": "GreenPe Exchange API",
            "version": "1.0.0",
            "dashboard": session.snapshot(),
        }

    @app.post("/accounts/onboard")
    async def onboard(request: OnboardRequest, session: ExchangeSession = Depends(get_session)):
        account = session.onboard(request.name, request.identity_number, request.tax_id)
        return {"success": True, "account": _dump(account)}

    @app.get("/accounts/me")
    async def me(session: ExchangeSession = Depends(get_session)):
        if session.active_account is None:
            raise HTTPException(status_code=404, detail="Not onboarded")
        return {"success": True, **session.snapshot()}

    @app.post("/meter/start")
    async def start_meter(session: ExchangeSession = Depends(get_session)):
        session.start_meter()
        return {"success": True, "running": session.meter.is_running}

    @app.post("/meter/stop")
    async def stop_meter(session: ExchangeSession = Depends(get_session)):
        session.stop_meter()
        return {"success": True, "running": session.meter.is_running}

    @app.post("/meter/toggle")
    async def toggle_meter(session: ExchangeSession = Depends(get_session)):
        return {"success": True, "running": session.toggle_meter()}

    @app.post("/meter/reset")
    async def reset_meter(session: ExchangeSession = Depends(get_session)):
        return {"success": True, "balances": _dump(session.reset_generation())}

    @app.post("/wallet/subsidy")
    async def subsidy(request: SubsidyRequest, session: ExchangeSession = Depends(get_session)):
        return {"success": True, "balances": _dump(session.credit_subsidy(request.amount))}

    @app.get("/orders")
    async def list_orders(session: ExchangeSession = Depends(get_session)):
        orders = session.ledger.orders
        return {"success": True, "count": len(orders), "orders": [_dump(o) for o in orders]}

    @app.post("/orders")
    async def place_order(request: SellOrderRequest, session: ExchangeSession = Depends(get_session)):
        order = session.place_sell_order(request.credit_amount, request.price_per_credit)
        return {"success": True, "order": _dump(order)}

    @app.post("/orders/{order_id}/buy")
    async def buy_order(order_id: str, session: ExchangeSession = Depends(get_session)):
        trade = session.buy_order(order_id)
        return {
            "success": True,
            "trade": _dump(trade),
            "message": f"Settlement in {settings.SETTLEMENT_DELAY_SECONDS}s",
        }

    @app.get("/trades")
    async def list_trades(
        account_id: Optional[str] = None, session: ExchangeSession = Depends(get_session)
    ):
        if account_id:
            trades = session.ledger.get_trades_by_account(account_id)
        else:
            trades = session.ledger.trades
        return {"success": True, "count": len(trades), "trades": [_dump(t) for t in trades]}

    @app.get("/trades/{trade_id}")
    async def get_trade(trade_id: str, session: ExchangeSession = Depends(get_session)):
        trade = session.ledger.get_trade(trade_id)
        if trade is None:
            raise HTTPException(status_code=404, detail="Trade not found")
        return {"success": True, "trade": _dump(trade)}

    @app.get("/marketplace/statistics")
    async def statistics(session: ExchangeSession = Depends(get_session)):
        return {
            "success": True,
            "ledger": session.ledger.get_statistics(),
            "trading": session.marketplace.get_trading_statistics(),
        }

    @app.post("/certificates")
    async def issue_certificate(session: ExchangeSession = Depends(get_session)):
        return {"success": True, "certificate": _dump(session.issue_certificate())}

    @app.get("/certificates")
    async def list_certificates(session: ExchangeSession = Depends(get_session)):
        certificates = session.ledger.certificates
        return {
            "success": True,
            "count": len(certificates),
            "certificates": [_dump(c) for c in certificates],
        }

    @app.delete("/certificates")
    async def clear_certificates(session: ExchangeSession = Depends(get_session)):
        return {"success": True, "cleared": session.clear_certificates()}

    @app.get("/certificates/{certificate_id}/export")
    async def export_certificate(certificate_id: str, session: ExchangeSession = Depends(get_session)):
        certificate = session.ledger.get_certificate(certificate_id)
        if certificate is None:
            raise HTTPException(status_code=404, detail="Certificate not found")
        return Response(
            content=CertificateExporter.to_json(certificate),
            media_type="application/json",
            headers={
                "Content-Disposition": f'attachment; filename="{certificate_id}.json"'
            },
        )

    @app.get("/notifications")
    async def notifications(session: ExchangeSession = Depends(get_session)):
        messages = getattr(session.notifier, "messages", [])
        return {"success": True, "count": len(messages), "messages": list(reversed(messages))}

    @app.post("/clock/advance")
    async def advance_clock(request: AdvanceRequest, session: ExchangeSession = Depends(get_session)):
        executed = session.advance(request.seconds)
        return {"success": True, "executed": executed, "clock": session.scheduler.current_time().isoformat()}

    return app


app = create_app()


def main():
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
