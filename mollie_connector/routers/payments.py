import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request, BackgroundTasks
from ..schemas import (
    CountOut,
    CreateLinkIn,
    CreateLinkOut,
    CreatePaymentIn,
    CreatePaymentOut,
    PaymentListOut,
    PaymentStatusOut,
)
from ..services.connector import MollieConnector
from ..errors import ConnectorError, InvalidLinkOptions, LinkError, RemoteAPIError
from ..utils import require_service_api_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])

MODEL = "Payment"


def get_connector(request: Request) -> MollieConnector:
    return request.app.state.connector


def to_http_error(exc: ConnectorError) -> HTTPException:
    if isinstance(exc, RemoteAPIError):
        return HTTPException(status_code=exc.status_code or 502, detail=exc.message)
    return HTTPException(status_code=502, detail=str(exc))


def payment_out(record: dict) -> PaymentStatusOut:
    links = record.get("links") or {}
    return PaymentStatusOut(
        mollie_id=record.get("id"),
        status=record.get("status"),
        amount=record.get("amount"),
        description=record.get("description"),
        checkout_url=links.get("paymentUrl"),
        expiry_minutes=record.get("expiryPeriod"),
        raw=record,
    )


@router.post("/create", response_model=CreatePaymentOut, dependencies=[Depends(require_service_api_key)])
async def create_payment(payload: CreatePaymentIn, connector: MollieConnector = Depends(get_connector)):
    """Create a Mollie payment. Protected by SERVICE API KEY header."""
    data = {
        "amount": payload.amount,
        "description": payload.description,
        "redirectUrl": payload.redirect_url,
        "webhookUrl": payload.webhook_url,
        "method": payload.method,
        "metadata": payload.metadata,
    }
    data = {k: v for k, v in data.items() if v is not None}
    try:
        mollie_id = await connector.create(MODEL, data)
        record = await connector.find(MODEL, mollie_id) if mollie_id else None
    except ConnectorError as e:
        raise to_http_error(e)
    if not mollie_id:
        raise HTTPException(status_code=502, detail="Mollie did not return a payment id")

    record = record or {}
    return CreatePaymentOut(
        mollie_id=mollie_id,
        checkout_url=(record.get("links") or {}).get("paymentUrl"),
        status=record.get("status", "open"),
    )


@router.get("/status/{mollie_id}", response_model=PaymentStatusOut, dependencies=[Depends(require_service_api_key)])
async def payment_status(mollie_id: str, connector: MollieConnector = Depends(get_connector)):
    """Get the latest status for a given Mollie payment id."""
    try:
        record = await connector.find(MODEL, mollie_id)
    except ConnectorError as e:
        raise to_http_error(e)
    if record is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment_out(record)


@router.get("", response_model=PaymentListOut, dependencies=[Depends(require_service_api_key)])
async def list_payments(offset: Optional[int] = None, limit: Optional[int] = None,
                        connector: MollieConnector = Depends(get_connector)):
    filter = {k: v for k, v in {"offset": offset, "limit": limit}.items() if v is not None}
    try:
        records = await connector.all(MODEL, filter)
    except ConnectorError as e:
        raise to_http_error(e)
    return PaymentListOut(count=len(records), data=[payment_out(r) for r in records])


@router.get("/count", response_model=CountOut, dependencies=[Depends(require_service_api_key)])
async def count_payments(connector: MollieConnector = Depends(get_connector)):
    try:
        total = await connector.count(MODEL)
    except ConnectorError as e:
        raise to_http_error(e)
    return CountOut(count=total)


@router.post("/link", response_model=CreateLinkOut, dependencies=[Depends(require_service_api_key)])
async def create_link(payload: CreateLinkIn, connector: MollieConnector = Depends(get_connector)):
    """Generate a legacy Mollie pay-link."""
    try:
        url = await connector.get_link(payload.model_dump(exclude_none=True))
    except InvalidLinkOptions as e:
        raise HTTPException(status_code=422, detail=str(e))
    except LinkError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except ConnectorError as e:
        raise to_http_error(e)
    return CreateLinkOut(url=url)

# Webhook (Mollie -> POST)
@router.post("/webhook")
async def webhook(request: Request, background_tasks: BackgroundTasks,
                  connector: MollieConnector = Depends(get_connector)):
    """
    Mollie will POST a small payload containing 'id' (mollie payment id).
    The payment itself is fetched again to confirm its status.
    """
    payload = await request.json()
    mollie_id = payload.get("id")
    if not mollie_id:
        raise HTTPException(status_code=400, detail="Missing id in webhook payload")

    # schedule background refresh (fast response to Mollie)
    background_tasks.add_task(handle_webhook_update, connector, mollie_id)
    return {"status": "accepted"}

async def handle_webhook_update(connector: MollieConnector, mollie_id: str):
    try:
        record = await connector.find(MODEL, mollie_id)
    except ConnectorError as e:
        logger.warning("Webhook refresh of %s failed: %s", mollie_id, e)
        return
    if record is None:
        logger.warning("Webhook refresh of %s returned no payment", mollie_id)
        return
    logger.info("Payment %s is %s", mollie_id, record.get("status"))
