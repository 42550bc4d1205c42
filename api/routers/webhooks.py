"""
Mercado Pago Webhook Endpoint.

The processor retries any notification that is not acknowledged with a 2xx,
so this endpoint answers 200 {"ok": true} whatever happens internally.
Failures are logged and recovered later by polling or manual refresh.
"""

import logging
from typing import Any, Callable

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from api.dependencies import get_reconciliation_engine_factory
from api.models import WebhookAck
from domain.errors import NotFoundError, StorefrontError
from services.reconciliation_service import ReconciliationEngine
from services.webhook_service import extract_payment_id

logger = logging.getLogger(__name__)

router = APIRouter()


async def _read_body(request: Request) -> Any:
    if request.method != "POST":
        return None
    try:
        return await request.json()
    except ValueError:
        # Empty or non-JSON body; the query string may still carry the id.
        return None


def _reconcile(engine_factory: Callable[[], ReconciliationEngine], payment_id: str) -> None:
    try:
        status = engine_factory().reconcile_payment(payment_id)
    except NotFoundError:
        logger.info("Webhook for unknown payment %s ignored", payment_id)
    except StorefrontError as e:
        logger.warning("Webhook reconciliation of payment %s failed: %s", payment_id, e.message)
    except Exception:
        logger.exception("Webhook reconciliation of payment %s crashed", payment_id)
    else:
        logger.info("Webhook reconciled payment %s: %s", payment_id, status)


@router.api_route(
    "/mp-webhook",
    methods=["GET", "POST"],
    response_model=WebhookAck,
    summary="Mercado Pago Webhook",
    description="Processor notification entry point. Always acknowledges with 200."
)
async def mp_webhook(
    request: Request,
    engine_factory: Callable[[], ReconciliationEngine] = Depends(get_reconciliation_engine_factory),
):
    """
    Receive a payment notification and reconcile the payment it names.

    The payment id is taken from `data.id`, `id`, `resource.id` or
    `payment.id` in the body, then from the `id` / `data_id` query parameters.
    """
    body = await _read_body(request)
    payment_id = extract_payment_id(body, request.query_params)

    if not payment_id:
        logger.info("Webhook without payment id ignored")
        return WebhookAck()

    await run_in_threadpool(_reconcile, engine_factory, payment_id)
    return WebhookAck()
