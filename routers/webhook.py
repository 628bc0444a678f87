"""
routers/webhook.py
-------------------
LINE webhook endpoint. Verifies the signature, decodes the event batch and
dispatches every event concurrently through the EventHandler.
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from linebot.v3.exceptions import InvalidSignatureError
from linebot.v3.webhook import WebhookParser

from handlers.event_handler import EventHandler
from routers.dependencies import get_event_handler, get_webhook_parser
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/webhook")
async def line_webhook(
    request: Request,
    x_line_signature: Optional[str] = Header(default=None),
    parser: WebhookParser = Depends(get_webhook_parser),
    handler: EventHandler = Depends(get_event_handler),
):
    """Receive a LINE event batch; respond once every event has been handled."""
    if not x_line_signature:
        logger.warning("Webhook request without signature rejected")
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    try:
        body = (await request.body()).decode("utf-8")
        events = parser.parse(body, x_line_signature)
    except InvalidSignatureError:
        logger.warning("Webhook request with invalid signature rejected")
        return JSONResponse(status_code=400, content={"error": "Invalid signature"})
    except ValueError as e:
        logger.warning(f"Undecodable webhook body: {e}")
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    logger.info(f"Webhook received {len(events)} event(s)")
    try:
        # dispatch() isolates each event's failures; no ordering between events
        await asyncio.gather(*(handler.dispatch(event) for event in events))
    except Exception as e:
        logger.exception("Webhook error")
        return JSONResponse(status_code=500, content={"error": str(e)})

    return {"success": True}
