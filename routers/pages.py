"""
routers/pages.py
-----------------
Read-only pages: health check, the deep-link page a QR code opens when it
carries no LINE user id, and the QR code generator.
"""

from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse

from config import LINE_BOT_BASIC_ID, PUBLIC_BASE_URL
from utils.logger import get_logger
from views.pages import (
    render_link_page,
    render_missing_params_page,
    render_qr_generator_page,
    render_server_error_page,
)

logger = get_logger(__name__)

router = APIRouter()


def registration_command(external_id: str, display_name: str) -> str:
    """Chat text that links `external_id` when sent to the bot."""
    return f"登録:{external_id}:{display_name}"


def build_deep_link(command: str, basic_id: str = LINE_BOT_BASIC_ID) -> str:
    """
    line.me URL that opens the bot's chat with `command` pre-filled.
    Falls back to plain LINE when no basic id is configured.
    """
    if not basic_id:
        return "https://line.me/R/"
    return f"https://line.me/R/oaMessage/{quote(basic_id, safe='')}/?{quote(command, safe='')}"


@router.get("/")
async def health() -> dict:
    return {
        "status": "ok",
        "message": "LINE Bot API Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/link", response_class=HTMLResponse)
async def link_page(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    user_name: Optional[str] = Query(default=None, alias="userName"),
) -> HTMLResponse:
    try:
        user_id = (user_id or "").strip()
        user_name = (user_name or "").strip()
        if not user_id or not user_name:
            return HTMLResponse(render_missing_params_page(), status_code=400)

        command = registration_command(user_id, user_name)
        return HTMLResponse(render_link_page(user_id, user_name, command, build_deep_link(command)))
    except Exception:
        logger.exception("Link page error")
        return HTMLResponse(render_server_error_page(), status_code=500)


@router.get("/generate-qr", response_class=HTMLResponse)
async def generate_qr(request: Request) -> HTMLResponse:
    base_url = PUBLIC_BASE_URL or str(request.base_url).rstrip("/")
    return HTMLResponse(render_qr_generator_page(f"{base_url}/register", f"{base_url}/link"))
