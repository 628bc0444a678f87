"""
routers/register.py
--------------------
Browser registration endpoint, reached by scanning a QR code:
    /register?lineId=U1234...&userId=ABC123&userName=山田太郎

Links through the same LinkService as the chat "登録:" command, so the
duplicate rule is identical on both paths.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse

from models.link import is_valid_key
from routers.dependencies import get_link_service, get_message_service
from services.link_service import LINK_FAILED_MESSAGE, LinkService
from services.message_service import MessageService
from utils.logger import get_logger
from views.pages import (
    render_error_page,
    render_missing_params_page,
    render_server_error_page,
    render_success_page,
)

logger = get_logger(__name__)

router = APIRouter()

INVALID_ID_MESSAGE = "IDに使用できない文字が含まれています。"


@router.get("/register", response_class=HTMLResponse)
async def register(
    line_id: Optional[str] = Query(default=None, alias="lineId"),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    user_name: Optional[str] = Query(default=None, alias="userName"),
    link_service: LinkService = Depends(get_link_service),
    message_service: MessageService = Depends(get_message_service),
) -> HTMLResponse:
    try:
        line_id = (line_id or "").strip()
        user_id = (user_id or "").strip()
        user_name = (user_name or "").strip()
        if not line_id or not user_id or not user_name:
            logger.warning("Registration request with missing parameters")
            return HTMLResponse(render_missing_params_page(), status_code=400)

        if not is_valid_key(line_id) or not is_valid_key(user_id):
            logger.warning(f"Registration request with invalid id rejected: {line_id!r} / {user_id!r}")
            return HTMLResponse(
                render_error_page("登録エラー", INVALID_ID_MESSAGE, icon="⚠️"),
                status_code=400,
            )

        result = await link_service.link(line_id, user_id, user_name)
        if not result.success:
            return HTMLResponse(
                render_error_page("登録エラー", result.error or LINK_FAILED_MESSAGE, icon="⚠️"),
                status_code=400,
            )

        # Best-effort; the link stands even if LINE is unreachable
        await message_service.send_registration_success(line_id, user_id, user_name)
        return HTMLResponse(render_success_page(user_id, user_name))

    except Exception:
        logger.exception("Registration error")
        return HTMLResponse(render_server_error_page(), status_code=500)
