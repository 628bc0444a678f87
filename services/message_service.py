"""
services/message_service.py
----------------------------
Outbound LINE messages (the Notifier).

Builders are pure functions returning LINE message objects (or plain dicts
for Flex payloads); MessageService sends them as push or reply messages.
Delivery is best-effort: a failed send is logged and reported as False,
never raised to the caller.
"""

from datetime import datetime
from typing import Optional
from urllib.parse import urlencode
from zoneinfo import ZoneInfo

from linebot.v3.messaging import (
    AsyncMessagingApi,
    FlexContainer,
    FlexMessage,
    PushMessageRequest,
    ReplyMessageRequest,
    TextMessage,
)

from config import DISPLAY_TIMEZONE
from models.link import LinkRecord
from utils.logger import get_logger

logger = get_logger(__name__)

# Platform limits
MAX_BUBBLES_PER_CAROUSEL = 12
MAX_MESSAGES_PER_REQUEST = 5

WELCOME_TEXT = (
    "ご登録ありがとうございます！\n\n"
    "QRコードを読み取ってIDを登録してください。\n\n"
    "【コマンド一覧】\n"
    "・リスト → 登録済みIDを表示\n"
    "・ヘルプ → 使い方を表示"
)

HELP_TEXT = (
    "【使い方】\n\n"
    "1️⃣ QRコードを読み取る\n"
    "登録用のQRコードを読み取ると、IDと氏名が自動で登録されます。\n"
    "「登録:ID:氏名」と送信して登録することもできます。\n\n"
    "2️⃣ リストを表示\n"
    "「リスト」と送信すると、登録済みのIDが表示されます。\n\n"
    "3️⃣ IDを削除\n"
    "リスト表示後、削除したいIDの「削除」ボタンをタップしてください。\n\n"
    "※ 1つのLINEアカウントに複数のIDを登録できます。"
)

EMPTY_LIST_TEXT = (
    "登録されているIDはありません。\n\n"
    "QRコードを読み取って登録してください。"
)

LIST_ALT_TEXT = "登録済みIDリスト"


# ── Builders ──────────────────────────────────────────────

def format_linked_at(linked_at: int, tz_name: str = DISPLAY_TIMEZONE) -> str:
    """Render epoch millis as e.g. ``2025/4/1 9:05:00`` in the display timezone."""
    dt = datetime.fromtimestamp(linked_at / 1000, ZoneInfo(tz_name))
    return f"{dt.year}/{dt.month}/{dt.day} {dt.hour}:{dt.minute:02d}:{dt.second:02d}"


def delete_postback_data(external_id: str) -> str:
    """Postback payload of a card's delete button."""
    return urlencode({"action": "delete", "userId": external_id})


def build_link_bubble(record: LinkRecord) -> dict:
    """One Flex bubble: name, id, link time and a delete button."""
    return {
        "type": "bubble",
        "body": {
            "type": "box",
            "layout": "vertical",
            "contents": [
                {
                    "type": "text",
                    "text": record.display_name or record.external_id,
                    "weight": "bold",
                    "size": "lg",
                    "wrap": True,
                },
                {
                    "type": "box",
                    "layout": "baseline",
                    "margin": "md",
                    "contents": [
                        {"type": "text", "text": "ID:", "size": "sm", "color": "#aaaaaa", "flex": 0},
                        {
                            "type": "text",
                            "text": record.external_id,
                            "size": "sm",
                            "color": "#666666",
                            "wrap": True,
                            "flex": 4,
                        },
                    ],
                },
                {
                    "type": "text",
                    "text": format_linked_at(record.linked_at),
                    "size": "xs",
                    "color": "#aaaaaa",
                    "margin": "md",
                },
            ],
        },
        "footer": {
            "type": "box",
            "layout": "vertical",
            "spacing": "sm",
            "contents": [
                {
                    "type": "button",
                    "style": "primary",
                    "color": "#ff6b6b",
                    "action": {
                        "type": "postback",
                        "label": "削除",
                        "data": delete_postback_data(record.external_id),
                        "displayText": f"{record.display_name} を削除",
                    },
                },
            ],
        },
    }


def build_link_carousels(records: list[LinkRecord]) -> list[dict]:
    """Split the records into carousels of at most MAX_BUBBLES_PER_CAROUSEL bubbles."""
    bubbles = [build_link_bubble(r) for r in records]
    return [
        {"type": "carousel", "contents": bubbles[i:i + MAX_BUBBLES_PER_CAROUSEL]}
        for i in range(0, len(bubbles), MAX_BUBBLES_PER_CAROUSEL)
    ]


def build_link_list_messages(records: list[LinkRecord]) -> list:
    """Flex carousel messages for the list, or the 'nothing registered' text."""
    if not records:
        return [TextMessage(text=EMPTY_LIST_TEXT)]
    return [
        FlexMessage(alt_text=LIST_ALT_TEXT, contents=FlexContainer.from_dict(carousel))
        for carousel in build_link_carousels(records)
    ]


def registration_success_text(external_id: str, display_name: str) -> str:
    return f"✅ 登録完了\n\nID: {external_id}\n氏名: {display_name}\n\nが登録されました。"


def error_text(reason: str) -> str:
    return f"❌ エラー\n\n{reason}"


def deletion_success_text(display_name: str) -> str:
    return f"✅ 削除完了\n\n{display_name} の登録を削除しました。"


# ── Sender ────────────────────────────────────────────────

class MessageService:
    """
    Sends bot messages through the LINE Messaging API.

    Push messages go to a LINE user id; reply messages consume the single-use
    reply token of one webhook event.
    """

    def __init__(self, api: AsyncMessagingApi):
        self.api = api

    async def _push(self, to: str, messages: list, label: str) -> bool:
        sent = True
        for i in range(0, len(messages), MAX_MESSAGES_PER_REQUEST):
            batch = messages[i:i + MAX_MESSAGES_PER_REQUEST]
            try:
                await self.api.push_message(PushMessageRequest(to=to, messages=batch))
            except Exception:
                logger.exception(f"Error sending {label} to {to}")
                sent = False
        return sent

    async def _reply(self, reply_token: Optional[str], messages: list, label: str) -> bool:
        if not reply_token:
            logger.warning(f"No reply token for {label}; message dropped")
            return False
        try:
            await self.api.reply_message(
                ReplyMessageRequest(reply_token=reply_token, messages=messages)
            )
            return True
        except Exception:
            logger.exception(f"Error sending {label} reply")
            return False

    async def send_welcome_message(self, line_user_id: str) -> bool:
        return await self._push(line_user_id, [TextMessage(text=WELCOME_TEXT)], "welcome message")

    async def send_registration_success(self, line_user_id: str, external_id: str,
                                        display_name: str) -> bool:
        text = registration_success_text(external_id, display_name)
        return await self._push(line_user_id, [TextMessage(text=text)], "registration success")

    async def send_link_list(self, line_user_id: str, records: list[LinkRecord]) -> bool:
        """Push the linked ids as Flex cards (or the empty-list text)."""
        return await self._push(line_user_id, build_link_list_messages(records), "link list")

    async def send_help(self, reply_token: Optional[str]) -> bool:
        return await self._reply(reply_token, [TextMessage(text=HELP_TEXT)], "help")

    async def send_error(self, line_user_id: str, reason: str) -> bool:
        return await self._push(line_user_id, [TextMessage(text=error_text(reason))], "error message")

    async def send_deletion_success(self, line_user_id: str, display_name: str) -> bool:
        text = deletion_success_text(display_name)
        return await self._push(line_user_id, [TextMessage(text=text)], "deletion success")
