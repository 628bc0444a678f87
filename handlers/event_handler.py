"""
handlers/event_handler.py
--------------------------
Routes decoded LINE webhook events to the LinkService and MessageService.

Supported events:
    follow    → welcome message
    message   → "登録:<id>:<name>", list / help keywords, help fallback
    postback  → "action=delete&userId=<id>" from a list card
Anything else is logged and ignored.
"""

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs

from services.link_service import LinkService
from services.message_service import MessageService
from utils.logger import get_logger

logger = get_logger(__name__)

REGISTER_PREFIXES = ("登録:", "登録：")
LIST_KEYWORDS = {"リスト", "りすと"}
HELP_KEYWORDS = {"ヘルプ", "へるぷ"}

_COLON = re.compile(r"[:：]")

REGISTER_FORMAT_ERROR = (
    "登録コードの形式が正しくありません。\n"
    "「登録:ID:氏名」の形式で送信してください。"
)


@dataclass
class RegisterCommand:
    external_id: str
    display_name: str


def parse_register_command(text: str) -> Optional[RegisterCommand]:
    """
    Parse "登録:<id>:<name>".

    The id ends at the first colon after the prefix (ASCII or full-width);
    the rest is the name, so names may contain colons.

    Returns:
        RegisterCommand, or None when the text is not a registration command.

    Raises:
        ValueError: The prefix is present but the id or name is missing.
    """
    prefix = next((p for p in REGISTER_PREFIXES if text.startswith(p)), None)
    if prefix is None:
        return None

    parts = _COLON.split(text[len(prefix):], maxsplit=1)
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        raise ValueError(f"Malformed registration command: {text!r}")
    return RegisterCommand(external_id=parts[0].strip(), display_name=parts[1].strip())


def is_list_keyword(text: str) -> bool:
    return text in LIST_KEYWORDS or text.lower() == "list"


def is_help_keyword(text: str) -> bool:
    return text in HELP_KEYWORDS or text.lower() == "help"


class EventHandler:
    """
    Dispatches one webhook event at a time.

    Stateless apart from the injected services, so one instance serves
    every request and concurrent dispatches of the same batch.
    """

    def __init__(self, link_service: LinkService, message_service: MessageService):
        self.link_service = link_service
        self.messages = message_service

    async def dispatch(self, event) -> None:
        """
        Handle one event. Failures are logged here and never raised, so one
        bad event cannot fail the rest of its webhook batch.
        """
        event_type = getattr(event, "type", None)
        try:
            if event_type == "follow":
                await self.handle_follow(event)
            elif event_type == "message":
                await self.handle_message(event)
            elif event_type == "postback":
                await self.handle_postback(event)
            else:
                logger.info(f"Unhandled event type: {event_type}")
        except Exception:
            logger.exception(f"Error handling {event_type} event")

    async def handle_follow(self, event) -> None:
        line_user_id = event.source.user_id
        logger.info(f"New follower: {line_user_id}")
        await self.messages.send_welcome_message(line_user_id)

    async def handle_message(self, event) -> None:
        if getattr(event.message, "type", None) != "text":
            logger.info(f"Ignoring non-text message ({event.message.type})")
            return

        text = event.message.text.strip()
        line_user_id = event.source.user_id
        logger.info(f"Message from {line_user_id}: {text!r}")

        try:
            command = parse_register_command(text)
        except ValueError:
            await self.messages.send_error(line_user_id, REGISTER_FORMAT_ERROR)
            return

        if command is not None:
            result = await self.link_service.link(
                line_user_id, command.external_id, command.display_name
            )
            if result.success:
                await self.messages.send_registration_success(
                    line_user_id, command.external_id, command.display_name
                )
            else:
                await self.messages.send_error(line_user_id, result.error)
            return

        if is_list_keyword(text):
            records = await self.link_service.list_links(line_user_id)
            logger.info(f"Listing {len(records)} links for {line_user_id}")
            await self.messages.send_link_list(line_user_id, records)
            return

        if not is_help_keyword(text):
            logger.info("Unknown command, sending help")
        await self.messages.send_help(event.reply_token)

    async def handle_postback(self, event) -> None:
        data = parse_qs(event.postback.data or "")
        action = data.get("action", [None])[0]
        external_id = data.get("userId", [None])[0]
        line_user_id = event.source.user_id
        logger.info(f"Postback from {line_user_id}: action={action} userId={external_id}")

        if action != "delete" or not external_id:
            return

        # Look the name up first; it is gone once the link is removed
        records = await self.link_service.list_links(line_user_id)
        target = next((r for r in records if r.external_id == external_id), None)

        result = await self.link_service.unlink(line_user_id, external_id)
        if result.success:
            await self.messages.send_deletion_success(
                line_user_id, target.display_name if target else external_id
            )
        else:
            await self.messages.send_error(line_user_id, result.error)
