"""Tests for outbound message building and best-effort delivery."""

from __future__ import annotations

import unittest
from unittest import mock
from urllib.parse import parse_qs

from linebot.v3.messaging import FlexMessage, PushMessageRequest, ReplyMessageRequest, TextMessage

from models.link import LinkRecord
from services.message_service import (
    EMPTY_LIST_TEXT,
    HELP_TEXT,
    WELCOME_TEXT,
    MessageService,
    build_link_bubble,
    build_link_carousels,
    build_link_list_messages,
    deletion_success_text,
    error_text,
    format_linked_at,
    registration_success_text,
)


def _records(count: int) -> list[LinkRecord]:
    return [LinkRecord(f"EMP{i:03d}", f"社員{i}", 1700000000000) for i in range(count)]


class MessageBuilderTests(unittest.TestCase):
    def test_linked_at_is_rendered_in_display_timezone(self) -> None:
        # 2023-11-14 22:13:20 UTC
        self.assertEqual(format_linked_at(1700000000000, "Asia/Tokyo"), "2023/11/15 7:13:20")
        self.assertEqual(format_linked_at(1700000000000, "UTC"), "2023/11/14 22:13:20")

    def test_bubble_carries_name_id_and_delete_action(self) -> None:
        bubble = build_link_bubble(LinkRecord("EMP001", "山田太郎", 1700000000000))
        body = bubble["body"]["contents"]
        self.assertEqual(body[0]["text"], "山田太郎")
        self.assertEqual(body[1]["contents"][1]["text"], "EMP001")
        action = bubble["footer"]["contents"][0]["action"]
        self.assertEqual(action["type"], "postback")
        self.assertEqual(action["data"], "action=delete&userId=EMP001")
        self.assertEqual(action["displayText"], "山田太郎 を削除")

    def test_delete_data_survives_delimiters_in_id(self) -> None:
        bubble = build_link_bubble(LinkRecord("A&B=C", "名前", 0))
        data = bubble["footer"]["contents"][0]["action"]["data"]
        self.assertEqual(parse_qs(data), {"action": ["delete"], "userId": ["A&B=C"]})

    def test_carousels_are_capped_at_twelve_bubbles(self) -> None:
        carousels = build_link_carousels(_records(13))
        self.assertEqual([len(c["contents"]) for c in carousels], [12, 1])
        self.assertTrue(all(c["type"] == "carousel" for c in carousels))

    def test_empty_list_is_plain_text(self) -> None:
        messages = build_link_list_messages([])
        self.assertEqual(len(messages), 1)
        self.assertIsInstance(messages[0], TextMessage)
        self.assertEqual(messages[0].text, EMPTY_LIST_TEXT)

    def test_list_is_flex_carousel(self) -> None:
        messages = build_link_list_messages(_records(2))
        self.assertEqual(len(messages), 1)
        self.assertIsInstance(messages[0], FlexMessage)
        self.assertEqual(messages[0].alt_text, "登録済みIDリスト")

    def test_texts(self) -> None:
        self.assertEqual(
            registration_success_text("EMP001", "山田太郎"),
            "✅ 登録完了\n\nID: EMP001\n氏名: 山田太郎\n\nが登録されました。",
        )
        self.assertEqual(error_text("理由"), "❌ エラー\n\n理由")
        self.assertEqual(deletion_success_text("山田太郎"), "✅ 削除完了\n\n山田太郎 の登録を削除しました。")


class MessageServiceTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.api = mock.AsyncMock()
        self.service = MessageService(self.api)

    async def test_welcome_is_pushed(self) -> None:
        self.assertTrue(await self.service.send_welcome_message("U1"))
        request = self.api.push_message.await_args.args[0]
        self.assertIsInstance(request, PushMessageRequest)
        self.assertEqual(request.to, "U1")
        self.assertEqual(request.messages[0].text, WELCOME_TEXT)

    async def test_help_is_a_reply(self) -> None:
        self.assertTrue(await self.service.send_help("reply-1"))
        request = self.api.reply_message.await_args.args[0]
        self.assertIsInstance(request, ReplyMessageRequest)
        self.assertEqual(request.reply_token, "reply-1")
        self.assertEqual(request.messages[0].text, HELP_TEXT)
        self.api.push_message.assert_not_awaited()

    async def test_help_without_reply_token_is_dropped(self) -> None:
        with self.assertLogs("services.message_service", level="WARNING"):
            self.assertFalse(await self.service.send_help(None))
        self.api.reply_message.assert_not_awaited()

    async def test_send_failure_is_logged_not_raised(self) -> None:
        self.api.push_message.side_effect = RuntimeError("LINE unavailable")
        with self.assertLogs("services.message_service", level="ERROR"):
            sent = await self.service.send_deletion_success("U1", "山田太郎")
        self.assertFalse(sent)

    async def test_long_list_is_split_across_requests(self) -> None:
        # 61 records → 6 carousels → 5 + 1 messages
        self.assertTrue(await self.service.send_link_list("U1", _records(61)))
        batches = [call.args[0].messages for call in self.api.push_message.await_args_list]
        self.assertEqual([len(b) for b in batches], [5, 1])

    async def test_empty_list_pushes_text(self) -> None:
        await self.service.send_link_list("U1", [])
        request = self.api.push_message.await_args.args[0]
        self.assertEqual(request.messages[0].text, EMPTY_LIST_TEXT)


if __name__ == "__main__":
    unittest.main()
