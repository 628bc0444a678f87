"""Tests for webhook event routing and chat command parsing."""

from __future__ import annotations

import unittest
from types import SimpleNamespace

from handlers.event_handler import (
    REGISTER_FORMAT_ERROR,
    EventHandler,
    is_help_keyword,
    is_list_keyword,
    parse_register_command,
)
from repositories.link_repo import InMemoryLinkRepository
from services.link_service import DUPLICATE_ID_MESSAGE, LinkService
from stubs import RecordingMessageService, follow_event, postback_event, text_event


class CommandParsingTests(unittest.TestCase):
    def test_registration_command(self) -> None:
        command = parse_register_command("登録:EMP001:山田太郎")
        self.assertEqual((command.external_id, command.display_name), ("EMP001", "山田太郎"))

    def test_fields_are_trimmed(self) -> None:
        command = parse_register_command("登録: EMP001 : 山田 太郎 ")
        self.assertEqual((command.external_id, command.display_name), ("EMP001", "山田 太郎"))

    def test_name_may_contain_colons(self) -> None:
        command = parse_register_command("登録:EMP001:山田:太郎")
        self.assertEqual((command.external_id, command.display_name), ("EMP001", "山田:太郎"))

    def test_full_width_colons_are_accepted(self) -> None:
        command = parse_register_command("登録：EMP001：山田太郎")
        self.assertEqual((command.external_id, command.display_name), ("EMP001", "山田太郎"))

    def test_other_text_is_not_a_command(self) -> None:
        self.assertIsNone(parse_register_command("リスト"))
        self.assertIsNone(parse_register_command("登録"))

    def test_missing_fields_are_malformed(self) -> None:
        for text in ("登録:", "登録:EMP001", "登録:EMP001:", "登録::山田太郎"):
            with self.subTest(text=text), self.assertRaises(ValueError):
                parse_register_command(text)

    def test_keywords(self) -> None:
        for text in ("リスト", "りすと", "list", "LIST", "List"):
            self.assertTrue(is_list_keyword(text), text)
        for text in ("ヘルプ", "へるぷ", "help", "HELP"):
            self.assertTrue(is_help_keyword(text), text)
        self.assertFalse(is_list_keyword("リストを見せて"))
        self.assertFalse(is_help_keyword("helpme"))


class EventHandlerTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.link_service = LinkService(InMemoryLinkRepository())
        self.messages = RecordingMessageService()
        self.handler = EventHandler(self.link_service, self.messages)

    async def test_follow_sends_welcome(self) -> None:
        await self.handler.dispatch(follow_event("U1"))
        self.assertEqual(self.messages.calls, [("welcome", "U1")])

    async def test_registration_message_links_and_notifies(self) -> None:
        await self.handler.dispatch(text_event("U1", "登録:EMP001:山田太郎"))

        records = await self.link_service.list_links("U1")
        self.assertEqual(
            [(r.external_id, r.display_name) for r in records],
            [("EMP001", "山田太郎")],
        )
        self.assertEqual(
            self.messages.calls,
            [("registration_success", "U1", "EMP001", "山田太郎")],
        )

    async def test_duplicate_registration_sends_reason(self) -> None:
        await self.handler.dispatch(text_event("U1", "登録:EMP001:山田太郎"))
        await self.handler.dispatch(text_event("U1", "登録:EMP001:山田太郎"))
        self.assertEqual(self.messages.calls[-1], ("error", "U1", DUPLICATE_ID_MESSAGE))

    async def test_malformed_registration_sends_format_error(self) -> None:
        await self.handler.dispatch(text_event("U1", "登録:EMP001"))
        self.assertEqual(self.messages.calls, [("error", "U1", REGISTER_FORMAT_ERROR)])
        self.assertEqual(await self.link_service.list_links("U1"), [])

    async def test_list_sends_exactly_the_linked_records(self) -> None:
        await self.link_service.link("U1", "EMP001", "山田太郎")
        await self.link_service.link("U1", "EMP002", "佐藤花子")
        await self.link_service.link("U2", "EMP003", "他人")

        await self.handler.dispatch(text_event("U1", "リスト"))

        name, user_id, records = self.messages.calls[0]
        self.assertEqual((name, user_id), ("link_list", "U1"))
        self.assertEqual(sorted(r.external_id for r in records), ["EMP001", "EMP002"])

    async def test_list_of_nothing_sends_empty_list(self) -> None:
        await self.handler.dispatch(text_event("U1", "list"))
        self.assertEqual(self.messages.calls, [("link_list", "U1", [])])

    async def test_help_keyword_and_fallback_reply_with_help(self) -> None:
        await self.handler.dispatch(text_event("U1", "ヘルプ", reply_token="r1"))
        await self.handler.dispatch(text_event("U1", "こんにちは", reply_token="r2"))
        self.assertEqual(self.messages.calls, [("help", "r1"), ("help", "r2")])

    async def test_non_text_message_is_ignored(self) -> None:
        event = SimpleNamespace(
            type="message",
            source=SimpleNamespace(user_id="U1"),
            reply_token="r1",
            message=SimpleNamespace(type="sticker"),
        )
        await self.handler.dispatch(event)
        self.assertEqual(self.messages.calls, [])

    async def test_delete_postback_unlinks_and_names_the_record(self) -> None:
        await self.link_service.link("U1", "EMP001", "山田太郎")

        await self.handler.dispatch(postback_event("U1", "action=delete&userId=EMP001"))

        self.assertEqual(await self.link_service.list_links("U1"), [])
        self.assertEqual(self.messages.calls, [("deletion_success", "U1", "山田太郎")])

    async def test_repeated_delete_postback_falls_back_to_raw_id(self) -> None:
        await self.link_service.link("U1", "EMP001", "山田太郎")
        await self.handler.dispatch(postback_event("U1", "action=delete&userId=EMP001"))
        await self.handler.dispatch(postback_event("U1", "action=delete&userId=EMP001"))

        self.assertEqual(self.messages.calls[-1], ("deletion_success", "U1", "EMP001"))

    async def test_postback_without_delete_action_does_nothing(self) -> None:
        await self.link_service.link("U1", "EMP001", "山田太郎")
        await self.handler.dispatch(postback_event("U1", "action=other&userId=EMP001"))
        await self.handler.dispatch(postback_event("U1", "action=delete"))
        self.assertEqual(self.messages.calls, [])
        self.assertEqual(len(await self.link_service.list_links("U1")), 1)

    async def test_other_event_types_are_logged_only(self) -> None:
        event = SimpleNamespace(type="unfollow", source=SimpleNamespace(user_id="U1"))
        with self.assertLogs("handlers.event_handler", level="INFO") as logs:
            await self.handler.dispatch(event)
        self.assertIn("Unhandled event type: unfollow", logs.output[0])
        self.assertEqual(self.messages.calls, [])

    async def test_dispatch_isolates_failures(self) -> None:
        handler = EventHandler(self.link_service, RecordingMessageService(fail_on={"welcome"}))
        with self.assertLogs("handlers.event_handler", level="ERROR"):
            await handler.dispatch(follow_event("U1"))


if __name__ == "__main__":
    unittest.main()
