"""Test doubles shared by the test modules."""

from types import SimpleNamespace


class RecordingMessageService:
    """Stands in for MessageService; records every send instead of calling LINE."""

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.calls: list[tuple] = []
        self.fail_on = fail_on or set()

    async def _record(self, name: str, *args) -> bool:
        if name in self.fail_on:
            raise RuntimeError(f"{name} failed")
        self.calls.append((name, *args))
        return True

    async def send_welcome_message(self, line_user_id):
        return await self._record("welcome", line_user_id)

    async def send_registration_success(self, line_user_id, external_id, display_name):
        return await self._record("registration_success", line_user_id, external_id, display_name)

    async def send_link_list(self, line_user_id, records):
        return await self._record("link_list", line_user_id, list(records))

    async def send_help(self, reply_token):
        return await self._record("help", reply_token)

    async def send_error(self, line_user_id, reason):
        return await self._record("error", line_user_id, reason)

    async def send_deletion_success(self, line_user_id, display_name):
        return await self._record("deletion_success", line_user_id, display_name)

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]


class BrokenRepository:
    """Link store whose every call fails like an unreachable database."""

    def get(self, line_user_id):
        raise ConnectionError("store unreachable")

    def save(self, line_user_id, record):
        raise ConnectionError("store unreachable")

    def remove_link(self, line_user_id, external_id, updated_at):
        raise ConnectionError("store unreachable")

    def delete(self, line_user_id):
        raise ConnectionError("store unreachable")


def text_event(user_id: str, text: str, reply_token: str = "reply-token"):
    return SimpleNamespace(
        type="message",
        source=SimpleNamespace(user_id=user_id),
        reply_token=reply_token,
        message=SimpleNamespace(type="text", text=text),
    )


def postback_event(user_id: str, data: str, reply_token: str = "reply-token"):
    return SimpleNamespace(
        type="postback",
        source=SimpleNamespace(user_id=user_id),
        reply_token=reply_token,
        postback=SimpleNamespace(data=data),
    )


def follow_event(user_id: str, reply_token: str = "reply-token"):
    return SimpleNamespace(
        type="follow",
        source=SimpleNamespace(user_id=user_id),
        reply_token=reply_token,
    )
