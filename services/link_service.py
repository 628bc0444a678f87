"""
services/link_service.py
-------------------------
Business logic for linking external ids to a LINE user.
Shared by the webhook path (handlers/event_handler.py) and the
browser registration path (routers/register.py).
"""

import asyncio

from models.link import IdentityRecord, LinkRecord, LinkResult, now_millis
from repositories.link_repo import LinkRepository
from utils.logger import get_logger

logger = get_logger(__name__)

DUPLICATE_ID_MESSAGE = "このIDは既に登録されています"
LINK_FAILED_MESSAGE = "登録中にエラーが発生しました。"
UNLINK_FAILED_MESSAGE = "削除に失敗しました。"


class LinkService:
    """
    Handles link / list / unlink for one store backend.

    Store calls are blocking client calls, so each one runs in a worker
    thread. `link` is a read-modify-write without a transaction: two
    concurrent links for the same LINE user can lose one of the updates.
    """

    def __init__(self, repo: LinkRepository):
        self.repo = repo

    async def link(self, line_user_id: str, external_id: str, display_name: str) -> LinkResult:
        """
        Link an external id to a LINE user.

        Args:
            line_user_id: Messaging identity.
            external_id: Id to link (employee / student number).
            display_name: Name shown in the chat.

        Returns:
            LinkResult with the created LinkRecord, or a user-facing error.
            An already linked id is declined and the stored link is left as is.
        """
        try:
            record = await asyncio.to_thread(self.repo.get, line_user_id) or IdentityRecord()

            if external_id in record.linked_users:
                logger.warning(f"Duplicate link {external_id} for {line_user_id} declined")
                return LinkResult.fail(DUPLICATE_ID_MESSAGE)

            timestamp = now_millis()
            link = LinkRecord(
                external_id=external_id,
                display_name=display_name,
                linked_at=timestamp,
            )
            record.linked_users[external_id] = link
            record.last_updated = timestamp

            await asyncio.to_thread(self.repo.save, line_user_id, record)
            logger.info(f"Linked {external_id} to {line_user_id}")
            return LinkResult.ok(link)

        except Exception:
            logger.exception(f"Error linking {external_id} to {line_user_id}")
            return LinkResult.fail(LINK_FAILED_MESSAGE)

    async def list_links(self, line_user_id: str) -> list[LinkRecord]:
        """
        Get every link of a LINE user, in stored order.

        Returns:
            List of LinkRecords; empty when nothing is linked or the store failed.
        """
        try:
            record = await asyncio.to_thread(self.repo.get, line_user_id)
        except Exception:
            logger.exception(f"Error listing links of {line_user_id}")
            return []

        if record is None:
            return []
        return list(record.linked_users.values())

    async def unlink(self, line_user_id: str, external_id: str) -> LinkResult:
        """
        Remove one link. Removing an id that is not linked still succeeds.
        """
        try:
            await asyncio.to_thread(
                self.repo.remove_link, line_user_id, external_id, now_millis()
            )
            logger.info(f"Unlinked {external_id} from {line_user_id}")
            return LinkResult.ok()
        except Exception:
            logger.exception(f"Error unlinking {external_id} from {line_user_id}")
            return LinkResult.fail(UNLINK_FAILED_MESSAGE)

    async def unlink_all(self, line_user_id: str) -> LinkResult:
        """Delete the whole identity document, links and all."""
        try:
            await asyncio.to_thread(self.repo.delete, line_user_id)
            logger.info(f"Removed all links of {line_user_id}")
            return LinkResult.ok()
        except Exception:
            logger.exception(f"Error removing all links of {line_user_id}")
            return LinkResult.fail(UNLINK_FAILED_MESSAGE)
