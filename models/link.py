"""
models/link.py
--------------
Domain models for identity links.

A LINE user (the messaging identity) owns one IdentityRecord, which maps
external ids (employee / student numbers) to LinkRecords. The stored form
keeps the camelCase keys of the persisted document:

    users/<lineUserId> = {
        "linkedUsers": {"<externalId>": {"userId", "userName", "linkedAt"}},
        "lastUpdated": <epoch millis>,
    }
"""

import re
import time
from dataclasses import dataclass, field
from typing import Optional

# Characters the Realtime Database forbids in a key; "/" would address a deeper node
_INVALID_KEY_CHARS = re.compile(r"[/.$#\[\]]")


def now_millis() -> int:
    """Current time as integer milliseconds since the epoch."""
    return int(time.time() * 1000)


def is_valid_key(value: str) -> bool:
    """True when `value` can be stored as a single path segment."""
    return bool(value) and not _INVALID_KEY_CHARS.search(value)


@dataclass
class LinkRecord:
    """
    One external id linked to a messaging identity.

    Attributes:
        external_id: Caller-supplied id (unique per identity).
        display_name: Free-form name shown in the chat.
        linked_at: Link time in epoch milliseconds.
    """
    external_id: str
    display_name: str
    linked_at: int

    def to_dict(self) -> dict:
        return {
            "userId": self.external_id,
            "userName": self.display_name,
            "linkedAt": self.linked_at,
        }

    @classmethod
    def from_dict(cls, external_id: str, data: dict) -> "LinkRecord":
        # The map key is authoritative; the stored userId is a copy of it
        return cls(
            external_id=external_id,
            display_name=data.get("userName") or "",
            linked_at=int(data.get("linkedAt") or 0),
        )


@dataclass
class IdentityRecord:
    """All links owned by one messaging identity."""
    linked_users: dict[str, LinkRecord] = field(default_factory=dict)
    last_updated: Optional[int] = None

    def to_dict(self) -> dict:
        data = {
            "linkedUsers": {
                external_id: record.to_dict()
                for external_id, record in self.linked_users.items()
            },
        }
        if self.last_updated is not None:
            data["lastUpdated"] = self.last_updated
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "IdentityRecord":
        if not data:
            return cls()
        linked = data.get("linkedUsers") or {}
        if isinstance(linked, list):
            # Firebase returns a map keyed by small integers as a sparse array
            linked = {str(i): value for i, value in enumerate(linked) if value}
        elif not isinstance(linked, dict):
            linked = {}
        return cls(
            linked_users={
                str(external_id): LinkRecord.from_dict(str(external_id), value)
                for external_id, value in linked.items()
                if isinstance(value, dict)
            },
            last_updated=data.get("lastUpdated"),
        )


@dataclass
class LinkResult:
    """
    Outcome of a link mutation.

    `error` carries a user-facing message when `success` is False.
    """
    success: bool
    record: Optional[LinkRecord] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, record: Optional[LinkRecord] = None) -> "LinkResult":
        return cls(success=True, record=record)

    @classmethod
    def fail(cls, error: str) -> "LinkResult":
        return cls(success=False, error=error)
