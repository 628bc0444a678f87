"""
repositories/link_repo.py
--------------------------
Data access layer for identity documents (the Link Store).

Every backend stores one document per LINE user with the same shape
(see models/link.py). Backends log store failures and re-raise them;
the service layer decides how to present them.
"""

import copy
import threading
from typing import Optional, Protocol

from psycopg2 import extras

from db.connection import transaction
from models.link import IdentityRecord, is_valid_key
from utils.logger import get_logger

logger = get_logger(__name__)


def _check_key(value: str) -> str:
    if not is_valid_key(value):
        raise ValueError(f"Invalid store key: {value!r}")
    return value


class LinkRepository(Protocol):
    """Path-level operations on `users/<lineUserId>`."""

    def get(self, line_user_id: str) -> Optional[IdentityRecord]: ...

    def save(self, line_user_id: str, record: IdentityRecord) -> None: ...

    def remove_link(self, line_user_id: str, external_id: str, updated_at: int) -> None: ...

    def delete(self, line_user_id: str) -> None: ...


class FirebaseLinkRepository:
    """Link Store backed by the Firebase Realtime Database."""

    def __init__(self, users_ref):
        """
        Args:
            users_ref: firebase_admin.db.Reference pointing at `users`.
        """
        self.users_ref = users_ref

    def _node(self, line_user_id: str):
        # child() follows "/", so an unchecked id could address another user's subtree
        return self.users_ref.child(_check_key(line_user_id))

    def get(self, line_user_id: str) -> Optional[IdentityRecord]:
        node = self._node(line_user_id)
        try:
            data = node.get()
        except Exception as e:
            logger.error(f"Failed to read identity {line_user_id}: {e}")
            raise
        return IdentityRecord.from_dict(data) if data else None

    def save(self, line_user_id: str, record: IdentityRecord) -> None:
        node = self._node(line_user_id)
        for external_id in record.linked_users:
            _check_key(external_id)
        try:
            node.set(record.to_dict())
        except Exception as e:
            logger.error(f"Failed to write identity {line_user_id}: {e}")
            raise

    def remove_link(self, line_user_id: str, external_id: str, updated_at: int) -> None:
        node = self._node(line_user_id)
        _check_key(external_id)
        # Multi-path PATCH: a null child is deleted, lastUpdated is refreshed in the same write
        try:
            node.update({
                f"linkedUsers/{external_id}": None,
                "lastUpdated": updated_at,
            })
        except Exception as e:
            logger.error(f"Failed to remove link {external_id} of {line_user_id}: {e}")
            raise

    def delete(self, line_user_id: str) -> None:
        node = self._node(line_user_id)
        try:
            node.delete()
        except Exception as e:
            logger.error(f"Failed to delete identity {line_user_id}: {e}")
            raise


class PostgresLinkRepository:
    """Link Store backed by the `identity_records` JSONB table."""

    def get(self, line_user_id: str) -> Optional[IdentityRecord]:
        sql = "SELECT data FROM identity_records WHERE line_user_id = %s;"
        try:
            with transaction() as cur:
                cur.execute(sql, (line_user_id,))
                row = cur.fetchone()
        except Exception as e:
            logger.error(f"Failed to read identity {line_user_id}: {e}")
            raise
        return IdentityRecord.from_dict(row[0]) if row else None

    def save(self, line_user_id: str, record: IdentityRecord) -> None:
        sql = """
            INSERT INTO identity_records (line_user_id, data, updated_at)
            VALUES (%s, %s, NOW())
            ON CONFLICT (line_user_id)
            DO UPDATE SET data = EXCLUDED.data, updated_at = NOW();
        """
        try:
            with transaction() as cur:
                cur.execute(sql, (line_user_id, extras.Json(record.to_dict())))
        except Exception as e:
            logger.error(f"Failed to write identity {line_user_id}: {e}")
            raise

    def remove_link(self, line_user_id: str, external_id: str, updated_at: int) -> None:
        sql = """
            INSERT INTO identity_records (line_user_id, data, updated_at)
            VALUES (%s, jsonb_build_object('lastUpdated', %s::bigint), NOW())
            ON CONFLICT (line_user_id)
            DO UPDATE SET
                data = (identity_records.data #- ARRAY['linkedUsers', %s])
                       || jsonb_build_object('lastUpdated', %s::bigint),
                updated_at = NOW();
        """
        try:
            with transaction() as cur:
                cur.execute(sql, (line_user_id, updated_at, external_id, updated_at))
        except Exception as e:
            logger.error(f"Failed to remove link {external_id} of {line_user_id}: {e}")
            raise

    def delete(self, line_user_id: str) -> None:
        sql = "DELETE FROM identity_records WHERE line_user_id = %s;"
        try:
            with transaction() as cur:
                cur.execute(sql, (line_user_id,))
        except Exception as e:
            logger.error(f"Failed to delete identity {line_user_id}: {e}")
            raise


class InMemoryLinkRepository:
    """Process-local Link Store for local development and tests."""

    def __init__(self):
        self._documents: dict[str, dict] = {}
        self._lock = threading.Lock()

    def get(self, line_user_id: str) -> Optional[IdentityRecord]:
        with self._lock:
            data = copy.deepcopy(self._documents.get(line_user_id))
        return IdentityRecord.from_dict(data) if data else None

    def save(self, line_user_id: str, record: IdentityRecord) -> None:
        with self._lock:
            self._documents[line_user_id] = record.to_dict()

    def remove_link(self, line_user_id: str, external_id: str, updated_at: int) -> None:
        with self._lock:
            data = self._documents.setdefault(line_user_id, {})
            data.get("linkedUsers", {}).pop(external_id, None)
            data["lastUpdated"] = updated_at

    def delete(self, line_user_id: str) -> None:
        with self._lock:
            self._documents.pop(line_user_id, None)
