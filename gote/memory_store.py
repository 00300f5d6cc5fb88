import copy
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .errors import RemoteStoreError
from .models import CATEGORIES_TABLE, MEMOS_TABLE, Session, utcnow


class InMemoryStore:
    """
    In-process stand-in for the Supabase backend, for tests and offline runs.
    Behaves like the hosted one where the client can observe it: rows are
    scoped to the signed-in user, ids are assigned on insert, and rejected
    requests raise ``RemoteStoreError`` with the backend's codes.
    """

    primary_keys = {CATEGORIES_TABLE: "category_id", MEMOS_TABLE: "memo_id"}

    def __init__(self, clock: Callable[[], datetime] = utcnow, expires_in: int = 3600):
        self.clock = clock
        self.expires_in = expires_in
        self.users: Dict[str, Dict[str, Any]] = {}
        self.tables: Dict[str, List[Dict[str, Any]]] = {name: [] for name in self.primary_keys}
        self._tokens: Dict[str, str] = {}
        self._access_token: Optional[str] = None
        self._pending_failure: Optional[BaseException] = None
        self.calls: List[str] = []
        self.closed = False

    # -----------------------
    # test hooks
    # -----------------------
    def fail_next(self, exc: BaseException) -> None:
        """Make the next store call raise ``exc``."""
        self._pending_failure = exc

    def add_user(self, email: str, password: str) -> str:
        user_id = str(uuid.uuid4())
        self.users[email] = {"id": user_id, "password": password}
        return user_id

    def _enter(self, op: str) -> None:
        self.calls.append(op)
        if self._pending_failure is not None:
            exc, self._pending_failure = self._pending_failure, None
            raise exc

    def _current_user(self) -> str:
        user_id = self._tokens.get(self._access_token or "")
        if user_id is None:
            raise RemoteStoreError(401, "not_authenticated", "JWT expired or missing")
        return user_id

    def _rows(self, table: str) -> List[Dict[str, Any]]:
        if table not in self.tables:
            raise RemoteStoreError(404, "42P01", f'relation "public.{table}" does not exist')
        return self.tables[table]

    @staticmethod
    def _matches(row: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
        return all(str(row.get(col)) == str(val) for col, val in (filters or {}).items())

    @staticmethod
    def _sort_key(value: Any) -> Any:
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                return value
        return value

    # -----------------------
    # auth
    # -----------------------
    async def sign_up(self, email: str, password: str) -> None:
        self._enter("sign_up")
        if email in self.users:
            raise RemoteStoreError(422, "user_already_exists", "User already registered")
        self.add_user(email, password)

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        self._enter("sign_in")
        user = self.users.get(email)
        if user is None or user["password"] != password:
            raise RemoteStoreError(400, "invalid_credentials", "Invalid login credentials")
        token = uuid.uuid4().hex
        self._tokens[token] = user["id"]
        return Session(
            user_id=user["id"],
            access_token=token,
            refresh_token=uuid.uuid4().hex,
            expires_in=self.expires_in,
            created_at=self.clock(),
        )

    async def sign_out(self) -> None:
        self._enter("sign_out")
        if self._access_token:
            self._tokens.pop(self._access_token, None)

    def set_access_token(self, token: Optional[str]) -> None:
        self._access_token = token

    # -----------------------
    # rows
    # -----------------------
    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        self._enter(f"select:{table}")
        user_id = self._current_user()
        rows = [
            r for r in self._rows(table)
            if r.get("user_id") == user_id and self._matches(r, filters)
        ]
        if order:
            rows.sort(key=lambda r: self._sort_key(r.get(order)), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        self._enter(f"insert:{table}")
        user_id = self._current_user()
        stored = dict(row)
        stored[self.primary_keys[table]] = str(uuid.uuid4())
        stored.setdefault("user_id", user_id)
        if table == MEMOS_TABLE:
            now = self.clock().isoformat()
            stored.setdefault("created_at", now)
            stored.setdefault("updated_at", now)
        self._rows(table).append(stored)
        return copy.deepcopy(stored)

    async def update(
        self, table: str, filters: Dict[str, Any], values: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        self._enter(f"update:{table}")
        user_id = self._current_user()
        changed = []
        for r in self._rows(table):
            if r.get("user_id") == user_id and self._matches(r, filters):
                r.update(values)
                changed.append(copy.deepcopy(r))
        return changed

    async def delete(self, table: str, filters: Dict[str, Any]) -> None:
        self._enter(f"delete:{table}")
        user_id = self._current_user()
        self.tables[table] = [
            r for r in self._rows(table)
            if not (r.get("user_id") == user_id and self._matches(r, filters))
        ]

    async def aclose(self) -> None:
        self.closed = True
