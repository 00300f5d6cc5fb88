import logging
from datetime import datetime
from typing import Callable, List, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from .config import SupabaseSettings, load_settings
from .errors import NO_SESSION, Error
from .events import Event
from .memory_store import InMemoryStore
from .models import CATEGORIES_TABLE, MEMOS_TABLE, Category, Memo, Session, as_utc, utcnow
from .result import Failure, Result, Success, as_result
from .store import RemoteStore
from .supabase_client import SupabaseStore

logger = logging.getLogger(__name__)


def make_store(settings: SupabaseSettings) -> RemoteStore:
    if settings.backend == "memory":
        return InMemoryStore()
    return SupabaseStore(settings.url, settings.key, timeout=settings.http_timeout)


class SupabaseService:
    """
    The only component that talks to the backend.

    Holds the signed-in ``Session`` and turns every remote fault into a
    ``Failure(Error)``; nothing raised by the store escapes a public method.
    CRUD calls do not check the session themselves: callers ask
    ``is_session_valid()`` first.
    """

    def __init__(
        self,
        settings: Optional[SupabaseSettings] = None,
        store: Optional[RemoteStore] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._settings = settings
        self._store = store
        self._clock = clock
        self._session: Optional[Session] = None
        self._email = ""
        self._tz: Optional[ZoneInfo] = None
        self._initialized = False
        self.auth_state_changed = Event("auth_state_changed")

    def _initialize(self) -> RemoteStore:
        if self._initialized:
            return self._store
        settings = self._settings or load_settings()
        self._tz = ZoneInfo(settings.timezone)
        if self._store is None:
            self._store = make_store(settings)
        self._settings = settings
        self._email = settings.email
        self._initialized = True
        logger.info("data access initialized (backend=%s, tz=%s)", settings.backend, settings.timezone)
        return self._store

    @property
    def session(self) -> Optional[Session]:
        return self._session

    # -----------------------
    # auth
    # -----------------------
    @as_result
    async def sign_up(self, password: str) -> bool:
        store = self._initialize()
        await store.sign_up(self._email, password)
        logger.info("account registered")
        return True

    async def sign_in(self, password: str) -> Result[UUID, Error]:
        result = await self._sign_in(password)
        # listeners run outside the failure edge; their errors are bugs
        if result.is_success():
            self.auth_state_changed.emit()
        return result

    @as_result
    async def _sign_in(self, password: str) -> UUID:
        store = self._initialize()
        session = await store.sign_in_with_password(self._email, password)
        self._session = session
        store.set_access_token(session.access_token)
        logger.info("signed in as %s", session.user_id)
        return session.user_id

    async def sign_out(self) -> Result[bool, Error]:
        result = await self._sign_out()
        if result.is_success():
            self.auth_state_changed.emit()
        return result

    @as_result
    async def _sign_out(self) -> bool:
        store = self._initialize()
        if self._session is not None:
            await store.sign_out()
        self._session = None
        store.set_access_token(None)
        logger.info("signed out")
        return True

    def is_session_valid(self) -> bool:
        if self._session is None:
            return False
        return not self._session.expired(self._clock())

    def get_session_expiry(self) -> Result[datetime, Error]:
        try:
            self._initialize()
            if self._session is None:
                return Failure(Error(code=NO_SESSION, message="no active session"))
            return Success(self._session.expires_at().astimezone(self._tz))
        except Exception as e:
            return Failure(Error.from_exception(e))

    def get_user_id(self) -> Result[UUID, Error]:
        if self._session is None:
            return Failure(Error(code=NO_SESSION, message="no active session"))
        return Success(self._session.user_id)

    def _owner_id(self) -> Optional[str]:
        return str(self._session.user_id) if self._session else None

    # -----------------------
    # categories
    # -----------------------
    @as_result
    async def get_categories(self) -> List[Category]:
        store = self._initialize()
        category_rows = await store.select(CATEGORIES_TABLE)
        memo_rows = await store.select(MEMOS_TABLE)

        referenced = {str(m.get("category_id")) for m in memo_rows}
        categories = [Category.model_validate(row) for row in category_rows]
        for category in categories:
            category.is_referenced = str(category.category_id) in referenced
        return categories

    @as_result
    async def get_category(self, category_id: UUID) -> Optional[Category]:
        store = self._initialize()
        rows = await store.select(CATEGORIES_TABLE, filters={"category_id": category_id}, limit=1)
        return Category.model_validate(rows[0]) if rows else None

    @as_result
    async def create_category(self, category: Category) -> Category:
        store = self._initialize()
        row = category.to_row()
        row.pop("category_id", None)
        if "user_id" not in row and self._owner_id():
            row["user_id"] = self._owner_id()
        created = await store.insert(CATEGORIES_TABLE, row)
        return Category.model_validate(created)

    @as_result
    async def update_category(self, category: Category) -> Optional[Category]:
        if category.category_id is None:
            raise ValueError("cannot update a category without category_id")
        store = self._initialize()
        rows = await store.update(
            CATEGORIES_TABLE,
            filters={"category_id": category.category_id},
            values={"name": category.name, "description": category.description},
        )
        return Category.model_validate(rows[0]) if rows else None

    @as_result
    async def delete_category(self, category_id: UUID) -> bool:
        # memos pointing at this category are left in place
        store = self._initialize()
        await store.delete(CATEGORIES_TABLE, filters={"category_id": category_id})
        return True

    # -----------------------
    # memos
    # -----------------------
    @as_result
    async def get_memos(self, category_id: UUID) -> List[Memo]:
        store = self._initialize()
        rows = await store.select(MEMOS_TABLE, filters={"category_id": category_id}, order="updated_at")
        return [Memo.model_validate(row) for row in rows]

    @as_result
    async def get_latest_memos(self, count: int) -> List[Memo]:
        if count < 0:
            raise ValueError(f"count must not be negative: {count}")
        store = self._initialize()
        rows = await store.select(MEMOS_TABLE, order="updated_at", limit=count)
        return [Memo.model_validate(row) for row in rows]

    @as_result
    async def get_memo(self, memo_id: UUID) -> Optional[Memo]:
        store = self._initialize()
        rows = await store.select(MEMOS_TABLE, filters={"memo_id": memo_id}, limit=1)
        return Memo.model_validate(rows[0]) if rows else None

    @as_result
    async def create_memo(self, memo: Memo) -> Memo:
        store = self._initialize()
        now = as_utc(self._clock())
        row = memo.model_copy(update={"created_at": now, "updated_at": now}).to_row()
        row.pop("memo_id", None)
        if "user_id" not in row and self._owner_id():
            row["user_id"] = self._owner_id()
        created = await store.insert(MEMOS_TABLE, row)
        return Memo.model_validate(created)

    @as_result
    async def update_memo(self, memo: Memo) -> Optional[Memo]:
        if memo.memo_id is None:
            raise ValueError("cannot update a memo without memo_id")
        store = self._initialize()
        now = as_utc(self._clock())
        if memo.updated_at is not None and memo.updated_at > now:
            now = memo.updated_at
        # created_at is never part of an update
        values = {
            "title": memo.title,
            "content": memo.content,
            "category_id": str(memo.category_id),
            "updated_at": now.isoformat(),
        }
        rows = await store.update(MEMOS_TABLE, filters={"memo_id": memo.memo_id}, values=values)
        return Memo.model_validate(rows[0]) if rows else None

    @as_result
    async def delete_memo(self, memo_id: UUID) -> bool:
        store = self._initialize()
        await store.delete(MEMOS_TABLE, filters={"memo_id": memo_id})
        return True

    async def aclose(self) -> None:
        if self._store is not None:
            await self._store.aclose()
