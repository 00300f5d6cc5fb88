import asyncio
import uuid
from types import SimpleNamespace

import httpx
import pytest
from supabase import AuthApiError, AuthRetryableError, PostgrestAPIError

from gote.config import SupabaseSettings
from gote.errors import Error, RemoteStoreError
from gote.models import Category
from gote.service import SupabaseService
from gote.supabase_client import SupabaseStore

USER_ID = str(uuid.uuid4())
TOKEN_BODY = {
    "access_token": "user-jwt",
    "refresh_token": "refresh",
    "token_type": "bearer",
    "expires_in": 3600,
    "user": {"id": USER_ID, "email": "test@te.st"},
}


class AuthSession:
    def model_dump(self):
        return dict(TOKEN_BODY)


SIGNED_IN = SimpleNamespace(session=AuthSession(), user=SimpleNamespace(id=USER_ID))


class FakeQuery:
    """Chainable request builder that records each step."""

    def __init__(self, sdk, table):
        self.sdk = sdk
        self.steps = [("table", table)]

    def _step(self, *step):
        self.steps.append(step)
        return self

    def select(self, columns):
        return self._step("select", columns)

    def insert(self, row):
        return self._step("insert", row)

    def update(self, values):
        return self._step("update", values)

    def delete(self):
        return self._step("delete")

    def eq(self, column, value):
        return self._step("eq", column, value)

    def order(self, column, desc=False):
        return self._step("order", column, desc)

    def limit(self, count):
        return self._step("limit", count)

    async def execute(self):
        self.sdk.executed.append(self.steps)
        outcome = self.sdk.rows.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(data=outcome)


class FakeAuth:
    def __init__(self, sdk):
        self.sdk = sdk

    async def _call(self, name, *args):
        self.sdk.auth_calls.append((name, *args))
        outcome = self.sdk.auth_results.pop(0) if self.sdk.auth_results else None
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def sign_up(self, credentials):
        return await self._call("sign_up", credentials)

    async def sign_in_with_password(self, credentials):
        return await self._call("sign_in_with_password", credentials)

    async def sign_out(self):
        return await self._call("sign_out")


class FakePostgrest:
    def __init__(self):
        self.closed = False

    async def aclose(self):
        self.closed = True


class FakeSupabase:
    """Stand-in for ``supabase.AsyncClient`` replaying queued outcomes."""

    def __init__(self, rows=(), auth_results=()):
        self.rows = list(rows)
        self.auth_results = list(auth_results)
        self.executed = []
        self.auth_calls = []
        self.auth = FakeAuth(self)
        self.postgrest = FakePostgrest()

    def table(self, name):
        return FakeQuery(self, name)


def _store(sdk) -> SupabaseStore:
    return SupabaseStore("https://proj.supabase.co/", "anon-key", client=sdk)


def test_sign_in_uses_password_grant():
    sdk = FakeSupabase(auth_results=[SIGNED_IN])

    session = asyncio.run(_store(sdk).sign_in_with_password("test@te.st", "1234"))

    assert sdk.auth_calls == [("sign_in_with_password", {"email": "test@te.st", "password": "1234"})]
    assert str(session.user_id) == USER_ID
    assert session.access_token == "user-jwt"
    assert session.expires_in == 3600


def test_sign_in_without_session_is_rejected():
    # e.g. the project still requires email confirmation
    sdk = FakeSupabase(auth_results=[SimpleNamespace(session=None, user=None)])

    with pytest.raises(RemoteStoreError) as info:
        asyncio.run(_store(sdk).sign_in_with_password("test@te.st", "1234"))

    assert info.value.code == "not_authenticated"


def test_select_builds_filtered_ordered_query():
    category_id = uuid.uuid4()
    sdk = FakeSupabase(rows=[[{"memo_id": "m"}]])

    rows = asyncio.run(_store(sdk).select("memos", filters={"category_id": category_id}, order="updated_at", limit=2))

    assert sdk.executed == [[
        ("table", "memos"),
        ("select", "*"),
        ("eq", "category_id", str(category_id)),
        ("order", "updated_at", True),
        ("limit", 2),
    ]]
    assert rows == [{"memo_id": "m"}]


def test_insert_update_delete_chains():
    sdk = FakeSupabase(rows=[[{"category_id": "c1", "name": "a"}], [], []])
    store = _store(sdk)

    async def scenario():
        created = await store.insert("categories", {"name": "a"})
        updated = await store.update("categories", {"category_id": "c1"}, {"name": "b"})
        await store.delete("memos", {"memo_id": "m1"})
        return created, updated

    created, updated = asyncio.run(scenario())

    insert, update, delete = sdk.executed
    assert insert == [("table", "categories"), ("insert", {"name": "a"})]
    assert update == [("table", "categories"), ("update", {"name": "b"}), ("eq", "category_id", "c1")]
    assert delete == [("table", "memos"), ("delete",), ("eq", "memo_id", "m1")]
    assert created == {"category_id": "c1", "name": "a"}
    assert updated == []


def test_empty_insert_raises():
    sdk = FakeSupabase(rows=[[]])

    with pytest.raises(RemoteStoreError) as info:
        asyncio.run(_store(sdk).insert("categories", {"name": "a"}))

    assert info.value.code == "empty_insert"


def test_sign_out_skipped_when_anonymous():
    sdk = FakeSupabase()
    store = _store(sdk)

    asyncio.run(store.sign_out())
    assert sdk.auth_calls == []

    store.set_access_token("user-jwt")
    asyncio.run(store.sign_out())
    assert sdk.auth_calls == [("sign_out",)]


def test_aclose_closes_rest_session():
    sdk = FakeSupabase()
    asyncio.run(_store(sdk).aclose())
    assert sdk.postgrest.closed


def test_sdk_errors_are_classified():
    bad_login = AuthApiError("Invalid login credentials", 400, "invalid_credentials")
    auth_down = AuthApiError("upstream unavailable", 503, None)
    duplicate = PostgrestAPIError({"code": "23505", "message": "duplicate key value", "details": None, "hint": None})
    no_code = PostgrestAPIError({"message": "boom"})
    offline = AuthRetryableError("Connection refused", 0)

    assert Error.from_exception(bad_login) == Error(code="invalid_credentials", message="Invalid login credentials")
    assert Error.from_exception(auth_down).code == "http_503"
    assert Error.from_exception(duplicate) == Error(code="23505", message="duplicate key value")
    assert Error.from_exception(no_code) == Error(code="postgrest", message="boom")
    assert Error.from_exception(offline).code == "transport"


def _service_over(sdk) -> SupabaseService:
    settings = SupabaseSettings(url="https://proj.supabase.co", key="anon-key", email="test@te.st")
    return SupabaseService(settings, store=_store(sdk))


def test_service_over_sdk_computes_is_referenced():
    cat_a, cat_b = str(uuid.uuid4()), str(uuid.uuid4())
    sdk = FakeSupabase(
        auth_results=[SIGNED_IN],
        rows=[
            [
                {"category_id": cat_a, "user_id": USER_ID, "name": "a", "description": ""},
                {"category_id": cat_b, "user_id": USER_ID, "name": "b", "description": ""},
            ],
            [{"memo_id": str(uuid.uuid4()), "category_id": cat_b}],
        ],
    )
    service = _service_over(sdk)

    async def scenario():
        await service.sign_in("1234")
        result = await service.get_categories()
        await service.aclose()
        return result

    categories = asyncio.run(scenario()).get_success()

    assert [(str(c.category_id), c.is_referenced) for c in categories] == [(cat_a, False), (cat_b, True)]
    assert sdk.postgrest.closed


def test_service_over_sdk_turns_errors_into_failures():
    sdk = FakeSupabase(
        auth_results=[AuthApiError("Invalid login credentials", 400, "invalid_credentials")],
        rows=[httpx.ConnectError("name resolution failed")],
    )
    service = _service_over(sdk)

    async def scenario():
        return await service.sign_in("bad"), await service.create_category(Category(name="x"))

    signed_in, created = asyncio.run(scenario())

    assert signed_in.get_failure().code == "invalid_credentials"
    assert service.session is None
    assert created.get_failure().code == "transport"
    assert "name resolution failed" in created.get_failure().message


def test_service_sends_owner_and_omits_derived_field():
    sdk = FakeSupabase(auth_results=[SIGNED_IN], rows=[[{"category_id": str(uuid.uuid4()), "user_id": USER_ID, "name": "n"}]])
    service = _service_over(sdk)

    async def scenario():
        await service.sign_in("1234")
        return await service.create_category(Category(name="n", is_referenced=True))

    created = asyncio.run(scenario()).get_success()

    [steps] = sdk.executed
    assert steps[1] == ("insert", {"user_id": USER_ID, "name": "n", "description": ""})
    assert created.is_referenced is False
