# gote/supabase_client.py
import logging
from typing import Any, Dict, List, Optional

from supabase import AsyncClient, acreate_client
from supabase.lib.client_options import AsyncClientOptions

from .errors import RemoteStoreError
from .models import Session

logger = logging.getLogger(__name__)


class SupabaseStore:
    """
    ``RemoteStore`` backed by the supabase-py async client (GoTrue for auth,
    PostgREST for rows). SDK errors are raised as-is and classified by
    ``Error.from_exception``.
    """

    def __init__(
        self,
        url: str,
        key: str,
        timeout: float = 10.0,
        client: Optional[AsyncClient] = None,
    ):
        self.url = url.rstrip("/")
        self.key = key
        self.timeout = timeout
        self._client = client
        self._access_token: Optional[str] = None

    # -----------------------
    # internal utils
    # -----------------------
    async def _connect(self) -> AsyncClient:
        if self._client is None:
            options = AsyncClientOptions(
                postgrest_client_timeout=self.timeout,
                auto_refresh_token=False,
                persist_session=False,
            )
            self._client = await acreate_client(self.url, self.key, options=options)
            logger.info("supabase client created for %s", self.url)
        return self._client

    @staticmethod
    def _where(query, filters: Optional[Dict[str, Any]]):
        for col, val in (filters or {}).items():
            query = query.eq(col, str(val))
        return query

    def set_access_token(self, token: Optional[str]) -> None:
        # the SDK forwards its own session to PostgREST; this only tracks sign-in
        self._access_token = token

    # -----------------------
    # auth
    # -----------------------
    async def sign_up(self, email: str, password: str) -> None:
        client = await self._connect()
        await client.auth.sign_up({"email": email, "password": password})

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        client = await self._connect()
        response = await client.auth.sign_in_with_password({"email": email, "password": password})
        if response.session is None:
            raise RemoteStoreError(401, "not_authenticated", "sign-in returned no session")
        return Session.from_auth_response(response.session.model_dump())

    async def sign_out(self) -> None:
        if not self._access_token:
            return
        client = await self._connect()
        # GoTrue rejecting an already dead token is swallowed by the SDK
        await client.auth.sign_out()

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
        client = await self._connect()
        query = self._where(client.table(table).select("*"), filters)
        if order:
            query = query.order(order, desc=descending)
        if limit is not None:
            query = query.limit(limit)
        response = await query.execute()
        return list(response.data)

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        client = await self._connect()
        response = await client.table(table).insert(row).execute()
        if not response.data:
            raise RemoteStoreError(201, "empty_insert", f"insert into {table} returned no row")
        return response.data[0]

    async def update(
        self, table: str, filters: Dict[str, Any], values: Dict[str, Any]
    ) -> List[Dict[str, Any]]:
        client = await self._connect()
        response = await self._where(client.table(table).update(values), filters).execute()
        return list(response.data)

    async def delete(self, table: str, filters: Dict[str, Any]) -> None:
        client = await self._connect()
        await self._where(client.table(table).delete(), filters).execute()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.postgrest.aclose()
