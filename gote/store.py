from typing import Any, Dict, List, Optional, Protocol

from .models import Session


class RemoteStore(Protocol):
    """
    What the data-access service needs from a backend. Implementations raise
    on failure (``RemoteStoreError`` for rejected requests); they never
    return Result values.
    """

    async def sign_up(self, email: str, password: str) -> None: ...

    async def sign_in_with_password(self, email: str, password: str) -> Session: ...

    async def sign_out(self) -> None: ...

    def set_access_token(self, token: Optional[str]) -> None: ...

    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]: ...

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]: ...

    async def update(
        self, table: str, filters: Dict[str, Any], values: Dict[str, Any]
    ) -> List[Dict[str, Any]]: ...

    async def delete(self, table: str, filters: Dict[str, Any]) -> None: ...

    async def aclose(self) -> None: ...
