from .auth_state import AuthStateProvider
from .category_state import CategoryStateService
from .config import SupabaseSettings, load_settings
from .errors import Error, RemoteStoreError
from .memory_store import InMemoryStore
from .models import Category, Memo, Session
from .result import Failure, Result, ResultAccessError, Success, as_result
from .service import SupabaseService
from .supabase_client import SupabaseStore

__all__ = [
    "AuthStateProvider",
    "CategoryStateService",
    "SupabaseSettings",
    "load_settings",
    "Error",
    "RemoteStoreError",
    "InMemoryStore",
    "Category",
    "Memo",
    "Session",
    "Failure",
    "Result",
    "ResultAccessError",
    "Success",
    "as_result",
    "SupabaseService",
    "SupabaseStore",
]
