import logging
from typing import Any, Dict, List
from uuid import UUID

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel

from gote.auth_state import AuthStateProvider
from gote.category_state import CategoryStateService
from gote.config import load_settings
from gote.errors import NO_SESSION
from gote.models import Category, Memo
from gote.result import Failure, Result, Success
from gote.service import SupabaseService

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Gote Bridge", version="1.0.0")

# failure codes that mean "sign in again" rather than "backend broke"
AUTH_CODES = {NO_SESSION, "invalid_credentials", "not_authenticated", "PGRST301"}

gote_service: SupabaseService | None = None
category_state: CategoryStateService | None = None
auth_state: AuthStateProvider | None = None


# ---------- request bodies ----------
class PasswordRequest(BaseModel):
    password: str


class CategoryRequest(BaseModel):
    name: str
    description: str = ""


class MemoRequest(BaseModel):
    category_id: UUID
    title: str = ""
    content: str = ""


# ---------- startup ----------
@app.on_event("startup")
async def startup():
    global gote_service, category_state, auth_state
    settings = load_settings()
    logger.info("Gote bridge starting (backend=%s, url=%s)", settings.backend, settings.url)
    logger.info("API key: %s", "SET" if settings.key else "NONE")

    gote_service = SupabaseService(settings)
    category_state = CategoryStateService(gote_service)
    auth_state = AuthStateProvider()
    auth_state.bind(gote_service)


@app.on_event("shutdown")
async def shutdown():
    if gote_service is not None:
        await gote_service.aclose()


# ---------- helpers ----------
def unwrap(result: Result[Any, Any], missing: str | None = None) -> Any:
    """Success payload, or the HTTP error the UI should see."""
    match result:
        case Success(value):
            if value is None and missing:
                raise HTTPException(status_code=404, detail={"code": "not_found", "message": missing})
            return value
        case Failure(error):
            status = 401 if error.code in AUTH_CODES else 502
            raise HTTPException(status_code=status, detail=error.model_dump())


def require_session() -> SupabaseService:
    if gote_service is None:
        raise HTTPException(status_code=503, detail="service not ready")
    if not gote_service.is_session_valid():
        raise HTTPException(status_code=401, detail={"code": NO_SESSION, "message": "sign in first"})
    return gote_service


def category_json(category: Category) -> Dict[str, Any]:
    # is_referenced is kept out of backend payloads but the UI needs it
    return {**category.model_dump(mode="json"), "is_referenced": category.is_referenced}


def memo_json(memo: Memo) -> Dict[str, Any]:
    return memo.model_dump(mode="json")


def cached_categories() -> List[Dict[str, Any]]:
    return [category_json(c) for c in (category_state.categories or [])]


# ---------- auth ----------
@app.post("/auth/signup")
async def sign_up(body: PasswordRequest):
    return {"ok": unwrap(await gote_service.sign_up(body.password))}


@app.post("/auth/signin")
async def sign_in(body: PasswordRequest):
    user_id = unwrap(await gote_service.sign_in(body.password))
    return {"user_id": str(user_id)}


@app.post("/auth/signout")
async def sign_out():
    return {"ok": unwrap(await gote_service.sign_out())}


@app.get("/auth/session")
async def session_info():
    expiry = gote_service.get_session_expiry()
    return {
        "valid": gote_service.is_session_valid(),
        "user_id": str(auth_state.user_id) if auth_state.is_authenticated else None,
        "expires_at": expiry.get_success().isoformat() if expiry.is_success() else None,
    }


# ---------- categories ----------
@app.get("/categories")
async def list_categories(service: SupabaseService = Depends(require_session)):
    unwrap(await category_state.load_categories())
    return cached_categories()


@app.post("/categories")
async def add_category(body: CategoryRequest, service: SupabaseService = Depends(require_session)):
    unwrap(await category_state.add_category(Category(name=body.name, description=body.description)))
    return cached_categories()


@app.get("/categories/{category_id}")
async def get_category(category_id: UUID, service: SupabaseService = Depends(require_session)):
    category = unwrap(await service.get_category(category_id), missing="category not found")
    return category_json(category)


@app.put("/categories/{category_id}")
async def update_category(
    category_id: UUID, body: CategoryRequest, service: SupabaseService = Depends(require_session)
):
    category = Category(category_id=category_id, name=body.name, description=body.description)
    if not unwrap(await category_state.update_category(category)):
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": "category not found"})
    return cached_categories()


@app.delete("/categories/{category_id}")
async def delete_category(category_id: UUID, service: SupabaseService = Depends(require_session)):
    unwrap(await category_state.delete_category(category_id))
    return cached_categories()


@app.get("/categories/{category_id}/memos")
async def list_memos(category_id: UUID, service: SupabaseService = Depends(require_session)):
    return [memo_json(m) for m in unwrap(await service.get_memos(category_id))]


# ---------- memos ----------
@app.get("/memos/latest")
async def latest_memos(count: int = Query(5, ge=0), service: SupabaseService = Depends(require_session)):
    return [memo_json(m) for m in unwrap(await service.get_latest_memos(count))]


@app.post("/memos")
async def create_memo(body: MemoRequest, service: SupabaseService = Depends(require_session)):
    memo = Memo(category_id=body.category_id, title=body.title, content=body.content)
    return memo_json(unwrap(await service.create_memo(memo)))


@app.get("/memos/{memo_id}")
async def get_memo(memo_id: UUID, service: SupabaseService = Depends(require_session)):
    return memo_json(unwrap(await service.get_memo(memo_id), missing="memo not found"))


@app.put("/memos/{memo_id}")
async def update_memo(memo_id: UUID, body: MemoRequest, service: SupabaseService = Depends(require_session)):
    memo = Memo(memo_id=memo_id, category_id=body.category_id, title=body.title, content=body.content)
    return memo_json(unwrap(await service.update_memo(memo), missing="memo not found"))


@app.delete("/memos/{memo_id}")
async def delete_memo(memo_id: UUID, service: SupabaseService = Depends(require_session)):
    return {"ok": unwrap(await service.delete_memo(memo_id))}
