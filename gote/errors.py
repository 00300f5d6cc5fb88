import httpx
from pydantic import BaseModel, ConfigDict, ValidationError
from supabase import AuthApiError, AuthRetryableError, PostgrestAPIError

NO_SESSION = "no_session"
TRANSPORT = "transport"
INVALID_RESPONSE = "invalid_response"
POSTGREST = "postgrest"


class Error(BaseModel):
    """Flat failure descriptor carried by every ``Failure``."""

    model_config = ConfigDict(frozen=True)

    code: str = ""
    message: str

    @classmethod
    def from_exception(cls, exc: BaseException) -> "Error":
        if isinstance(exc, RemoteStoreError):
            return cls(code=exc.code, message=exc.message)
        # GoTrue wraps network faults in a retryable error with status 0
        if isinstance(exc, (httpx.TransportError, AuthRetryableError)):
            return cls(code=TRANSPORT, message=str(exc) or type(exc).__name__)
        if isinstance(exc, AuthApiError):
            return cls(code=exc.code or f"http_{exc.status}", message=exc.message)
        if isinstance(exc, PostgrestAPIError):
            return cls(code=exc.code or POSTGREST, message=exc.message or str(exc))
        if isinstance(exc, ValidationError):
            return cls(code=INVALID_RESPONSE, message=str(exc))
        return cls(code="", message=str(exc) or type(exc).__name__)


class RemoteStoreError(Exception):
    """Raised by a remote store when the backend rejects a request."""

    def __init__(self, status: int, code: str = "", message: str = ""):
        self.status = status
        self.code = code or f"http_{status}"
        self.message = message or f"backend responded with status {status}"
        super().__init__(self.message)
