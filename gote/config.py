import os
from typing import Dict, Any

from dotenv import load_dotenv
from pydantic import BaseModel


def validate_env() -> Dict[str, Any]:
    return {
        "SUPABASE_URL": os.getenv("SUPABASE_URL", "http://localhost:54321"),
        "SUPABASE_KEY": os.getenv("SUPABASE_KEY", ""),
        "SUPABASE_EMAIL": os.getenv("SUPABASE_EMAIL", ""),
        "GOTE_TIMEZONE": os.getenv("GOTE_TIMEZONE", "Asia/Tokyo"),
        "GOTE_HTTP_TIMEOUT": os.getenv("GOTE_HTTP_TIMEOUT", "10"),
        "GOTE_BACKEND": os.getenv("GOTE_BACKEND", "supabase"),  # supabase | memory
    }


class SupabaseSettings(BaseModel):
    url: str = "http://localhost:54321"
    key: str = ""
    # the single account this client signs in as
    email: str = ""
    timezone: str = "Asia/Tokyo"
    http_timeout: float = 10.0
    backend: str = "supabase"


def load_settings() -> SupabaseSettings:
    """Read ``.env`` (if present) and the environment into settings."""
    load_dotenv()
    cfg = validate_env()
    return SupabaseSettings(
        url=cfg["SUPABASE_URL"].rstrip("/"),
        key=cfg["SUPABASE_KEY"],
        email=cfg["SUPABASE_EMAIL"],
        timezone=cfg["GOTE_TIMEZONE"],
        http_timeout=float(cfg["GOTE_HTTP_TIMEOUT"]),
        backend=cfg["GOTE_BACKEND"].lower(),
    )
