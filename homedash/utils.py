import time
from datetime import datetime, timezone
from typing import Any, Iterable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .errors import ValidationError
from .settings import settings

def add_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

def utcnow() -> datetime:
    """Timezone-aware UTC timestamp for every stored datetime column."""
    return datetime.now(timezone.utc)

def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

def epoch_ms() -> int:
    return int(time.time() * 1000)

def is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")

def require_fields(body: dict[str, Any], fields: Iterable[str]) -> None:
    """Raise a 400 naming every required field that is absent, null or blank."""
    missing = [f for f in fields if is_missing(body.get(f))]
    if not missing:
        return
    noun = "field" if len(missing) == 1 else "fields"
    raise ValidationError(f"Missing required {noun}: {', '.join(missing)}")
