from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator


DEFAULT_MAX_BYTES = 200_000
MAX_BYTES_CEILING = 1_000_000


class FetchErrorKind(str, Enum):
    """Reasons a fetch can fail. Surfaced to the model as-is."""
    INVALID_URL = "invalid_url"
    UNSUPPORTED_PROTOCOL = "unsupported_protocol"
    BLOCKED_HOST = "blocked_host"
    PRIVATE_IP_BLOCKED = "private_ip_blocked"
    TOO_MANY_REDIRECTS = "too_many_redirects"
    FETCH_FAILED = "fetch_failed"


class FetchRequest(BaseModel):
    """
    A single logical GET requested by the model.

    max_bytes is always clamped into [1, MAX_BYTES_CEILING].
    """
    url: str = ""
    max_bytes: int = DEFAULT_MAX_BYTES

    @field_validator("url", mode="before")
    @classmethod
    def _coerce_url(cls, value: Any) -> str:
        if not isinstance(value, str):
            return ""
        return value.strip()

    @field_validator("max_bytes", mode="before")
    @classmethod
    def _clamp_max_bytes(cls, value: Any) -> int:
        if isinstance(value, bool) or value is None:
            return DEFAULT_MAX_BYTES
        try:
            value = int(value)
        except (TypeError, ValueError):
            return DEFAULT_MAX_BYTES
        return max(1, min(value, MAX_BYTES_CEILING))


class FetchResult(BaseModel):
    """
    Outcome of a fetch.

    Either ok=True with status and body_text, or ok=False with error.
    """
    ok: bool
    status: Optional[int] = None
    final_url: Optional[str] = None
    content_type: Optional[str] = None
    body_text: Optional[str] = None
    truncated: Optional[bool] = None
    error: Optional[FetchErrorKind] = None
    detail: Optional[str] = Field(default=None, description="Stringified transport failure")

    @classmethod
    def success(
        cls,
        status: int,
        final_url: str,
        content_type: Optional[str],
        body_text: str,
        truncated: bool = False,
    ) -> "FetchResult":
        return cls(
            ok=True,
            status=status,
            final_url=final_url,
            content_type=content_type,
            body_text=body_text,
            truncated=truncated,
        )

    @classmethod
    def fail(cls, error: FetchErrorKind, detail: Optional[str] = None) -> "FetchResult":
        return cls(ok=False, error=error, detail=detail)

    def to_tool_output(self) -> Dict[str, Any]:
        """JSON-ready dict with unset fields dropped."""
        return self.model_dump(mode="json", exclude_none=True)
