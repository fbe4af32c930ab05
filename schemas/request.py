from typing import Any, Optional
from pydantic import BaseModel, Field


class DealSearchRequest(BaseModel):
    """
    API request model for the /deal-search endpoint.

    This is the external contract: the extension sends this.
    prefs is forwarded to the model untouched.
    """
    query: Optional[str] = Field(default=None, description="User's search term")
    prefs: Optional[Any] = Field(default=None, description="Opaque search preferences")

    @property
    def has_query(self) -> bool:
        return isinstance(self.query, str) and bool(self.query.strip())
