from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from .client import Client
from .document import CompletionDocument
from .inquiry import Inquiry


class TokenPayload(BaseModel):
    """Mutable fields of a share token; the token string itself is never accepted."""

    clientId: str = Field(min_length=1)
    inquiryId: Optional[str] = None
    allowDownload: Optional[bool] = None
    expiresAt: Optional[datetime] = None

    @field_validator("inquiryId", "expiresAt", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class TokenRecord(BaseModel):
    id: str
    token: str
    clientId: str
    inquiryId: Optional[str] = None
    allowDownload: bool = True
    expiresAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    client: Optional[Client] = None
    inquiry: Optional[Inquiry] = None


class SharedPack(BaseModel):
    client: Optional[Client] = None
    inquiry: Optional[Inquiry] = None
    allowDownload: bool
    expiresAt: Optional[datetime] = None
    documents: List[CompletionDocument]
