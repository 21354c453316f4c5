from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .client import Client


class InquiryPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    clientId: str = Field(min_length=1)
    title: str = Field(min_length=1)
    notes: Optional[str] = None
    siteAddress: Optional[str] = None
    status: str = "NEW"


class Inquiry(InquiryPayload):
    id: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    client: Optional[Client] = None
