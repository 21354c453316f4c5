from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ClientPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    contactName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    taxId: Optional[str] = None
    notes: Optional[str] = None


class Client(ClientPayload):
    id: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
