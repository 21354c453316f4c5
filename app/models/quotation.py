from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .client import Client


class QuotationStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class QuotationCreate(BaseModel):
    clientId: str = Field(min_length=1)
    title: str = Field(min_length=1)


class QuotationUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    status: Optional[QuotationStatus] = None


class VersionLineInput(BaseModel):
    itemId: Optional[str] = None
    quantity: float = Field(default=1, gt=0)
    marginPercent: Optional[float] = None
    taxPercent: Optional[float] = Field(default=None, ge=0)


class QuotationVersionCreate(BaseModel):
    version: str = Field(min_length=1)
    brand: Optional[str] = None
    isFinal: bool = False
    items: List[VersionLineInput] = []


class QuotationLine(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    quotationVersionId: str
    itemId: Optional[str] = None
    description: Optional[str] = None
    quantity: float
    rate: float
    marginPercent: float
    taxPercent: float
    lineTotal: float


class QuotationVersion(BaseModel):
    id: str
    quotationId: str
    version: str
    brand: Optional[str] = None
    isFinal: bool = False
    subtotal: float = 0
    marginTotal: float = 0
    taxTotal: float = 0
    grandTotal: float = 0
    createdAt: Optional[datetime] = None
    items: List[QuotationLine] = []


class Quotation(BaseModel):
    id: str
    clientId: str
    title: str
    status: QuotationStatus = QuotationStatus.DRAFT
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    client: Optional[Client] = None
    versions: List[QuotationVersion] = []
