from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ItemPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    description: Optional[str] = None
    brand: Optional[str] = None
    unitPrice: float = Field(default=0, ge=0)
    taxPercent: float = Field(default=0, ge=0)
    marginPercent: float = 0
    uom: Optional[str] = None
    category: Optional[str] = None
    sku: Optional[str] = None
    isActive: bool = True


class Item(ItemPayload):
    id: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
