from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .inquiry import Inquiry


class CompletionDocumentPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    inquiryId: str = Field(min_length=1)
    name: str = Field(min_length=1)
    fileUrl: str = Field(min_length=1)


class CompletionDocument(CompletionDocumentPayload):
    id: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    inquiry: Optional[Inquiry] = None
