from typing import List

from fastapi import APIRouter, Depends

from ..core.auth import get_current_user
from ..core.database import Database, get_db
from ..models.inquiry import Inquiry, InquiryPayload
from ..services.inquiries_service import create_inquiry, delete_inquiry, list_inquiries, update_inquiry

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/inquiries", response_model=List[Inquiry])
async def get_inquiries(db: Database = Depends(get_db)):
    return await list_inquiries(db)


@router.post("/inquiries", response_model=Inquiry)
async def add_inquiry(payload: InquiryPayload, db: Database = Depends(get_db)):
    return await create_inquiry(db, payload)


@router.put("/inquiries/{inquiry_id}", response_model=Inquiry)
async def edit_inquiry(inquiry_id: str, payload: InquiryPayload, db: Database = Depends(get_db)):
    return await update_inquiry(db, inquiry_id, payload)


@router.delete("/inquiries/{inquiry_id}")
async def remove_inquiry(inquiry_id: str, db: Database = Depends(get_db)):
    await delete_inquiry(db, inquiry_id)
    return {"success": True}
