from typing import List

from fastapi import APIRouter, Depends

from ..core.auth import get_current_user
from ..core.database import Database, get_db
from ..models.quotation import Quotation, QuotationCreate, QuotationUpdate, QuotationVersion, QuotationVersionCreate
from ..services.quotations_service import (
    add_version,
    create_quotation,
    delete_quotation,
    get_quotation,
    list_quotations,
    update_quotation,
)

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/quotations", response_model=List[Quotation])
async def get_quotations(db: Database = Depends(get_db)):
    return await list_quotations(db)


@router.post("/quotations", response_model=Quotation)
async def add_quotation(payload: QuotationCreate, db: Database = Depends(get_db)):
    return await create_quotation(db, payload)


@router.get("/quotations/{quotation_id}", response_model=Quotation)
async def read_quotation(quotation_id: str, db: Database = Depends(get_db)):
    return await get_quotation(db, quotation_id)


@router.put("/quotations/{quotation_id}", response_model=Quotation)
async def edit_quotation(quotation_id: str, payload: QuotationUpdate, db: Database = Depends(get_db)):
    return await update_quotation(db, quotation_id, payload)


@router.delete("/quotations/{quotation_id}")
async def remove_quotation(quotation_id: str, db: Database = Depends(get_db)):
    await delete_quotation(db, quotation_id)
    return {"success": True}


@router.post("/quotations/{quotation_id}/versions", response_model=QuotationVersion)
async def add_quotation_version(
    quotation_id: str,
    payload: QuotationVersionCreate,
    db: Database = Depends(get_db),
):
    return await add_version(db, quotation_id, payload)
