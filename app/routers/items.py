from typing import List

from fastapi import APIRouter, Depends

from ..core.auth import get_current_user
from ..core.database import Database, get_db
from ..models.item import Item, ItemPayload
from ..services.items_service import create_item, delete_item, list_items, update_item

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/items", response_model=List[Item])
async def get_items(db: Database = Depends(get_db)):
    return await list_items(db)


@router.post("/items", response_model=Item)
async def add_item(payload: ItemPayload, db: Database = Depends(get_db)):
    return await create_item(db, payload)


@router.put("/items/{item_id}", response_model=Item)
async def edit_item(item_id: str, payload: ItemPayload, db: Database = Depends(get_db)):
    return await update_item(db, item_id, payload)


@router.delete("/items/{item_id}")
async def remove_item(item_id: str, db: Database = Depends(get_db)):
    await delete_item(db, item_id)
    return {"success": True}
