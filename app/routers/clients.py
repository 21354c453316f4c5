from typing import List

from fastapi import APIRouter, Depends

from ..core.auth import get_current_user
from ..core.database import Database, get_db
from ..models.client import Client, ClientPayload
from ..services.clients_service import create_client, delete_client, get_client, list_clients, update_client

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/clients", response_model=List[Client])
async def get_clients(db: Database = Depends(get_db)):
    return await list_clients(db)


@router.post("/clients", response_model=Client)
async def add_client(payload: ClientPayload, db: Database = Depends(get_db)):
    return await create_client(db, payload)


@router.get("/clients/{client_id}", response_model=Client)
async def read_client(client_id: str, db: Database = Depends(get_db)):
    return await get_client(db, client_id)


@router.put("/clients/{client_id}", response_model=Client)
async def edit_client(client_id: str, payload: ClientPayload, db: Database = Depends(get_db)):
    return await update_client(db, client_id, payload)


@router.delete("/clients/{client_id}")
async def remove_client(client_id: str, db: Database = Depends(get_db)):
    await delete_client(db, client_id)
    return {"success": True}
